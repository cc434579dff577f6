import asyncio
import unittest
from types import SimpleNamespace

from supabase import PostgrestAPIError

from codegpt_chat.errors import PersistenceError
from codegpt_chat.models import ChatSession, Message
from codegpt_chat.persistence.supabase_repository import SupabaseSessionRepository


def _row(session_id: str, updated_at: str) -> dict:
    return {
        "id": session_id,
        "user_id": "u1",
        "title": "Write a Go HTTP server",
        "messages": [{"id": "m1", "role": "user", "content": "Write a Go HTTP server", "timestamp": 1}],
        "updated_at": updated_at,
    }


class _FakeQuery:
    def __init__(self, calls: list[tuple], result: object):
        self._calls = calls
        self._result = result

    def select(self, columns: str):
        self._calls.append(("select", columns))
        return self

    def eq(self, column: str, value: str):
        self._calls.append(("eq", column, value))
        return self

    def order(self, column: str, *, desc: bool = False):
        self._calls.append(("order", column, desc))
        return self

    def upsert(self, row: dict, *, on_conflict: str = ""):
        self._calls.append(("upsert", row, on_conflict))
        return self

    async def execute(self):
        if isinstance(self._result, Exception):
            raise self._result
        return SimpleNamespace(data=self._result)


class _FakePostgrest:
    def __init__(self) -> None:
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class _FakeSupabase:
    def __init__(self, result: object = None):
        self.calls: list[tuple] = []
        self.result = result
        self.postgrest = _FakePostgrest()

    def table(self, name: str) -> _FakeQuery:
        self.calls.append(("table", name))
        return _FakeQuery(self.calls, self.result)


def _api_error(message: str) -> PostgrestAPIError:
    return PostgrestAPIError({"message": message, "code": "PGRST301", "hint": None, "details": None})


class SupabaseSessionRepositoryTests(unittest.TestCase):
    def test_list_sessions_filters_by_owner_and_orders_by_recency(self) -> None:
        client = _FakeSupabase(
            [
                _row("b", "2026-02-02T10:00:00.123456+00:00"),
                _row("a", "2026-02-01T10:00:00+00:00"),
            ]
        )
        repo = SupabaseSessionRepository(client)

        sessions = asyncio.run(repo.list_sessions("u1"))

        self.assertEqual(["b", "a"], [s.id for s in sessions])
        self.assertEqual("Write a Go HTTP server", sessions[0].title)
        self.assertEqual(
            [
                ("table", "sessions"),
                ("select", "*"),
                ("eq", "user_id", "u1"),
                ("order", "updated_at", True),
            ],
            client.calls,
        )

    def test_upsert_sends_row_keyed_by_id(self) -> None:
        client = _FakeSupabase([])
        repo = SupabaseSessionRepository(client, table="chat_sessions", owner_column="owner")
        session = ChatSession.create().with_message(Message.create("user", "hello"))

        asyncio.run(repo.upsert_session(session, "u1"))

        self.assertEqual(("table", "chat_sessions"), client.calls[0])
        _, row, on_conflict = client.calls[1]
        self.assertEqual("id", on_conflict)
        self.assertEqual(session.id, row["id"])
        self.assertEqual("u1", row["owner"])
        self.assertNotIn("owner_id", row)
        self.assertEqual("hello", row["messages"][0]["content"])

    def test_api_error_raises_persistence_error(self) -> None:
        repo = SupabaseSessionRepository(_FakeSupabase(_api_error("JWT expired")))
        with self.assertRaises(PersistenceError):
            asyncio.run(repo.list_sessions("u1"))
        with self.assertRaises(PersistenceError):
            asyncio.run(repo.upsert_session(ChatSession.create(), "u1"))

    def test_malformed_row_raises_persistence_error(self) -> None:
        bad = _row("x", "2026-02-01T10:00:00+00:00")
        bad["messages"] = [{"role": "robot"}]
        repo = SupabaseSessionRepository(_FakeSupabase([bad]))
        with self.assertRaises(PersistenceError):
            asyncio.run(repo.list_sessions("u1"))

    def test_close_releases_table_client(self) -> None:
        client = _FakeSupabase()
        asyncio.run(SupabaseSessionRepository(client).close())
        self.assertTrue(client.postgrest.closed)


if __name__ == "__main__":
    unittest.main()
