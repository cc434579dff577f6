import asyncio
from collections.abc import Sequence

from codegpt_chat.auth.identity import LocalIdentityProvider
from codegpt_chat.models import ChatSession, Message
from codegpt_chat.session_store import SessionStore


class FakeCompletion:
    def __init__(self, reply: str = "Here is your code.") -> None:
        self.reply = reply
        self.calls: list[tuple[list[Message], str]] = []

    async def complete(self, history: Sequence[Message], content: str) -> str:
        self.calls.append((list(history), content))
        return self.reply


class FailingCompletion:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or RuntimeError("model unavailable")
        self.calls = 0

    async def complete(self, history: Sequence[Message], content: str) -> str:
        self.calls += 1
        raise self.error


class GatedCompletion:
    """Blocks every request until ``release()`` is called."""

    def __init__(self, reply: str = "done") -> None:
        self.reply = reply
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def complete(self, history: Sequence[Message], content: str) -> str:
        self.started.set()
        await self._gate.wait()
        return self.reply


class RecordingRepository:
    def __init__(self, rows: dict[str, list[ChatSession]] | None = None) -> None:
        self.rows: dict[str, list[ChatSession]] = rows or {}
        self.upserts: list[tuple[ChatSession, str]] = []
        self.closed = False

    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        return sorted(self.rows.get(owner_id, []), key=lambda s: s.updated_at, reverse=True)

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        self.upserts.append((session, owner_id))
        owned = [s for s in self.rows.get(owner_id, []) if s.id != session.id]
        owned.append(session)
        self.rows[owner_id] = owned

    async def close(self) -> None:
        self.closed = True


class GatedFirstUpsertRepository(RecordingRepository):
    """Holds the first upsert until ``release()``; upserts are recorded as they land."""

    def __init__(self) -> None:
        super().__init__()
        self.first_upsert_started = asyncio.Event()
        self._gate = asyncio.Event()
        self._calls = 0

    def release(self) -> None:
        self._gate.set()

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        self._calls += 1
        if self._calls == 1:
            self.first_upsert_started.set()
            await self._gate.wait()
        await super().upsert_session(session, owner_id)


class FailingRepository:
    def __init__(self) -> None:
        self.upsert_attempts = 0

    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        raise ConnectionError("database offline")

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        self.upsert_attempts += 1
        raise ConnectionError("database offline")

    async def close(self) -> None:
        return


def make_store(completion=None, repository=None, identity=None) -> SessionStore:
    return SessionStore(
        completion or FakeCompletion(),
        identity or LocalIdentityProvider.for_user("dev@example.com", "Dev"),
        repository,
    )
