from __future__ import annotations

from loguru import logger
from supabase import AsyncClient, PostgrestAPIError

from codegpt_chat.errors import PersistenceError
from codegpt_chat.models import ChatSession


class SupabaseSessionRepository:
    """Session rows in a Supabase table.

    Shares its client with ``SupabaseAuthClient``, so queries run with the
    signed-in user's token once sign-in has happened. Row level security is
    expected to scope reads to that user; the owner filter is sent anyway.
    """

    def __init__(
        self,
        client: AsyncClient,
        *,
        table: str = "sessions",
        owner_column: str = "user_id",
    ):
        self._client = client
        self._table = table
        self._owner_column = owner_column

    async def close(self) -> None:
        await self._client.postgrest.aclose()

    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        try:
            response = await (
                self._client.table(self._table)
                .select("*")
                .eq(self._owner_column, owner_id)
                .order("updated_at", desc=True)
                .execute()
            )
        except PostgrestAPIError as ex:
            raise PersistenceError(f"Supabase list failed: {ex.message}") from ex

        rows = response.data
        if not isinstance(rows, list):
            raise PersistenceError(f"Unexpected list response: {type(rows).__name__}")
        try:
            sessions = [ChatSession.from_row(row) for row in rows]
        except (ValueError, KeyError) as ex:
            raise PersistenceError(f"Malformed session row: {ex}") from ex
        logger.debug(f"Loaded {len(sessions)} session(s) for owner {owner_id}")
        return sessions

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        row = session.to_row(owner_id)
        row[self._owner_column] = row.pop("owner_id")
        try:
            await self._client.table(self._table).upsert(row, on_conflict="id").execute()
        except PostgrestAPIError as ex:
            raise PersistenceError(f"Supabase upsert failed: {ex.message}") from ex
