from __future__ import annotations

from typing import Protocol, runtime_checkable

from codegpt_chat.models import ChatSession


@runtime_checkable
class SessionRepository(Protocol):
    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        """All sessions owned by ``owner_id``, most recently updated first."""
        ...

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        """Insert or replace the row keyed by ``session.id``. Last write wins."""
        ...

    async def close(self) -> None: ...
