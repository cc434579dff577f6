from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from codegpt_chat.auth.identity import IdentityProvider
from codegpt_chat.models import TITLE_MAX_CHARS, ChatSession, Identity, Message
from codegpt_chat.persistence.repository import SessionRepository
from codegpt_chat.provider import CompletionClient
from codegpt_chat.results import LoadResult, SendResult


class SessionStore:
    """In-memory sessions for the signed-in user and every mutation on them.

    Sessions are kept most-recent-first. Updates replace a session in place by
    id; the list is only reordered by ``create_session`` and ``load_sessions``.
    All methods run on the event loop thread.
    """

    def __init__(
        self,
        completion: CompletionClient,
        identity: IdentityProvider,
        repository: SessionRepository | None = None,
        *,
        title_max_chars: int = TITLE_MAX_CHARS,
    ):
        self._completion = completion
        self._identity = identity
        self._repository = repository
        self._title_max_chars = title_max_chars
        self._sessions: list[ChatSession] = []
        self._current_session_id: str | None = None
        self._owner_id: str | None = None
        self._in_flight: set[str] = set()
        self._pending_writes: set[asyncio.Task] = set()
        self._creation_writes: dict[str, asyncio.Task] = {}
        # Bumped on every clear so replies that resolve afterwards are dropped.
        self._epoch = 0
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def sessions(self) -> list[ChatSession]:
        return list(self._sessions)

    @property
    def current_session_id(self) -> str | None:
        return self._current_session_id

    @property
    def current_session(self) -> ChatSession | None:
        if self._current_session_id is None:
            return None
        return self.get_session(self._current_session_id)

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    def is_busy(self, session_id: str) -> bool:
        return session_id in self._in_flight

    def get_session(self, session_id: str) -> ChatSession | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._identity.subscribe(self._on_identity_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def create_session(self) -> ChatSession:
        session = ChatSession.create()
        self._sessions.insert(0, session)
        self._current_session_id = session.id
        logger.info(f"Created session {session.id}")
        self._schedule_persist(session.id)
        return session

    def select_session(self, session_id: str) -> None:
        if self.get_session(session_id) is None:
            raise ValueError(f"Session does not exist: {session_id}")
        self._current_session_id = session_id

    async def send_message(self, content: str) -> SendResult:
        if not content or not content.strip():
            raise ValueError("Message content must be non-empty")

        session = self.current_session
        if session is None:
            session = self.create_session()
        session_id = session.id

        if session_id in self._in_flight:
            logger.warning(f"Session {session_id} already has a request outstanding; message rejected")
            return SendResult(status="rejected", session_id=session_id, session=session)

        epoch = self._epoch
        updated = session.with_message(Message.create("user", content), title_max_chars=self._title_max_chars)
        self._replace(updated)
        self._in_flight.add(session_id)

        try:
            try:
                reply = await self._completion.complete(updated.messages, content)
            except Exception as ex:
                logger.error(f"Completion failed for session {session_id}: {type(ex).__name__}: {ex}")
                return SendResult(
                    status="failed",
                    session_id=session_id,
                    session=self.get_session(session_id),
                    error=ex,
                )

            latest = self.get_session(session_id)
            if epoch != self._epoch or latest is None:
                logger.info(f"Discarding reply for session {session_id}: state was cleared while waiting")
                return SendResult(status="discarded", session_id=session_id, session=None)

            final = latest.with_message(Message.create("assistant", reply), title_max_chars=self._title_max_chars)
            self._replace(final)
            # The creation write holds an older copy; it must land before this one.
            creation_write = self._creation_writes.get(session_id)
            if creation_write is not None:
                await creation_write
            persisted = epoch == self._epoch and await self._persist(final)
            return SendResult(status="completed", session_id=session_id, session=final, persisted=persisted)
        finally:
            self._in_flight.discard(session_id)

    async def load_sessions(self) -> LoadResult:
        """Pull the owner's sessions from persistence and merge them into memory.

        Sessions that exist only locally (created before the read returned)
        stay at the front; for ids present on both sides the local copy wins.
        """
        if self._repository is None:
            return LoadResult(ok=True, count=0)

        epoch = self._epoch
        try:
            identity = await self._identity.current_identity()
        except Exception as ex:
            logger.error(f"Could not resolve identity before loading sessions: {ex}")
            return LoadResult(ok=False, error=ex)
        if identity is None:
            logger.debug("No signed-in identity; skipping session load")
            return LoadResult(ok=False)

        try:
            loaded = await self._repository.list_sessions(identity.id)
        except Exception as ex:
            logger.error(f"Failed to load sessions for {identity.user.email}: {ex}")
            return LoadResult(ok=False, error=ex)

        if epoch != self._epoch:
            logger.info("Discarding loaded sessions: state was cleared while loading")
            return LoadResult(ok=False)

        self._owner_id = identity.id
        local = {s.id: s for s in self._sessions}
        loaded_ids = {s.id for s in loaded}
        merged = [s for s in self._sessions if s.id not in loaded_ids]
        merged.extend(local.get(s.id, s) for s in loaded)
        self._sessions = merged

        if self._current_session_id is None and merged:
            self._current_session_id = merged[0].id

        logger.info(f"Loaded {len(loaded)} session(s) for {identity.user.email}")
        return LoadResult(ok=True, count=len(loaded))

    async def sign_out(self) -> None:
        try:
            await self._identity.sign_out()
        except Exception as ex:
            logger.error(f"Sign-out failed: {ex}")
        self.clear()

    def clear(self) -> None:
        self._epoch += 1
        self._sessions = []
        self._current_session_id = None
        self._owner_id = None

    async def wait_for_pending_writes(self) -> None:
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    async def _on_identity_changed(self, identity: Identity | None) -> None:
        if identity is None:
            logger.info("Signed out; clearing sessions")
            self.clear()
            return
        if self._owner_id is not None and self._owner_id != identity.id:
            self.clear()
        await self.load_sessions()

    def _replace(self, session: ChatSession) -> None:
        for index, existing in enumerate(self._sessions):
            if existing.id == session.id:
                self._sessions[index] = session
                return

    def _schedule_persist(self, session_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self._persist_latest(session_id))
        self._pending_writes.add(task)
        self._creation_writes[session_id] = task
        task.add_done_callback(self._pending_writes.discard)
        task.add_done_callback(lambda _: self._creation_writes.pop(session_id, None))

    async def _persist_latest(self, session_id: str) -> bool:
        session = self.get_session(session_id)
        if session is None:
            return False
        return await self._persist(session)

    async def _persist(self, session: ChatSession) -> bool:
        if self._repository is None:
            return False
        try:
            identity = await self._identity.current_identity()
        except Exception as ex:
            logger.warning(f"Could not resolve identity; session {session.id} not saved: {ex}")
            return False
        if identity is None:
            logger.debug(f"No signed-in identity; session {session.id} not saved")
            return False
        try:
            await self._repository.upsert_session(session, identity.id)
        except Exception as ex:
            logger.error(f"Failed to save session {session.id}: {ex}")
            return False
        return True
