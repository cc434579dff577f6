from __future__ import annotations

from datetime import datetime

from codegpt_chat.models import ChatSession, Message


class SessionController:
    def __init__(self, *, line_prefix: str, short_id_len: int = 8):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def format_session_list_entry(self, session: ChatSession, *, active_session_id: str | None) -> str:
        marker = "*" if session.id == active_session_id else " "
        updated = datetime.fromtimestamp(session.updated_at / 1000).strftime("%Y-%m-%d %H:%M")
        return (
            f"{self._line_prefix}{marker} {session.title} [{self.short_id(session.id)}] "
            f"(messages={len(session.messages)}, updated={updated})"
        )

    def format_message(self, message: Message) -> str:
        speaker = "you" if message.role == "user" else "assistant"
        return f"{speaker}> {message.content}"

    def resolve_session_identifier(self, sessions: list[ChatSession], identifier: str) -> ChatSession | None:
        """Find a session by full id, id prefix, or case-insensitive title.

        Raises ValueError when the identifier matches more than one session.
        """
        value = identifier.strip()
        if not value:
            return None

        for session in sessions:
            if session.id == value:
                return session

        by_prefix = [s for s in sessions if s.id.startswith(value)]
        if len(by_prefix) == 1:
            return by_prefix[0]
        if len(by_prefix) > 1:
            raise ValueError(f"Session id prefix is ambiguous: {value}")

        lowered = value.lower()
        by_title = [s for s in sessions if s.title.lower() == lowered]
        if len(by_title) > 1:
            raise ValueError(f"Session title is ambiguous: {value}")
        return by_title[0] if by_title else None
