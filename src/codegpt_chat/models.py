from __future__ import annotations

import json
import time
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

Role = Literal["user", "assistant"]

ROLES: tuple[str, ...] = ("user", "assistant")
PLACEHOLDER_TITLE = "New Chat"
TITLE_MAX_CHARS = 30


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid4())


def ms_to_iso(value: int) -> str:
    moment = datetime.fromtimestamp(value // 1000, UTC).replace(microsecond=(value % 1000) * 1000)
    return moment.isoformat(timespec="milliseconds")


def iso_to_ms(value: str) -> int:
    # Rows written by browser clients end in "Z".
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return round(parsed.timestamp() * 1000)


def derive_title(content: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    text = content.strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    timestamp: int

    @classmethod
    def create(cls, role: Role, content: str) -> Message:
        return cls(id=new_id(), role=role, content=content, timestamp=now_ms())

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        role = data.get("role")
        if role not in ROLES:
            raise ValueError(f"Unknown message role: {role!r}")
        try:
            return cls(
                id=str(data["id"]),
                role=role,
                content=str(data["content"]),
                timestamp=int(data["timestamp"]),
            )
        except (KeyError, TypeError) as ex:
            raise ValueError(f"Malformed message: {data!r}") from ex


@dataclass(frozen=True)
class ChatSession:
    id: str
    title: str
    messages: tuple[Message, ...] = field(default_factory=tuple)
    updated_at: int = 0

    @classmethod
    def create(cls) -> ChatSession:
        return cls(id=new_id(), title=PLACEHOLDER_TITLE, messages=(), updated_at=now_ms())

    def with_message(self, message: Message, *, title_max_chars: int = TITLE_MAX_CHARS) -> ChatSession:
        """Return a copy with ``message`` appended.

        The title is derived from the first user message only; later
        messages never touch it.
        """
        title = self.title
        if not self.messages and message.role == "user":
            title = derive_title(message.content, title_max_chars)
        return replace(
            self,
            title=title,
            messages=self.messages + (message,),
            updated_at=now_ms(),
        )

    def to_row(self, owner_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": owner_id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "updated_at": ms_to_iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ChatSession:
        raw_messages = row.get("messages") or []
        if isinstance(raw_messages, str):
            raw_messages = json.loads(raw_messages)
        if not isinstance(raw_messages, list):
            raise ValueError(f"Malformed messages for session {row.get('id')!r}")

        updated_at = row.get("updated_at")
        if isinstance(updated_at, str):
            updated_ms = iso_to_ms(updated_at)
        elif updated_at is None:
            updated_ms = 0
        else:
            updated_ms = int(updated_at)

        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or PLACEHOLDER_TITLE),
            messages=tuple(Message.from_dict(m) for m in raw_messages),
            updated_at=updated_ms,
        )


@dataclass(frozen=True)
class User:
    email: str
    name: str


@dataclass(frozen=True)
class Identity:
    id: str
    user: User
