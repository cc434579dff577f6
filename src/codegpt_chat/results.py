from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from codegpt_chat.models import ChatSession

SendStatus = Literal["completed", "failed", "rejected", "discarded"]


@dataclass(frozen=True)
class SendResult:
    """Outcome of one ``SessionStore.send_message`` call.

    ``session`` is the in-memory state after the call (``None`` only when the
    session was dropped by a sign-out while the request was outstanding, in
    which case the status is ``discarded``).
    ``persisted`` is true when the final state reached the repository.
    """

    status: SendStatus
    session_id: str
    session: ChatSession | None
    error: BaseException | None = None
    persisted: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True)
class LoadResult:
    ok: bool
    count: int = 0
    error: BaseException | None = None
