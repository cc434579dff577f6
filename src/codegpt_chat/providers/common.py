from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

from codegpt_chat.models import Message


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying completion in {wait:.0f}s (attempt {attempt})...")


def default_retry_kwargs(exception_types: tuple[type[Exception], ...], max_attempts: int = 1) -> dict:
    return {
        "retry": retry_if_exception_type(exception_types),
        "wait": wait_exponential(multiplier=10, min=10, max=320),
        "stop": stop_after_attempt(max(1, max_attempts)),
        "before_sleep": _on_retry,
        "reraise": True,
    }


def prior_turns(history: Sequence[Message], content: str) -> Sequence[Message]:
    """Drop the trailing user turn that carries ``content``; it is sent separately."""
    if history and history[-1].role == "user" and history[-1].content == content:
        return history[:-1]
    return history


def to_chat_messages(history: Sequence[Message], content: str) -> list[dict]:
    """Session history plus the new user text as role/content pairs, without duplicating it."""
    messages = [{"role": m.role, "content": m.content} for m in prior_turns(history, content)]
    messages.append({"role": "user", "content": content})
    return messages
