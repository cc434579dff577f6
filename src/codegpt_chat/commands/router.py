from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_new: Callable[[], Awaitable[None]],
        on_sessions: Callable[[], Awaitable[None]],
        on_select: Callable[[str], Awaitable[None]],
        on_sign_out: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_new = on_new
        self._on_sessions = on_sessions
        self._on_select = on_select
        self._on_sign_out = on_sign_out
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        """Dispatch a slash command. Returns False for plain chat text."""
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        command, _, argument = trimmed.partition(" ")
        if command == "/help":
            await self._on_help()
        elif command == "/new":
            await self._on_new()
        elif command == "/sessions":
            await self._on_sessions()
        elif command == "/select":
            await self._on_select(argument.strip())
        elif command == "/signout":
            await self._on_sign_out()
        else:
            self._on_unknown(trimmed)
        return True
