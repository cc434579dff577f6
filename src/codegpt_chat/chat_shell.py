from __future__ import annotations

from loguru import logger

from codegpt_chat.commands.router import CommandRouter
from codegpt_chat.services.session_controller import SessionController
from codegpt_chat.session_store import SessionStore

STARTER_PROMPTS = (
    ("Create Backend", "Create a fastify server with typescript"),
    ("Refactor", "Refactor this React code for performance"),
    ("Debug Logic", "Help me debug this stacktrace"),
)


class ChatShell:
    """Prompt-loop front end over a SessionStore."""

    _LINE_PREFIX = "assistant> "

    def __init__(self, store: SessionStore):
        self._store = store
        self._signed_out = False
        self._controller = SessionController(line_prefix=self._LINE_PREFIX)
        self._router = CommandRouter(
            on_help=self._on_help,
            on_new=self._on_new,
            on_sessions=self._on_sessions,
            on_select=self._on_select,
            on_sign_out=self._on_sign_out,
            on_unknown=self._on_unknown,
        )

    @property
    def signed_out(self) -> bool:
        return self._signed_out

    def print_welcome(self) -> None:
        session = self._store.current_session
        if session is not None and session.messages:
            print(f"{self._LINE_PREFIX}Resuming: {session.title}")
            return
        print(f"{self._LINE_PREFIX}Your coding partner. Try one of:")
        for label, prompt in STARTER_PROMPTS:
            print(f"{self._LINE_PREFIX}  {label}: {prompt}")

    async def handle(self, user_input: str) -> None:
        if await self._router.try_handle(user_input):
            return

        result = await self._store.send_message(user_input)
        if result.status == "completed" and result.session is not None:
            print(self._controller.format_message(result.session.messages[-1]))
        elif result.status == "rejected":
            print(f"{self._LINE_PREFIX}Still answering the previous message in this session.")
        elif result.status == "failed":
            print(f"{self._LINE_PREFIX}No response: {type(result.error).__name__}: {result.error}")
        if result.status == "completed" and not result.persisted:
            logger.debug(f"Session {result.session_id} is ahead of persisted state")

    async def _on_help(self) -> None:
        print(f"{self._LINE_PREFIX}Commands:")
        print(f"{self._LINE_PREFIX}  /new               start a new chat")
        print(f"{self._LINE_PREFIX}  /sessions          list chats, * marks the current one")
        print(f"{self._LINE_PREFIX}  /select <id|title> switch to another chat")
        print(f"{self._LINE_PREFIX}  /signout           sign out and clear local chats")
        print(f"{self._LINE_PREFIX}  exit | quit        leave")

    async def _on_new(self) -> None:
        session = self._store.create_session()
        print(f"{self._LINE_PREFIX}Started new chat [{self._controller.short_id(session.id)}]")

    async def _on_sessions(self) -> None:
        sessions = self._store.sessions
        if not sessions:
            print(f"{self._LINE_PREFIX}No chats yet.")
            return
        for session in sessions:
            print(
                self._controller.format_session_list_entry(
                    session,
                    active_session_id=self._store.current_session_id,
                )
            )

    async def _on_select(self, identifier: str) -> None:
        if not identifier:
            print(f"{self._LINE_PREFIX}Usage: /select <id|title>")
            return
        try:
            session = self._controller.resolve_session_identifier(self._store.sessions, identifier)
        except ValueError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        if session is None:
            print(f"{self._LINE_PREFIX}No chat matches {identifier!r}")
            return

        self._store.select_session(session.id)
        print(f"{self._LINE_PREFIX}Switched to: {session.title}")
        for message in session.messages:
            print(self._controller.format_message(message))

    async def _on_sign_out(self) -> None:
        await self._store.sign_out()
        self._signed_out = True
        print(f"{self._LINE_PREFIX}Signed out.")

    def _on_unknown(self, command: str) -> None:
        print(f"{self._LINE_PREFIX}Unknown command: {command}. Type /help.")
