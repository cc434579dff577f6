from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from supabase import AsyncClient, AuthApiError, AuthError

from codegpt_chat.auth.identity import IdentityListener, ListenerRegistry
from codegpt_chat.errors import PersistenceError
from codegpt_chat.models import Identity, User

# GoTrue answers 401 or 403 for an expired or revoked token.
_EXPIRED_STATUSES = (401, 403)


def identity_from_user(user) -> Identity:
    metadata = user.user_metadata or {}
    return Identity(
        id=str(user.id),
        user=User(
            email=user.email or "",
            name=metadata.get("full_name") or "User",
        ),
    )


class SupabaseAuthClient:
    """Password sign-in through Supabase auth."""

    def __init__(self, client: AsyncClient):
        self._client = client
        self._identity: Identity | None = None
        self._listeners = ListenerRegistry()

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        return self._listeners.subscribe(listener)

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        try:
            response = await self._client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as ex:
            raise PersistenceError(f"Sign-in failed: {ex.message}") from ex
        if response.user is None:
            raise PersistenceError("Sign-in failed: no user returned")

        self._identity = identity_from_user(response.user)
        logger.info(f"Signed in as {self._identity.user.email}")
        await self._listeners.notify(self._identity)
        return self._identity

    async def current_identity(self) -> Identity | None:
        """Re-validate the session; ``None`` when there is no live session."""
        if self._identity is None:
            return None
        try:
            response = await self._client.auth.get_user()
        except AuthApiError as ex:
            if ex.status in _EXPIRED_STATUSES:
                logger.warning("Supabase session expired")
                await self._drop_session()
                return None
            raise PersistenceError(f"User lookup failed: {ex.message}") from ex
        if response is None or response.user is None:
            await self._drop_session()
            return None
        self._identity = identity_from_user(response.user)
        return self._identity

    async def sign_out(self) -> None:
        if self._identity is not None:
            try:
                await self._client.auth.sign_out()
            except AuthError as ex:
                logger.warning(f"Supabase sign-out failed: {ex.message}")
        await self._drop_session()

    async def _drop_session(self) -> None:
        self._identity = None
        await self._listeners.notify(None)
