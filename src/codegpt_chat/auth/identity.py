from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from loguru import logger

from codegpt_chat.models import Identity, User

IdentityListener = Callable[[Identity | None], Awaitable[None]]


@runtime_checkable
class IdentityProvider(Protocol):
    async def current_identity(self) -> Identity | None: ...

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register for signed-in/signed-out transitions. Returns an unsubscribe callable."""
        ...

    async def sign_out(self) -> None: ...


class ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def notify(self, identity: Identity | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(identity)
            except Exception as ex:
                logger.error(f"Identity listener failed: {ex}")


class LocalIdentityProvider:
    """Identity held in-process, for the terminal loop and tests."""

    def __init__(self, identity: Identity | None = None):
        self._identity = identity
        self._listeners = ListenerRegistry()

    @classmethod
    def for_user(cls, email: str, name: str = "User") -> LocalIdentityProvider:
        return cls(Identity(id=f"local:{email}", user=User(email=email, name=name)))

    async def current_identity(self) -> Identity | None:
        return self._identity

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        return self._listeners.subscribe(listener)

    async def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        await self._listeners.notify(identity)

    async def sign_out(self) -> None:
        self._identity = None
        await self._listeners.notify(None)
