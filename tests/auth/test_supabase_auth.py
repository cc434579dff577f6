import asyncio
import unittest
from types import SimpleNamespace

from supabase import AuthApiError

from codegpt_chat.auth.supabase_auth import SupabaseAuthClient, identity_from_user
from codegpt_chat.errors import PersistenceError

_USER = SimpleNamespace(
    id="u1",
    email="dev@example.com",
    user_metadata={"full_name": "Dev Person"},
)


class _FakeAuth:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.user_error: Exception | None = None

    async def sign_in_with_password(self, credentials: dict):
        self.calls.append(("sign_in", credentials))
        if credentials["password"] == "wrong":
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        return SimpleNamespace(user=_USER, session=SimpleNamespace(access_token="jwt-1"))

    async def get_user(self, jwt: str | None = None):
        self.calls.append(("get_user",))
        if self.user_error is not None:
            raise self.user_error
        return SimpleNamespace(user=_USER)

    async def sign_out(self, options: dict | None = None) -> None:
        self.calls.append(("sign_out",))


class SupabaseAuthClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self._auth = _FakeAuth()
        self._client = SupabaseAuthClient(SimpleNamespace(auth=self._auth))
        self._seen: list = []

    async def _listener(self, identity) -> None:
        self._seen.append(identity)

    def test_identity_defaults_name_to_user(self) -> None:
        identity = identity_from_user(SimpleNamespace(id="u2", email=None, user_metadata={}))
        self.assertEqual("User", identity.user.name)
        self.assertEqual("", identity.user.email)

    def test_sign_in_notifies_and_revalidates(self) -> None:
        async def scenario():
            self._client.subscribe(self._listener)
            identity = await self._client.sign_in_with_password("dev@example.com", "secret")
            current = await self._client.current_identity()
            return identity, current

        identity, current = asyncio.run(scenario())
        self.assertEqual("u1", identity.id)
        self.assertEqual("Dev Person", identity.user.name)
        self.assertEqual(identity, current)
        self.assertEqual([identity], self._seen)
        self.assertEqual(
            [("sign_in", {"email": "dev@example.com", "password": "secret"}), ("get_user",)],
            self._auth.calls,
        )

    def test_failed_sign_in_raises(self) -> None:
        with self.assertRaises(PersistenceError):
            asyncio.run(self._client.sign_in_with_password("dev@example.com", "wrong"))
        self.assertIsNone(asyncio.run(self._client.current_identity()))

    def test_current_identity_is_none_before_sign_in(self) -> None:
        self.assertIsNone(asyncio.run(self._client.current_identity()))
        self.assertEqual([], self._auth.calls)

    def test_expired_token_signs_out(self) -> None:
        async def scenario():
            await self._client.sign_in_with_password("dev@example.com", "secret")
            self._client.subscribe(self._listener)
            self._auth.user_error = AuthApiError("invalid JWT", 401, "bad_jwt")
            return await self._client.current_identity()

        self.assertIsNone(asyncio.run(scenario()))
        self.assertEqual([None], self._seen)

    def test_other_lookup_errors_raise(self) -> None:
        async def scenario():
            await self._client.sign_in_with_password("dev@example.com", "secret")
            self._auth.user_error = AuthApiError("upstream unavailable", 500, None)
            await self._client.current_identity()

        with self.assertRaises(PersistenceError):
            asyncio.run(scenario())

    def test_sign_out_calls_auth_and_notifies(self) -> None:
        async def scenario():
            await self._client.sign_in_with_password("dev@example.com", "secret")
            unsubscribe = self._client.subscribe(self._listener)
            await self._client.sign_out()
            unsubscribe()
            await self._client.sign_out()

        asyncio.run(scenario())
        self.assertEqual([None], self._seen)
        self.assertEqual(1, self._auth.calls.count(("sign_out",)))


if __name__ == "__main__":
    unittest.main()
