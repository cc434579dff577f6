from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from supabase import acreate_client

from codegpt_chat.app_config import AppConfig, RuntimeEnv
from codegpt_chat.auth import IdentityProvider, LocalIdentityProvider, SupabaseAuthClient
from codegpt_chat.logging_config import setup_logging
from codegpt_chat.persistence import SessionRepository, SqliteSessionRepository, SupabaseSessionRepository
from codegpt_chat.provider import create_provider
from codegpt_chat.session_store import SessionStore
from codegpt_chat.system_prompt import get_system_prompt


@dataclass
class AppRuntime:
    store: SessionStore
    identity: IdentityProvider
    repository: SessionRepository | None
    log_descriptions: list[str]


async def _build_persistence(app: AppConfig, env: RuntimeEnv) -> tuple[IdentityProvider, SessionRepository | None]:
    if app.persistence == "supabase":
        if not env.supabase_url or not env.supabase_anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required for Supabase persistence.")
        client = await acreate_client(env.supabase_url, env.supabase_anon_key)
        # One client for both, so table queries carry the signed-in user's token.
        return SupabaseAuthClient(client), SupabaseSessionRepository(client)

    identity = LocalIdentityProvider.for_user(app.user_email, app.user_name)
    if app.persistence == "none":
        return identity, None

    db_path = Path(app.db_path)
    if not db_path.is_absolute():
        db_path = Path.cwd() / db_path
    return identity, SqliteSessionRepository(str(db_path))


async def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    if not env.provider_api_key:
        raise ValueError(f"{env.provider_env_var} environment variable is required.")

    completion = create_provider(
        app.provider_name,
        env.provider_api_key,
        model=app.model,
        max_tokens=app.max_tokens,
        temperature=app.temperature,
        system_prompt=get_system_prompt(),
        max_attempts=app.completion_max_attempts,
    )
    identity, repository = await _build_persistence(app, env)

    store = SessionStore(completion, identity, repository, title_max_chars=app.title_max_chars)
    store.attach()

    if isinstance(identity, SupabaseAuthClient):
        if not env.supabase_email or not env.supabase_password:
            raise ValueError("SUPABASE_EMAIL and SUPABASE_PASSWORD are required to sign in.")
        # The signed-in notification triggers the initial load.
        await identity.sign_in_with_password(env.supabase_email, env.supabase_password)
    else:
        await store.load_sessions()

    logger.info(f"Runtime ready: provider={app.provider_name}, persistence={app.persistence}")
    return AppRuntime(
        store=store,
        identity=identity,
        repository=repository,
        log_descriptions=log_descriptions,
    )


async def shutdown_runtime(runtime: AppRuntime) -> None:
    await runtime.store.wait_for_pending_writes()
    runtime.store.detach()
    if runtime.repository is not None:
        await runtime.repository.close()
