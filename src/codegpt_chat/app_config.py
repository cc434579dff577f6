from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

_API_KEY_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

PERSISTENCE_BACKENDS = ("sqlite", "supabase", "none")


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    supabase_url: str | None
    supabase_anon_key: str | None
    supabase_email: str | None
    supabase_password: str | None


@dataclass
class AppConfig:
    provider_name: str
    model: str | None
    max_tokens: int
    temperature: float
    completion_max_attempts: int
    title_max_chars: int
    persistence: str
    db_path: str
    user_email: str
    user_name: str
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    persistence = str(config.get("Persistence", "sqlite")).strip().lower()
    if persistence not in PERSISTENCE_BACKENDS:
        raise ValueError(
            f"Unknown persistence backend: {persistence!r}. Supported: {', '.join(PERSISTENCE_BACKENDS)}"
        )
    return AppConfig(
        provider_name=config.get("Provider", "anthropic").strip().lower(),
        model=str(config.get("Model", "")).strip() or None,
        max_tokens=int(config.get("MaxTokens", 8192)),
        temperature=float(config.get("Temperature", 1.0)),
        completion_max_attempts=max(1, int(config.get("CompletionMaxAttempts", 1))),
        title_max_chars=max(1, int(config.get("TitleMaxChars", 30))),
        persistence=persistence,
        db_path=str(config.get("DbPath", ".codegpt/sessions.db")),
        user_email=str(config.get("UserEmail", "local@localhost")),
        user_name=str(config.get("UserName", "User")),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    provider_env_var = _API_KEY_ENV_VARS.get(provider_name, "ANTHROPIC_API_KEY")
    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
        supabase_url=os.environ.get("SUPABASE_URL"),
        supabase_anon_key=os.environ.get("SUPABASE_ANON_KEY"),
        supabase_email=os.environ.get("SUPABASE_EMAIL"),
        supabase_password=os.environ.get("SUPABASE_PASSWORD"),
    )
