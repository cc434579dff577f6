from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from codegpt_chat.models import Message

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
    "gemini": "gemini-2.5-pro",
}


@runtime_checkable
class CompletionClient(Protocol):
    async def complete(self, history: Sequence[Message], content: str) -> str:
        """Return the assistant's reply to ``content``.

        ``history`` is the full session history, already ending with the user
        turn that carries ``content``.

        Any exception means the request failed; callers do not distinguish
        between transport, model and parsing errors.
        """
        ...


def create_provider(
    provider_name: str,
    api_key: str,
    *,
    model: str | None = None,
    max_tokens: int = 8192,
    temperature: float = 1.0,
    system_prompt: str = "",
    max_attempts: int = 1,
) -> CompletionClient:
    """Factory: create a CompletionClient by name."""
    name = provider_name.strip().lower()
    kwargs = {
        "model": model or DEFAULT_MODELS.get(name, ""),
        "max_tokens": max_tokens,
        "temperature": temperature,
        "system_prompt": system_prompt,
        "max_attempts": max_attempts,
    }
    if name == "anthropic":
        from codegpt_chat.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, **kwargs)
    if name == "openai":
        from codegpt_chat.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, **kwargs)
    if name == "gemini":
        from codegpt_chat.providers.gemini_provider import GeminiProvider
        return GeminiProvider(api_key, **kwargs)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'anthropic', 'openai', 'gemini'")
