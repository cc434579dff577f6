from collections.abc import Sequence

import openai
from loguru import logger
from tenacity import retry

from codegpt_chat.errors import CompletionError
from codegpt_chat.models import Message
from codegpt_chat.providers.common import default_retry_kwargs, to_chat_messages


def _to_openai_messages(system_prompt: str, history: Sequence[Message], content: str) -> list[dict]:
    """Prepend the system prompt as a system message."""
    out: list[dict] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    out.extend(to_chat_messages(history, content))
    return out


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        max_attempts: int = 1,
    ):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._create = retry(**default_retry_kwargs(
            (
                openai.RateLimitError,
                openai.APIConnectionError,
                openai.APITimeoutError,
            ),
            max_attempts,
        ))(self._create_once)

    async def complete(self, history: Sequence[Message], content: str) -> str:
        return await self._create(_to_openai_messages(self._system_prompt, history, content))

    async def _create_once(self, messages: list[dict]) -> str:
        logger.debug(
            f"API request: model={self._model}, max_tokens={self._max_tokens}, messages={len(messages)}"
        )
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=messages,
        )
        if not response.choices:
            raise CompletionError(f"No choices in response from {self._model}")

        choice = response.choices[0]
        text = choice.message.content or ""
        logger.debug(f"API response: finish_reason={choice.finish_reason}, len={len(text)}")
        if not text:
            raise CompletionError(f"Empty response from {self._model} (finish_reason={choice.finish_reason})")
        return text
