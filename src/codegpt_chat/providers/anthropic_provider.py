from collections.abc import Sequence

import anthropic
from loguru import logger
from tenacity import retry

from codegpt_chat.errors import CompletionError
from codegpt_chat.models import Message
from codegpt_chat.providers.common import default_retry_kwargs, to_chat_messages


class AnthropicProvider:
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
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._create = retry(**default_retry_kwargs(
            (
                anthropic.RateLimitError,
                anthropic.APIConnectionError,
                anthropic.APITimeoutError,
            ),
            max_attempts,
        ))(self._create_once)

    async def complete(self, history: Sequence[Message], content: str) -> str:
        return await self._create(to_chat_messages(history, content))

    async def _create_once(self, messages: list[dict]) -> str:
        logger.debug(
            f"API request: model={self._model}, max_tokens={self._max_tokens}, messages={len(messages)}"
        )
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            system=self._system_prompt,
            messages=messages,
        )
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise CompletionError(f"Empty response from {self._model} (stop_reason={response.stop_reason})")
        return text
