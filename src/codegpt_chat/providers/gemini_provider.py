from collections.abc import Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from loguru import logger
from tenacity import retry

from codegpt_chat.errors import CompletionError
from codegpt_chat.models import Message
from codegpt_chat.providers.common import default_retry_kwargs, prior_turns


def _to_gemini_history(history: Sequence[Message]) -> list[dict]:
    # Gemini calls the assistant side "model".
    return [
        {"role": "user" if m.role == "user" else "model", "parts": [m.content]}
        for m in history
    ]


class GeminiProvider:
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
        genai.configure(api_key=api_key)
        self._model_name = model
        self._model = genai.GenerativeModel(
            model,
            system_instruction=system_prompt or None,
            generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
        )
        self._create = retry(**default_retry_kwargs(
            (
                google_exceptions.ResourceExhausted,
                google_exceptions.ServiceUnavailable,
                google_exceptions.DeadlineExceeded,
            ),
            max_attempts,
        ))(self._create_once)

    async def complete(self, history: Sequence[Message], content: str) -> str:
        return await self._create(_to_gemini_history(prior_turns(history, content)), content)

    async def _create_once(self, history: list[dict], content: str) -> str:
        logger.debug(f"API request: model={self._model_name}, history={len(history)}")
        chat = self._model.start_chat(history=history)
        response = await chat.send_message_async(content)

        try:
            text = response.text
        except ValueError as ex:
            # Raised by the SDK when the candidate was blocked or has no parts.
            raise CompletionError(f"Unusable response from {self._model_name}: {ex}") from ex

        logger.debug(f"API response: len={len(text or '')}")
        if not text:
            raise CompletionError(f"Empty response from {self._model_name}")
        return text
