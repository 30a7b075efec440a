"""OpenAI provider with async streaming and schema-constrained corrections."""

from __future__ import annotations

import logging
from typing import AsyncIterator

import openai

from ..corrections import CORRECTION_SCHEMA, CORRECTION_SCHEMA_NAME, CorrectionResult, parse_corrections
from ..errors import ConfigurationError, classify_provider_error
from ..llm_provider import ChatMessage
from ..system_prompt import build_correction_prompt

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """LLM provider using OpenAI's API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        correction_model: str | None = None,
        language: str = "Spanish",
        max_tokens: int = 2048,
    ) -> None:
        if not api_key:
            raise ConfigurationError("No OpenAI API key configured")

        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model
        self._correction_model = correction_model or model
        self._language = language
        self._max_tokens = max_tokens

    @property
    def name(self) -> str:
        return f"OpenAI ({self._model})"

    async def stream_response(
        self, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        """Stream response tokens from OpenAI."""
        api_messages = [m.to_api() for m in messages]

        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=api_messages,
                max_completion_tokens=self._max_tokens,
                stream=True,
            )

            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta.content:
                    yield delta.content
        except openai.OpenAIError as e:
            raise classify_provider_error(e) from e

    async def request_corrections(self, user_text: str) -> CorrectionResult | None:
        """Ask for structured corrections of one learner message."""
        try:
            response = await self._client.chat.completions.create(
                model=self._correction_model,
                messages=[
                    {"role": "system", "content": build_correction_prompt(self._language)},
                    {"role": "user", "content": user_text},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": CORRECTION_SCHEMA_NAME,
                        "strict": True,
                        "schema": CORRECTION_SCHEMA,
                    },
                },
            )
        except openai.OpenAIError as e:
            raise classify_provider_error(e) from e

        if not response.choices:
            return None
        message = response.choices[0].message
        if getattr(message, "refusal", None):
            logger.info("Correction request refused: %s", message.refusal)
            return None
        return parse_corrections(message.content)
