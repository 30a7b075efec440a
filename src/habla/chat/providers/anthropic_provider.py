"""Anthropic Claude provider with async streaming and tool-based corrections."""

from __future__ import annotations

import logging
from typing import AsyncIterator

import anthropic

from ..corrections import CORRECTION_SCHEMA, CORRECTION_SCHEMA_NAME, CorrectionResult, parse_corrections
from ..errors import ConfigurationError, classify_provider_error
from ..llm_provider import ChatMessage
from ..system_prompt import build_correction_prompt

logger = logging.getLogger(__name__)

CORRECTION_TOOL = {
    "name": CORRECTION_SCHEMA_NAME,
    "description": "Report the grammar errors and style issues found in the learner message.",
    "input_schema": CORRECTION_SCHEMA,
}


class AnthropicProvider:
    """LLM provider using Anthropic's Claude API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        correction_model: str | None = None,
        language: str = "Spanish",
        max_tokens: int = 2048,
    ) -> None:
        if not api_key:
            raise ConfigurationError("No Anthropic API key configured")

        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._correction_model = correction_model or model
        self._language = language
        self._max_tokens = max_tokens

    @property
    def name(self) -> str:
        parts = self._model.split("-")
        family = parts[1] if len(parts) > 1 and parts[0] == "claude" else self._model
        return f"Claude ({family})"

    async def stream_response(
        self, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        """Stream response tokens from Claude."""
        # Separate system message from conversation
        system_text = ""
        conversation = []
        for msg in messages:
            if msg.role == "system":
                system_text = msg.content
            else:
                conversation.append(msg.to_api())

        kwargs = {}
        if system_text:
            kwargs["system"] = system_text

        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=conversation,
                **kwargs,
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except anthropic.AnthropicError as e:
            raise classify_provider_error(e) from e

    async def request_corrections(self, user_text: str) -> CorrectionResult | None:
        """Ask for corrections through a forced tool call."""
        try:
            response = await self._client.messages.create(
                model=self._correction_model,
                max_tokens=self._max_tokens,
                system=build_correction_prompt(self._language),
                messages=[{"role": "user", "content": user_text}],
                tools=[CORRECTION_TOOL],
                tool_choice={"type": "tool", "name": CORRECTION_SCHEMA_NAME},
            )
        except anthropic.AnthropicError as e:
            raise classify_provider_error(e) from e

        for block in response.content:
            if block.type == "tool_use" and block.name == CORRECTION_SCHEMA_NAME:
                return parse_corrections(block.input)

        logger.info("Correction response had no %s tool call", CORRECTION_SCHEMA_NAME)
        return None
