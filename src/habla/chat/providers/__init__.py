"""LLM provider factory - selects provider from settings."""

from __future__ import annotations

from ...config import Settings
from ..errors import ConfigurationError
from ..llm_provider import LLMProvider


def create_provider(api_key: str | None, settings: Settings) -> LLMProvider:
    """Create the configured LLM provider for ``api_key``.

    Raises:
        ConfigurationError: If no API key is given.
        ValueError: If ``settings.provider`` is unknown.
    """
    if not api_key:
        raise ConfigurationError(f"No API key configured. Set {settings.api_key_name}.")

    if settings.provider == "anthropic":
        from .anthropic_provider import AnthropicProvider

        return AnthropicProvider(
            api_key=api_key,
            model=settings.model,
            correction_model=settings.correction_model,
            language=settings.language,
            max_tokens=settings.max_tokens,
        )

    if settings.provider == "openai":
        from .openai_provider import OpenAIProvider

        return OpenAIProvider(
            api_key=api_key,
            model=settings.model,
            correction_model=settings.correction_model,
            language=settings.language,
            max_tokens=settings.max_tokens,
        )

    raise ValueError(f"Unknown provider: {settings.provider!r}")
