"""Runtime settings read from the environment (and .env via python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}

API_KEY_NAMES = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


@dataclass(frozen=True)
class Settings:
    """Tutor configuration shared by the TUI and the web server."""

    provider: str = "openai"
    model: str = DEFAULT_MODELS["openai"]
    correction_model: str = ""  # empty: same as model
    language: str = "Spanish"
    level: str = "beginner"
    max_tokens: int = 2048
    correction_timeout: float = 20.0
    auth_prompt_delay: float = 1.0
    env_file: Path = field(default_factory=lambda: Path.cwd() / ".env")

    @property
    def api_key_name(self) -> str:
        return API_KEY_NAMES[self.provider]

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from HABLA_* environment variables.

        Raises:
            ValueError: If the provider is unknown or a numeric value is malformed.
        """
        provider = os.getenv("HABLA_PROVIDER", "openai").strip().lower()
        if provider not in DEFAULT_MODELS:
            raise ValueError(
                f"HABLA_PROVIDER must be one of {sorted(DEFAULT_MODELS)}, got {provider!r}"
            )

        model = os.getenv("HABLA_MODEL") or DEFAULT_MODELS[provider]
        return cls(
            provider=provider,
            model=model,
            correction_model=os.getenv("HABLA_CORRECTION_MODEL") or model,
            language=os.getenv("HABLA_LANGUAGE", "Spanish"),
            level=os.getenv("HABLA_LEVEL", "beginner"),
            max_tokens=_env_number("HABLA_MAX_TOKENS", 2048, int),
            correction_timeout=_env_number("HABLA_CORRECTION_TIMEOUT", 20.0, float),
            auth_prompt_delay=_env_number("HABLA_AUTH_PROMPT_DELAY", 1.0, float),
            env_file=Path(os.getenv("HABLA_ENV_FILE") or Path.cwd() / ".env"),
        )


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value
