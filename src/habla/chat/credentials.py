"""API credential storage.

The chat only needs get/set. The durable store keeps the key in a .env file
so the same value is picked up by ``load_dotenv`` on the next start.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from dotenv import get_key, set_key


class CredentialStore(Protocol):
    def get(self) -> str | None:
        ...

    def set(self, value: str) -> None:
        ...


class DotenvCredentialStore:
    """Credential kept under ``key_name`` in a .env file."""

    def __init__(self, path: Path, key_name: str) -> None:
        self._path = Path(path)
        self._key_name = key_name

    @property
    def key_name(self) -> str:
        return self._key_name

    def get(self) -> str | None:
        value = None
        if self._path.exists():
            value = get_key(str(self._path), self._key_name)
        if value is None:
            value = os.getenv(self._key_name)
        return _clean(value)

    def set(self, value: str) -> None:
        value = _require(value)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)
        set_key(str(self._path), self._key_name, value)


class MemoryCredentialStore:
    """Process-local credential, lost on exit."""

    def __init__(self, value: str | None = None) -> None:
        self._value = _clean(value)

    def get(self) -> str | None:
        return self._value

    def set(self, value: str) -> None:
        self._value = _require(value)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require(value: str) -> str:
    cleaned = _clean(value)
    if cleaned is None:
        raise ValueError("Please enter an API key")
    return cleaned
