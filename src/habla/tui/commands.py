"""Command parser for chat slash commands."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChatCommand:
    """Parsed chat command with name and optional arguments."""

    name: str
    args: str


COMMANDS: dict[str, str] = {
    "help": "Show available commands",
    "clear": "Start a new conversation",
    "key": "Set the API key (/key <value>) or open settings",
}


def parse_command(text: str) -> ChatCommand | None:
    """Parse a chat input string into a ChatCommand if it starts with /.

    Returns None if text does not start with /.
    Splits on first space: "/key foo" -> ChatCommand(name="key", args="foo").
    Returns ChatCommand for ANY /command (known or unknown).
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None

    without_slash = stripped[1:]
    if not without_slash:
        return None

    parts = without_slash.split(None, 1)
    name = parts[0].lower()
    args = parts[1] if len(parts) > 1 else ""

    return ChatCommand(name=name, args=args)
