"""In-memory conversation history sent as context with every reply request."""

from __future__ import annotations

from .llm_provider import ChatMessage


class ConversationHistory:
    """Append-only message log headed by an optional persona message."""

    def __init__(self, persona: str | None = None) -> None:
        self._persona = ChatMessage(role="system", content=persona) if persona else None
        self._messages: list[ChatMessage] = []

    @property
    def persona(self) -> ChatMessage | None:
        return self._persona

    def append(self, message: ChatMessage) -> None:
        """Add a user or assistant message to the end of the log."""
        if message.role == "system":
            raise ValueError("The persona message is fixed when the history is created")
        self._messages.append(message)

    def commit_turn(self, user: ChatMessage, assistant: ChatMessage) -> None:
        """Append a completed exchange as a pair."""
        if user.role != "user" or assistant.role != "assistant":
            raise ValueError("A turn is a user message followed by an assistant message")
        self._messages.extend((user, assistant))

    def snapshot(self) -> list[ChatMessage]:
        """Full prompt context: persona first, then every turn in order."""
        head = [self._persona] if self._persona else []
        return head + list(self._messages)

    def turns(self) -> list[ChatMessage]:
        return list(self._messages)

    def reset(self) -> None:
        """Forget all turns. The persona is kept."""
        self._messages.clear()

    def __len__(self) -> int:
        return len(self.snapshot())
