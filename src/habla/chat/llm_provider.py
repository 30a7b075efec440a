"""LLM Provider protocol and ChatMessage dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .corrections import CorrectionResult

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ChatMessage:
    """A single chat message."""

    role: str  # "user", "assistant", "system"
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    def to_api(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers: streamed replies plus structured corrections."""

    @property
    def name(self) -> str:
        """Human-readable provider name (e.g. 'Claude', 'GPT-4o')."""
        ...

    def stream_response(
        self, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        """Stream response tokens for the given message history.

        Args:
            messages: List of ChatMessage (system, user, assistant).

        Yields:
            String tokens as they arrive.

        Raises:
            AuthError: The provider rejected the credential.
            TransportError: Network failure or malformed stream.
        """
        ...

    async def request_corrections(self, user_text: str) -> CorrectionResult | None:
        """Analyze one learner message for grammar and style issues.

        Returns None when the provider sends no usable content.
        """
        ...
