"""Transcript renderer contract.

The orchestrator never touches display widgets directly. It asks a renderer
for opaque handles and mutates the view through them: append streamed text
to an assistant placeholder, and attach a correction annotation to an
earlier user turn.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Protocol

from .corrections import CorrectionResult
from .errors import AnnotationAlreadyAttached


@dataclass(frozen=True)
class TurnHandle:
    """Opaque reference to a rendered user turn."""

    turn_id: int


class AssistantPlaceholder(Protocol):
    def append_delta(self, text: str) -> None:
        ...

    def finish(self) -> None:
        ...

    def fail(self) -> None:
        """The reply stopped early. Streamed text stays; an empty placeholder may go."""
        ...

class TranscriptRenderer(Protocol):
    def render_user_turn(self, text: str) -> TurnHandle:
        ...

    def render_assistant_placeholder(self) -> AssistantPlaceholder:
        ...

    def attach_corrections(self, handle: TurnHandle, result: CorrectionResult) -> None:
        ...

    def render_error(self, text: str) -> None:
        ...

    def render_info(self, text: str) -> None:
        ...


class TranscriptBase:
    """Handle bookkeeping shared by every concrete transcript view.

    Subclasses implement the ``_show_*`` hooks. Each user turn accepts
    corrections once; annotations are only displayed when the result
    actually has issues.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._known: set[TurnHandle] = set()
        self._annotated: set[TurnHandle] = set()

    def render_user_turn(self, text: str) -> TurnHandle:
        handle = TurnHandle(next(self._ids))
        self._known.add(handle)
        self._show_user_turn(handle, text)
        return handle

    def render_assistant_placeholder(self) -> AssistantPlaceholder:
        return self._show_assistant_placeholder()

    def attach_corrections(self, handle: TurnHandle, result: CorrectionResult) -> None:
        if handle not in self._known:
            raise KeyError(f"Unknown turn handle: {handle!r}")
        if handle in self._annotated:
            raise AnnotationAlreadyAttached(f"Corrections already attached to turn {handle.turn_id}")
        self._annotated.add(handle)
        if result.needs_annotation:
            self._show_corrections(handle, result)

    def is_annotated(self, handle: TurnHandle) -> bool:
        return handle in self._annotated

    def render_error(self, text: str) -> None:
        self._show_error(text)

    def render_info(self, text: str) -> None:
        self._show_info(text)

    def clear(self) -> None:
        self._known.clear()
        self._annotated.clear()
        self._show_cleared()

    # --- Display hooks ---

    def _show_user_turn(self, handle: TurnHandle, text: str) -> None:
        raise NotImplementedError

    def _show_assistant_placeholder(self) -> AssistantPlaceholder:
        raise NotImplementedError

    def _show_corrections(self, handle: TurnHandle, result: CorrectionResult) -> None:
        raise NotImplementedError

    def _show_error(self, text: str) -> None:
        raise NotImplementedError

    def _show_info(self, text: str) -> None:
        raise NotImplementedError

    def _show_cleared(self) -> None:
        pass
