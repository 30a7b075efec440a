"""Transcript that streams display events to a WebSocket client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from ..chat.corrections import CorrectionResult
from ..chat.transcript import TranscriptBase, TurnHandle

logger = logging.getLogger(__name__)

_CLOSE = object()


class EventReply:
    """Assistant placeholder on the client side, fed by token events."""

    def __init__(self, transcript: WebSocketTranscript) -> None:
        self._transcript = transcript
        self._parts: list[str] = []

    def append_delta(self, text: str) -> None:
        self._parts.append(text)
        self._transcript.emit({"type": "token", "content": text})

    def finish(self) -> None:
        self._transcript.emit({"type": "done", "content": "".join(self._parts)})

    def fail(self) -> None:
        self._transcript.emit({"type": "aborted", "content": "".join(self._parts)})


class WebSocketTranscript(TranscriptBase):
    """Queues JSON events in render order; ``pump`` sends them."""

    def __init__(self) -> None:
        super().__init__()
        self._queue: asyncio.Queue = asyncio.Queue()

    def emit(self, event: dict[str, Any]) -> None:
        self._queue.put_nowait(event)

    def request_configuration(self) -> None:
        self.emit({"type": "configure"})

    def _show_user_turn(self, handle: TurnHandle, text: str) -> None:
        self.emit({"type": "user", "turn": handle.turn_id, "content": text})

    def _show_assistant_placeholder(self) -> EventReply:
        self.emit({"type": "assistant_start"})
        return EventReply(self)

    def _show_corrections(self, handle: TurnHandle, result: CorrectionResult) -> None:
        self.emit({"type": "corrections", "turn": handle.turn_id, **result.to_wire()})

    def _show_error(self, text: str) -> None:
        self.emit({"type": "error", "content": text})

    def _show_info(self, text: str) -> None:
        self.emit({"type": "info", "content": text})

    def _show_cleared(self) -> None:
        self.emit({"type": "cleared"})

    async def pump(self, websocket: WebSocket) -> None:
        """Send queued events until ``close`` is called or the client leaves."""
        while True:
            event = await self._queue.get()
            if event is _CLOSE:
                return
            try:
                await websocket.send_json(event)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug("Dropping events, client gone: %s", e)
                return

    def close(self) -> None:
        self._queue.put_nowait(_CLOSE)
