"""Chat WebSocket endpoint - streamed replies and asynchronous corrections."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ...chat.errors import ConfigurationError
from ...chat.history import ConversationHistory
from ...chat.orchestrator import TurnOrchestrator
from ...chat.system_prompt import build_persona_prompt
from ..models import ChatMessageRequest
from ..transcript import WebSocketTranscript

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.websocket("/ws/chat")
async def chat_websocket(websocket: WebSocket):
    await websocket.accept()

    state = websocket.app.state
    settings = state.settings
    transcript = WebSocketTranscript()
    orchestrator = TurnOrchestrator(
        history=ConversationHistory(build_persona_prompt(settings.language, settings.level)),
        transcript=transcript,
        credentials=state.credentials,
        settings=settings,
        provider_factory=state.provider_factory,
        on_configuration_required=transcript.request_configuration,
    )
    sender = asyncio.create_task(transcript.pump(websocket))

    if not state.credentials.get():
        transcript.request_configuration()

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                request = ChatMessageRequest.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError):
                transcript.render_error("Malformed message")
                continue

            if request.action == "clear":
                if orchestrator.reset():
                    transcript.clear()
                continue

            try:
                await orchestrator.submit_turn(request.content)
            except ConfigurationError as e:
                transcript.render_error(str(e))

    except WebSocketDisconnect:
        logger.debug("Chat client disconnected")
    finally:
        await orchestrator.aclose()
        transcript.close()
        await sender
