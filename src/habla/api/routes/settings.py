"""Settings endpoints - credential status and update."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from ..models import ApiKeyUpdate, SettingsStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _status(request: Request) -> SettingsStatus:
    state = request.app.state
    return SettingsStatus(
        configured=state.credentials.get() is not None,
        provider=state.settings.provider,
        model=state.settings.model,
        language=state.settings.language,
    )


@router.get("")
def get_settings(request: Request) -> SettingsStatus:
    return _status(request)


@router.put("/key")
def update_api_key(body: ApiKeyUpdate, request: Request) -> SettingsStatus:
    try:
        request.app.state.credentials.set(body.api_key)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    logger.info("API key updated")
    return _status(request)
