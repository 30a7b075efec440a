"""Pydantic models for API request/response types."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SettingsStatus(BaseModel):
    configured: bool
    provider: str
    model: str
    language: str


class ApiKeyUpdate(BaseModel):
    api_key: str = Field(min_length=1)


class ChatMessageRequest(BaseModel):
    content: str = ""
    action: str | None = None
