"""Correction models and the structured-output schema sent to the provider."""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError

from .errors import CorrectionValidationError

logger = logging.getLogger(__name__)


class CorrectionItem(BaseModel):
    """One grammar error or style suggestion for a learner message."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    kind: Literal["error", "style"] = Field(alias="type")
    original: StrictStr
    suggestion: StrictStr
    explanation: StrictStr


class CorrectionResult(BaseModel):
    """Analysis of a single user turn."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    has_issues: StrictBool = Field(alias="hasIssues")
    items: tuple[CorrectionItem, ...] = Field(alias="corrections")

    @property
    def needs_annotation(self) -> bool:
        return self.has_issues and bool(self.items)

    @property
    def error_count(self) -> int:
        return sum(1 for item in self.items if item.kind == "error")

    @property
    def style_count(self) -> int:
        return sum(1 for item in self.items if item.kind == "style")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Strict-mode JSON schema: every field required, no additional properties.
CORRECTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "hasIssues": {"type": "boolean"},
        "corrections": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["error", "style"]},
                    "original": {"type": "string"},
                    "suggestion": {"type": "string"},
                    "explanation": {"type": "string"},
                },
                "required": ["type", "original", "suggestion", "explanation"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["hasIssues", "corrections"],
    "additionalProperties": False,
}

CORRECTION_SCHEMA_NAME = "language_corrections"


def validate_corrections(payload: str | bytes | dict[str, Any]) -> CorrectionResult:
    """Validate a correction payload.

    Raises:
        CorrectionValidationError: If the payload is not valid JSON or does
            not match the schema.
    """
    try:
        if isinstance(payload, (str, bytes)):
            return CorrectionResult.model_validate_json(payload)
        return CorrectionResult.model_validate(payload)
    except ValidationError as e:
        raise CorrectionValidationError(str(e)) from e


def parse_corrections(payload: str | bytes | dict[str, Any] | None) -> CorrectionResult | None:
    """Parse a correction payload, returning None for empty or invalid content."""
    if payload is None:
        return None
    if isinstance(payload, (str, bytes)) and not payload.strip():
        return None

    try:
        return validate_corrections(payload)
    except CorrectionValidationError as e:
        logger.warning("Discarding malformed correction payload: %s", _first_line(str(e)))
        return None


def _first_line(text: str) -> str:
    return text.splitlines()[0] if text else text

