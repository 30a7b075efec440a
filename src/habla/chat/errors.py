"""Error taxonomy for the tutoring chat.

Reply-path errors (AuthError, TransportError) are rendered in the transcript.
Correction-path errors are logged and never shown to the learner.
"""

from __future__ import annotations

AUTH_STATUS_CODES = (401, 403)


class HablaError(Exception):
    """Base class for all chat errors."""


class ConfigurationError(HablaError):
    """No credential is configured; no network call was attempted."""


class TransportError(HablaError):
    """Network, HTTP or stream decoding failure talking to the provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(TransportError):
    """The provider rejected the credential."""


class CorrectionValidationError(HablaError):
    """A correction payload did not match the correction schema."""


class AnnotationAlreadyAttached(HablaError):
    """Corrections were attached to the same user turn twice."""


def is_auth_failure(exc: BaseException) -> bool:
    """Return True if ``exc`` looks like a rejected credential.

    Prefers the HTTP status exposed by the SDK exception. The message check
    ("401" / "API key") is a fallback for transports without status codes.
    """
    if isinstance(exc, AuthError):
        return True
    status = getattr(exc, "status_code", None)
    if status is not None:
        return status in AUTH_STATUS_CODES
    message = str(exc)
    return "401" in message or "API key" in message


def classify_provider_error(exc: BaseException) -> TransportError:
    """Map an SDK exception onto AuthError or TransportError."""
    if isinstance(exc, TransportError):
        return exc
    status = getattr(exc, "status_code", None)
    message = str(exc) or exc.__class__.__name__
    if is_auth_failure(exc):
        return AuthError(message, status_code=status)
    return TransportError(message, status_code=status)
