"""Error taxonomy shared by adapters, services and routes."""

from __future__ import annotations

from typing import Any, Optional


class CoffeyError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigurationError(CoffeyError):
    """A required secret or setting is missing. Never retried."""

    status_code = 500


class ProviderError(CoffeyError):
    """An external provider returned a non-2xx, unreachable, or malformed response."""

    status_code = 502

    def __init__(self, provider: str, message: str, status: Optional[int] = None):
        super().__init__(f"{provider}: {message}", details={"provider": provider, "status": status})
        self.provider = provider
        self.status = status


class ValidationError(CoffeyError):
    """Malformed caller input, rejected before any enrichment work starts."""

    status_code = 400


class UploadError(CoffeyError):
    """The irreversible image-host upload step failed (or the file was refused)."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class TransientFetchError(CoffeyError):
    """A bookmark artifact was not ready or could not be downloaded yet."""

    status_code = 503


class NotFoundError(CoffeyError):
    status_code = 404


def error_message(exc: BaseException) -> str:
    """Best-effort human readable message for any exception."""
    if isinstance(exc, CoffeyError):
        return exc.message
    return str(exc) or exc.__class__.__name__
