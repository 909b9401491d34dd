"""Exception hierarchy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict


class SoundMatchError(Exception):
    """Base class for errors reported to API clients."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(SoundMatchError):
    """Client input was missing or malformed; raised before any external call."""

    status_code = 400


class ExternalServiceError(SoundMatchError):
    """The vision model or the vector database failed."""

    status_code = 500


class DescriptionError(ExternalServiceError):
    """The vision model answered without any text."""


class ResponseShapeError(ExternalServiceError):
    """An external response did not match the expected structure."""
