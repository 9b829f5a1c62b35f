"""Application errors and their HTTP representation."""

from __future__ import annotations

import logging
from http import HTTPStatus

log = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that are reported to API clients."""

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    label: str = "Internal error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    def to_payload(self) -> dict[str, str]:
        """Return the JSON body sent to the client."""
        return {"error": self.message}


class FileError(AppError):
    status = HTTPStatus.BAD_REQUEST
    label = "File processing error"


class LlmError(AppError):
    status = HTTPStatus.BAD_GATEWAY
    label = "LLM API error"


class InternalError(AppError):
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    label = "Internal error"

    def to_payload(self) -> dict[str, str]:
        log.error("Internal error: %s", self.message)
        return {"error": "Internal server error"}