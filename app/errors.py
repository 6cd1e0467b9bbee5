"""Structured error types for TODO document operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

# Core error kinds raised by the markdown document engine.
INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
INVALID_LINE_KIND = "INVALID_LINE_KIND"
INVALID_TASK_FORMAT = "INVALID_TASK_FORMAT"
INVALID_MOVE_TARGET = "INVALID_MOVE_TARGET"
INVALID_POSITION = "INVALID_POSITION"
NOT_FOUND = "NOT_FOUND"
ALREADY_EXISTS = "ALREADY_EXISTS"
EMPTY_OPERATION = "EMPTY_OPERATION"

ERROR_MESSAGES = {
    INDEX_OUT_OF_RANGE: "Line index is outside the document.",
    INVALID_LINE_KIND: "Line does not have the expected kind for this operation.",
    INVALID_TASK_FORMAT: "Task line prefix could not be parsed.",
    INVALID_MOVE_TARGET: "A task cannot be moved into its own subtree.",
    INVALID_POSITION: "position must be one of before, inside, after.",
    NOT_FOUND: "Requested item was not found.",
    ALREADY_EXISTS: "Item already exists.",
    EMPTY_OPERATION: "There are no completed tasks to settle.",
}

ERROR_STATUS_CODES = {
    NOT_FOUND: 404,
    ALREADY_EXISTS: 409,
    "AUTH_REQUIRED": 401,
    "AUTH_FORBIDDEN": 403,
}


@dataclass(frozen=True)
class ErrorResponse:
    """Serializable error payload returned by request handlers."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class TodoError(RuntimeError):
    """Exception carrying a structured error response.

    Core transforms pass only the error kind and details; the message falls
    back to the stable text registered in ``ERROR_MESSAGES``.
    """

    def __init__(
        self,
        code: str,
        message: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        message = message or ERROR_MESSAGES.get(code, code)
        super().__init__(message)
        self.error = ErrorResponse(
            code=code, message=message, details=dict(details or {})
        )

    @property
    def code(self) -> str:
        return self.error.code


def status_code_for(error: ErrorResponse) -> int:
    return ERROR_STATUS_CODES.get(error.code, 400)


def success_response(payload: dict[str, Any]) -> dict[str, Any]:
    """Wrap a successful response in the standard envelope."""
    return {"ok": True, "data": payload}


def error_response(error: ErrorResponse) -> dict[str, Any]:
    """Wrap an error response in the standard envelope."""
    return {"ok": False, "error": error.to_dict()}
