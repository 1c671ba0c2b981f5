"""Failure taxonomy for dispatch and the real-time rooms.

Every error carries a stable ``kind`` tag so adapters can render it without
caring which layer raised it.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from multiprotocol_api.schemas import ErrorResponse, FieldViolation


class DispatchError(Exception):
    """Base class for failures that degrade to a structured error envelope."""

    kind = "DispatchError"

    def __init__(self, message: str, *, details: list[FieldViolation] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, details=self.details)

    def to_body(self) -> dict[str, Any]:
        """JSON body of the error envelope; ``details`` only when there are any."""

        exclude = {"details"} if self.details is None else None
        return self.to_response().model_dump(mode="json", exclude=exclude)


class UnknownOperation(DispatchError):
    kind = "UnknownOperation"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown method: {name}")
        self.name = name


class InvalidEnvelope(DispatchError):
    kind = "InvalidEnvelope"


class ValidationFailed(DispatchError):
    kind = "ValidationFailed"

    def __init__(self, operation: str, details: list[FieldViolation]) -> None:
        super().__init__(f"Invalid params for {operation}", details=details)
        self.operation = operation


class HandlerFailed(DispatchError):
    """A handler raised. Only a summary reaches the caller; the cause is logged."""

    kind = "HandlerFailed"

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Operation {operation} failed")
        self.operation = operation
        self.cause = cause


class OperationTimeout(DispatchError):
    kind = "Timeout"

    def __init__(self, operation: str, seconds: float) -> None:
        super().__init__(f"Operation {operation} timed out after {seconds:g}s")
        self.operation = operation
        self.seconds = seconds


class UpgradeRequired(Exception):
    """The WebSocket route was hit without an ``Upgrade: websocket`` header."""

    kind = "UpgradeRequired"

    def __init__(self, message: str = "Expected a WebSocket upgrade request") -> None:
        super().__init__(message)
        self.message = message


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)


def violations_from(exc: ValidationError) -> list[FieldViolation]:
    """Flatten a pydantic error into one violation per failed constraint."""

    violations: list[FieldViolation] = []
    for err in exc.errors(include_url=False):
        ctx = err.get("ctx")
        violations.append(
            FieldViolation(
                path=list(err["loc"]),
                code=err["type"],
                message=err["msg"],
                expected=_jsonable(ctx) if ctx else None,
                received=_jsonable(err.get("input")),
            )
        )
    return violations
