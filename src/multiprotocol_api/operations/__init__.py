"""Schema-validated operations shared by every protocol adapter."""

from __future__ import annotations

__all__ = [
    "DispatchError",
    "HandlerFailed",
    "InvalidEnvelope",
    "Operation",
    "OperationContext",
    "OperationRegistry",
    "OperationTimeout",
    "UnknownOperation",
    "UpgradeRequired",
    "ValidationFailed",
    "build_registry",
]

from multiprotocol_api.operations.errors import (
    DispatchError,
    HandlerFailed,
    InvalidEnvelope,
    OperationTimeout,
    UnknownOperation,
    UpgradeRequired,
    ValidationFailed,
)
from multiprotocol_api.operations.handlers import build_registry
from multiprotocol_api.operations.registry import Operation, OperationContext, OperationRegistry
