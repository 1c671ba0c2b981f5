"""Operation registry and name-based dispatch.

An :class:`Operation` binds a name to an input model, an output model and an
async handler. The registry is built once and is read-only afterwards; every
protocol adapter funnels through :meth:`OperationRegistry.dispatch`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ValidationError

from multiprotocol_api.logging import log_context
from multiprotocol_api.operations.errors import (
    DispatchError,
    HandlerFailed,
    OperationTimeout,
    UnknownOperation,
    ValidationFailed,
    violations_from,
)
from multiprotocol_api.store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationContext:
    """Ambient bindings handed to every handler."""

    store: TaskStore
    timeout_seconds: float = 10.0


Handler = Callable[[Any, OperationContext], Awaitable[BaseModel]]


@dataclass(frozen=True, slots=True)
class Operation:
    name: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    handler: Handler
    description: str = ""

    def validate_input(self, raw_params: Any) -> BaseModel:
        if raw_params is None:
            raw_params = {}
        try:
            return self.input_model.model_validate(raw_params)
        except ValidationError as e:
            raise ValidationFailed(self.name, violations_from(e)) from e


class OperationRegistry(Mapping[str, Operation]):
    """Immutable name -> operation mapping."""

    def __init__(self, operations: Iterable[Operation]) -> None:
        table: dict[str, Operation] = {}
        for op in operations:
            if op.name in table:
                raise ValueError(f"Duplicate operation name: {op.name}")
            table[op.name] = op
        self._operations = MappingProxyType(table)

    def __getitem__(self, name: str) -> Operation:
        return self._operations[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def lookup(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperation(name) from None

    async def dispatch(self, name: str, raw_params: Any, context: OperationContext) -> BaseModel:
        """Validate ``raw_params`` for ``name`` and run its handler.

        Raises:
            UnknownOperation: No operation is registered under ``name``.
            ValidationFailed: ``raw_params`` violates the input model.
            OperationTimeout: The handler ran past ``context.timeout_seconds``.
            HandlerFailed: The handler raised, or returned an invalid output.
        """

        with log_context(operation=name):
            return await self._dispatch(name, raw_params, context)

    async def _dispatch(self, name: str, raw_params: Any, context: OperationContext) -> BaseModel:
        op = self.lookup(name)
        params = op.validate_input(raw_params)

        try:
            result = await asyncio.wait_for(
                op.handler(params, context), timeout=context.timeout_seconds
            )
        except DispatchError:
            raise
        except TimeoutError as e:
            logger.warning(
                "Operation timed out",
                extra={"timeout_seconds": context.timeout_seconds},
            )
            raise OperationTimeout(name, context.timeout_seconds) from e
        except Exception as e:
            logger.exception("Operation handler failed")
            raise HandlerFailed(name, e) from e

        try:
            if isinstance(result, op.output_model):
                return result
            return op.output_model.model_validate(result)
        except ValidationError as e:
            logger.exception("Operation returned an invalid result")
            raise HandlerFailed(name, e) from e
