"""Request-scoped helpers shared by the protocol routers."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

from multiprotocol_api.config import ServerSettings
from multiprotocol_api.operations.errors import InvalidEnvelope, violations_from
from multiprotocol_api.operations.registry import OperationContext, OperationRegistry

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


def get_settings(request: Request) -> ServerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, ServerSettings):
        # This should never happen for the real app, but keeps the API fail-fast.
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def get_registry(request: Request) -> OperationRegistry:
    return request.app.state.registry


def get_context(request: Request) -> OperationContext:
    return OperationContext(
        store=request.app.state.store,
        timeout_seconds=get_settings(request).operation_timeout_seconds,
    )


async def read_json_body(request: Request) -> Any:
    """Decode the request body; an empty body reads as ``None``."""

    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidEnvelope("Malformed JSON body") from e


def parse_envelope(model: type[EnvelopeT], body: Any) -> EnvelopeT:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidEnvelope(f"Invalid {model.__name__} envelope", details=violations_from(e)) from e
