"""Generic RPC surface: ``POST /rpc`` with ``{method, params}``."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from multiprotocol_api.operations.registry import OperationContext, OperationRegistry
from multiprotocol_api.schemas import ResultResponse, RpcRequest
from multiprotocol_api.server.dependencies import (
    get_context,
    get_registry,
    parse_envelope,
    read_json_body,
)

router = APIRouter()


async def dispatch_rpc(
    registry: OperationRegistry, body: Any, context: OperationContext
) -> ResultResponse:
    envelope = parse_envelope(RpcRequest, body)
    result = await registry.dispatch(envelope.method, envelope.params, context)
    return ResultResponse(result=result.model_dump(mode="json"))


@router.post("/rpc", response_model=ResultResponse)
async def rpc(request: Request) -> ResultResponse:
    body = await read_json_body(request)
    return await dispatch_rpc(get_registry(request), body, get_context(request))
