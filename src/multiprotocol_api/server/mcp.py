"""Tool surface (MCP-style): discover operations as tools and execute them.

- ``GET /mcp/tools`` lists every registered operation with the JSON schema of its input
- ``POST /mcp/execute`` takes ``{tool, params}`` and dispatches like ``/rpc``
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from multiprotocol_api.operations.registry import OperationContext, OperationRegistry
from multiprotocol_api.schemas import (
    ResultResponse,
    ToolDescriptor,
    ToolExecuteRequest,
    ToolListResponse,
)
from multiprotocol_api.server.dependencies import (
    get_context,
    get_registry,
    parse_envelope,
    read_json_body,
)


class ToolAdapter:
    def __init__(self, registry: OperationRegistry) -> None:
        self.registry = registry

    def tools(self) -> ToolListResponse:
        return ToolListResponse(
            tools=[
                ToolDescriptor(
                    name=op.name,
                    description=op.description or f"Tool for {op.name}",
                    schema=op.input_model.model_json_schema(),
                )
                for op in self.registry.values()
            ]
        )

    async def execute(self, body: Any, context: OperationContext) -> ResultResponse:
        # Envelope problems are InvalidEnvelope; an unknown tool name is UnknownOperation.
        envelope = parse_envelope(ToolExecuteRequest, body)
        result = await self.registry.dispatch(envelope.tool, envelope.params, context)
        return ResultResponse(result=result.model_dump(mode="json"))


router = APIRouter(prefix="/mcp")


@router.get("/tools", response_model=ToolListResponse)
def list_tools(request: Request) -> ToolListResponse:
    return ToolAdapter(get_registry(request)).tools()


@router.post("/execute", response_model=ResultResponse)
async def execute_tool(request: Request) -> ResultResponse:
    body = await read_json_body(request)
    return await ToolAdapter(get_registry(request)).execute(body, get_context(request))
