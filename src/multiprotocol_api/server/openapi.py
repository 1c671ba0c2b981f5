"""OpenAPI 3.1 document derived from the operation registry and the REST table.

Only the ``servers`` block depends on the request (its base URL).
"""

from __future__ import annotations

from typing import Any

import yaml
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from pydantic.json_schema import models_json_schema

from multiprotocol_api.operations.handlers import build_registry
from multiprotocol_api.operations.registry import OperationRegistry
from multiprotocol_api.schemas import ErrorResponse, Task
from multiprotocol_api.server.dependencies import get_registry, get_settings
from multiprotocol_api.server.rest import REST_ROUTES

_REF_TEMPLATE = "#/components/schemas/{model}"

_TAGS = [
    {"name": "Tasks", "description": "Operations related to tasks"},
    {"name": "Analysis", "description": "Operations related to analysis"},
]


def _ref(model: type[BaseModel]) -> dict[str, str]:
    return {"$ref": _REF_TEMPLATE.format(model=model.__name__)}


def _json_content(model: type[BaseModel]) -> dict[str, Any]:
    return {"application/json": {"schema": _ref(model)}}


def _component_models(registry: OperationRegistry) -> list[type[BaseModel]]:
    models: list[type[BaseModel]] = [Task, ErrorResponse]
    for op in registry.values():
        for model in (op.input_model, op.output_model):
            if model not in models:
                models.append(model)
    return models


def build_openapi_document(
    base_url: str,
    *,
    version: str = "1.0.0",
    registry: OperationRegistry | None = None,
) -> dict[str, Any]:
    if registry is None:
        registry = build_registry()

    _, top_level = models_json_schema(
        [(m, "validation") for m in _component_models(registry)],
        ref_template=_REF_TEMPLATE,
    )

    paths: dict[str, dict[str, Any]] = {}
    for route in REST_ROUTES:
        op = registry.lookup(route.operation)
        operation: dict[str, Any] = {
            "operationId": op.name,
            "summary": route.summary,
            "description": route.description,
            "tags": [route.tag],
            "responses": {
                "200": {"description": "Success.", "content": _json_content(op.output_model)},
            },
        }
        if route.method == "POST":
            operation["requestBody"] = {
                "required": True,
                "content": _json_content(op.input_model),
            }
            operation["responses"]["400"] = {
                "description": "Invalid request payload.",
                "content": _json_content(ErrorResponse),
            }
        paths.setdefault(route.path, {})[route.method.lower()] = operation

    return {
        "openapi": "3.1.0",
        "jsonSchemaDialect": "https://json-schema.org/draft/2020-12/schema",
        "info": {
            "title": "Multi-Protocol API",
            "version": version,
            "description": (
                "Task and analysis operations served over REST, RPC and an MCP-style "
                "tool protocol, plus WebSocket broadcast rooms."
            ),
        },
        "servers": [{"url": base_url, "description": "Main server"}],
        "tags": _TAGS,
        "paths": paths,
        "components": {"schemas": top_level.get("$defs", {})},
    }


def render_yaml(document: dict[str, Any]) -> str:
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


router = APIRouter()


def _document_for(request: Request) -> dict[str, Any]:
    return build_openapi_document(
        str(request.base_url).rstrip("/"),
        version=get_settings(request).api_version,
        registry=get_registry(request),
    )


@router.get("/openapi.json", include_in_schema=False)
def openapi_json(request: Request) -> JSONResponse:
    return JSONResponse(_document_for(request))


@router.get("/openapi.yaml", include_in_schema=False)
def openapi_yaml(request: Request) -> Response:
    return Response(render_yaml(_document_for(request)), media_type="application/yaml")
