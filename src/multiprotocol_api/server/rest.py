"""REST surface: fixed method+path pairs mapped onto named operations.

The route table is also what the OpenAPI generator walks, so the document can
never drift from the routes actually served.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from multiprotocol_api.schemas import HealthResponse
from multiprotocol_api.server.dependencies import (
    get_context,
    get_registry,
    get_settings,
    read_json_body,
)


@dataclass(frozen=True, slots=True)
class RestRoute:
    method: Literal["GET", "POST"]
    path: str
    operation: str
    summary: str
    description: str
    tag: str


REST_ROUTES: tuple[RestRoute, ...] = (
    RestRoute(
        method="POST",
        path="/api/tasks",
        operation="createTask",
        summary="Create a new task",
        description="Takes a title and returns the newly created task object.",
        tag="Tasks",
    ),
    RestRoute(
        method="GET",
        path="/api/tasks",
        operation="listTasks",
        summary="List all tasks",
        description="Returns an array of all tasks in the system.",
        tag="Tasks",
    ),
    RestRoute(
        method="POST",
        path="/api/analyze",
        operation="runAnalysis",
        summary="Run an analysis on a task",
        description="Performs an analysis for a given task ID.",
        tag="Analysis",
    ),
)


def _endpoint_for(route: RestRoute) -> Callable[[Request], Awaitable[JSONResponse]]:
    async def endpoint(request: Request) -> JSONResponse:
        params = await read_json_body(request) if route.method == "POST" else None
        result = await get_registry(request).dispatch(
            route.operation, params, get_context(request)
        )
        return JSONResponse(result.model_dump(mode="json"))

    endpoint.__name__ = route.operation
    return endpoint


router = APIRouter()


@router.get("/", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    return HealthResponse(ts=datetime.now(tz=UTC), version=get_settings(request).api_version)


for _route in REST_ROUTES:
    router.add_api_route(
        _route.path,
        _endpoint_for(_route),
        methods=[_route.method],
        summary=_route.summary,
        tags=[_route.tag],
        response_model=None,
    )
