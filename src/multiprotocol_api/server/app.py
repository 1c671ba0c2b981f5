"""FastAPI app factory.

Routers are thin translators over the operation registry; no business logic
lives in this package.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from multiprotocol_api import __version__
from multiprotocol_api.config import ServerSettings
from multiprotocol_api.operations.errors import DispatchError, UpgradeRequired
from multiprotocol_api.operations.handlers import build_registry
from multiprotocol_api.rooms.actor import RoomNamespace
from multiprotocol_api.server.mcp import router as mcp_router
from multiprotocol_api.server.openapi import router as openapi_router
from multiprotocol_api.server.rest import router as rest_router
from multiprotocol_api.server.rpc import router as rpc_router
from multiprotocol_api.server.ws import router as ws_router
from multiprotocol_api.store import TaskStore, build_task_store

logger = logging.getLogger(__name__)


async def _dispatch_error(request: Request, exc: DispatchError) -> JSONResponse:
    logger.warning(
        "Dispatch failed",
        extra={"kind": exc.kind, "path": request.url.path, "error": exc.message},
    )
    return JSONResponse(exc.to_body(), status_code=400)


async def _upgrade_required(_request: Request, exc: UpgradeRequired) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=426, headers={"Upgrade": "websocket"})


def create_app(
    settings: ServerSettings | None = None,
    *,
    store: TaskStore | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Multi-Protocol API",
        version=__version__,
        description="REST, RPC and MCP-style tools over one set of operations, plus broadcast rooms.",
        # The served document is derived from the registry; see server/openapi.py.
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.registry = build_registry()
    app.state.store = store if store is not None else build_task_store(settings.task_store_path)
    app.state.rooms = RoomNamespace(send_timeout=settings.broadcast_send_timeout_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DispatchError, _dispatch_error)
    app.add_exception_handler(UpgradeRequired, _upgrade_required)

    app.include_router(rest_router)
    app.include_router(rpc_router)
    app.include_router(mcp_router)
    app.include_router(openapi_router)
    app.include_router(ws_router)

    logger.debug(
        "App created",
        extra={"operations": sorted(app.state.registry), "store": type(app.state.store).__name__},
    )
    return app
