"""CLI entrypoint: run the server or print its derived descriptions."""

from __future__ import annotations

import argparse
import json
import logging
import sys

import uvicorn
from pydantic import ValidationError

from multiprotocol_api import __version__
from multiprotocol_api.config import ServerSettings
from multiprotocol_api.logging import configure_logging
from multiprotocol_api.operations.handlers import build_registry
from multiprotocol_api.server.mcp import ToolAdapter
from multiprotocol_api.server.openapi import build_openapi_document, render_yaml

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multiprotocol-api",
        description="Serve task operations over REST, RPC, MCP tools and WebSocket rooms",
    )
    parser.add_argument("--version", action="version", version=f"multiprotocol-api {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP/WebSocket server")
    serve.add_argument("--host", default=None, help="Bind address (defaults to MULTIPROTOCOL_HOST)")
    serve.add_argument(
        "--port", type=int, default=None, help="Bind port (defaults to MULTIPROTOCOL_PORT)"
    )
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (dev only)")

    openapi = subparsers.add_parser("openapi", help="Print the OpenAPI document")
    openapi.add_argument("--format", choices=("json", "yaml"), default="json")
    openapi.add_argument(
        "--base-url",
        default=None,
        help="URL for the servers block (defaults to http://<host>:<port>)",
    )

    subparsers.add_parser("tools", help="Print the MCP tool listing as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ServerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        host = args.host or settings.host
        port = args.port or settings.port
        logger.info("Starting server", extra={"host": host, "port": port})
        uvicorn.run(
            "multiprotocol_api.server:create_app",
            factory=True,
            host=host,
            port=port,
            reload=args.reload,
            log_config=None,
        )
        return 0

    if args.command == "openapi":
        base_url = args.base_url or f"http://{settings.host}:{settings.port}"
        document = build_openapi_document(base_url, version=settings.api_version)
        if args.format == "yaml":
            print(render_yaml(document), end="")
        else:
            print(json.dumps(document, indent=2, ensure_ascii=False))
        return 0

    if args.command == "tools":
        listing = ToolAdapter(build_registry()).tools()
        print(json.dumps(listing.model_dump(mode="json", by_alias=True), indent=2))
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
