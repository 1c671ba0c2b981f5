"""Configuration for the multi-protocol server.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Nothing here is required at startup: with no environment at all the server runs
with an in-memory task store and permissive CORS.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the REST/RPC/MCP surfaces and the broadcast rooms.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ServerSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    api_version: str = Field(
        default="1.0.0",
        validation_alias="MULTIPROTOCOL_API_VERSION",
        description="Version reported by the health endpoint and the OpenAPI document",
    )

    cors_origins: str = Field(
        default="*",
        validation_alias="MULTIPROTOCOL_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    task_store_path: Path | None = Field(
        default=None,
        validation_alias="MULTIPROTOCOL_TASK_STORE_PATH",
        description=(
            "JSON file used to persist tasks. When unset, tasks live in process memory "
            "and are lost on restart."
        ),
    )

    operation_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="MULTIPROTOCOL_OPERATION_TIMEOUT_SECONDS",
        description="Upper bound for a single operation handler before it fails with Timeout.",
        gt=0,
    )

    broadcast_send_timeout_seconds: float = Field(
        default=1.0,
        validation_alias="MULTIPROTOCOL_BROADCAST_SEND_TIMEOUT_SECONDS",
        description="Upper bound for delivering one broadcast frame to one connection.",
        gt=0,
    )

    default_room: str = Field(
        default="default",
        validation_alias="MULTIPROTOCOL_DEFAULT_ROOM",
        description="Room key used when a WebSocket client does not pass ?projectId=.",
        min_length=1,
    )

    host: str = Field(default="127.0.0.1", validation_alias="MULTIPROTOCOL_HOST")
    port: int = Field(default=8787, validation_alias="MULTIPROTOCOL_PORT", ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
