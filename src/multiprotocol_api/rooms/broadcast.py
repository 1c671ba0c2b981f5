"""Fan-out of one event to many WebSocket connections.

Delivery is best-effort: the frame is serialized once, every send runs
concurrently under a timeout, and a failed recipient is logged and skipped.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)


class Connection(ABC):
    """A live socket attached to at most one room."""

    def __init__(self, connection_id: str | None = None) -> None:
        self.id = connection_id or uuid.uuid4().hex
        self.room_key: str | None = None
        self.attached_at: datetime | None = None

    async def open(self) -> None:
        """Complete the transport handshake. No-op for transports that are already open."""

    @abstractmethod
    async def send_text(self, data: str) -> None: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, room_key={self.room_key!r})"


@dataclass(frozen=True, slots=True)
class BroadcastEvent:
    type: str
    payload: Any
    meta: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload, "meta": dict(self.meta)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


def create_event(
    type_: str, payload: Any, meta: Mapping[str, Any] | None = None
) -> BroadcastEvent:
    """Build an event whose meta always carries a generation timestamp."""

    merged = {"timestamp": datetime.now(tz=UTC).isoformat(), **(meta or {})}
    return BroadcastEvent(type=type_, payload=payload, meta=MappingProxyType(merged))


async def _deliver(connection: Connection, frame: str, timeout: float) -> None:
    try:
        await asyncio.wait_for(connection.send_text(frame), timeout=timeout)
    except TimeoutError:
        logger.warning(
            "Broadcast send timed out",
            extra={"connection_id": connection.id, "room": connection.room_key},
        )
    except Exception:
        logger.exception(
            "Failed to send broadcast frame",
            extra={"connection_id": connection.id, "room": connection.room_key},
        )


async def broadcast(
    connections: Iterable[Connection],
    event: BroadcastEvent | str,
    exclude: Connection | None = None,
    *,
    send_timeout: float = 1.0,
) -> None:
    """Send ``event`` to every connection except ``exclude``.

    Returns nothing; a recipient that fails or stalls never affects the others.
    """

    frame = event if isinstance(event, str) else event.to_json()
    recipients = [c for c in connections if c is not exclude]
    if not recipients:
        return
    await asyncio.gather(
        *(_deliver(c, frame, send_timeout) for c in recipients), return_exceptions=True
    )
