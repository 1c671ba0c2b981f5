"""Per-room actors for WebSocket broadcast.

Each room key owns one :class:`RoomState` (the live connection set) and, while
the room is awake, one :class:`RoomActor` that handles lifecycle events for it.
The state lives in the :class:`RoomNamespace`, not in the actor, so an actor can
be torn down between events ("hibernated") and rebuilt without losing the set
of attached connections.

All mutations of a room's live set run under that room's ``asyncio.Lock``;
different rooms never share a lock. Broadcasts send to a snapshot of the set
taken under the lock, so a slow recipient never holds it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Literal

from multiprotocol_api.operations.errors import UpgradeRequired
from multiprotocol_api.rooms.broadcast import Connection, broadcast, create_event

logger = logging.getLogger(__name__)

RoomStatus = Literal["Idle", "Active"]


def require_upgrade(headers: Mapping[str, str]) -> None:
    """Reject requests that do not ask for a WebSocket upgrade."""

    if headers.get("upgrade", "").strip().lower() != "websocket":
        raise UpgradeRequired()


class RoomState:
    """Durable part of a room: the connections currently attached to it."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.lock = asyncio.Lock()
        self._connections: dict[str, Connection] = {}

    def attach(self, connection: Connection) -> None:
        if connection.room_key is not None:
            raise ValueError(
                f"Connection {connection.id} is already attached to room {connection.room_key!r}"
            )
        connection.room_key = self.key
        connection.attached_at = datetime.now(tz=UTC)
        self._connections[connection.id] = connection

    def detach(self, connection: Connection) -> bool:
        removed = self._connections.pop(connection.id, None)
        if removed is None:
            return False
        connection.room_key = None
        return True

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def is_idle(self) -> bool:
        return not self._connections


class RoomActor:
    """Handles upgrade, message, close and error events for one room."""

    def __init__(self, state: RoomState, *, send_timeout: float = 1.0) -> None:
        self.state = state
        self.send_timeout = send_timeout

    @property
    def key(self) -> str:
        return self.state.key

    @property
    def status(self) -> RoomStatus:
        return "Idle" if self.state.is_idle else "Active"

    async def accept(self, connection: Connection) -> Connection:
        """Open ``connection`` and add it to the live set.

        The connection is handed back to the caller, which owns its receive loop.
        """

        async with self.state.lock:
            self.state.attach(connection)
            try:
                await connection.open()
            except Exception:
                self.state.detach(connection)
                raise
        logger.info(
            "Connection accepted",
            extra={
                "room": self.key,
                "connection_id": connection.id,
                "connections": self.state.connection_count,
            },
        )
        return connection

    async def on_message(self, connection: Connection, message: str | bytes) -> None:
        text = message if isinstance(message, str) else message.decode("utf-8", errors="replace")
        event = create_event("message", {"content": text}, {"from": "user"})
        async with self.state.lock:
            recipients = self.state.connections()
        await broadcast(recipients, event, connection, send_timeout=self.send_timeout)

    async def on_close(self, connection: Connection, code: int = 1000, reason: str = "") -> None:
        async with self.state.lock:
            self.state.detach(connection)
        logger.info(
            "Connection closed",
            extra={
                "room": self.key,
                "connection_id": connection.id,
                "code": code,
                "reason": reason,
                "status": self.status,
            },
        )

    async def on_error(self, connection: Connection, error: BaseException) -> None:
        """Drop a connection whose transport failed; other connections are untouched."""

        logger.error(
            "Connection error",
            extra={"room": self.key, "connection_id": connection.id, "error": repr(error)},
        )
        async with self.state.lock:
            attached = self.state.detach(connection)
        if not attached:
            return
        try:
            await connection.close(code=1011, reason="Internal error")
        except Exception:
            logger.debug(
                "Close after error failed",
                extra={"room": self.key, "connection_id": connection.id},
                exc_info=True,
            )

    async def publish(
        self, type_: str, payload: Any, meta: Mapping[str, Any] | None = None
    ) -> None:
        """Broadcast a server-originated event to every connection in the room."""

        event = create_event(type_, payload, meta)
        async with self.state.lock:
            recipients = self.state.connections()
        await broadcast(recipients, event, send_timeout=self.send_timeout)


class RoomNamespace:
    """Addresses rooms by key, waking an actor on demand."""

    def __init__(self, *, send_timeout: float = 1.0) -> None:
        self.send_timeout = send_timeout
        self._states: dict[str, RoomState] = {}
        self._actors: dict[str, RoomActor] = {}

    def get(self, key: str) -> RoomActor:
        actor = self._actors.get(key)
        if actor is not None:
            return actor
        state = self._states.get(key)
        if state is None:
            state = self._states[key] = RoomState(key)
        actor = self._actors[key] = RoomActor(state, send_timeout=self.send_timeout)
        logger.debug(
            "Room actor started",
            extra={"room": key, "connections": state.connection_count},
        )
        return actor

    def state(self, key: str) -> RoomState | None:
        return self._states.get(key)

    def room_keys(self) -> list[str]:
        return sorted(self._states)

    def hibernate(self, key: str) -> None:
        """Tear down the actor instance for ``key`` while keeping its connections."""

        if self._actors.pop(key, None) is not None:
            logger.debug("Room actor hibernated", extra={"room": key})

    def evict_if_idle(self, key: str) -> bool:
        """Forget ``key`` entirely when it has no connections and nothing in flight."""

        state = self._states.get(key)
        if state is None or not state.is_idle or state.lock.locked():
            return False
        self._states.pop(key, None)
        self._actors.pop(key, None)
        logger.debug("Room evicted", extra={"room": key})
        return True
