"""WebSocket broadcast rooms, one actor per room key."""

from __future__ import annotations

__all__ = [
    "BroadcastEvent",
    "Connection",
    "RoomActor",
    "RoomNamespace",
    "RoomState",
    "broadcast",
    "create_event",
]

from multiprotocol_api.rooms.actor import RoomActor, RoomNamespace, RoomState
from multiprotocol_api.rooms.broadcast import BroadcastEvent, Connection, broadcast, create_event
