"""WebSocket surface: ``/ws?projectId=<room>`` joins a broadcast room."""

from __future__ import annotations

from fastapi import APIRouter, Request, WebSocket

from multiprotocol_api.logging import log_context
from multiprotocol_api.operations.errors import UpgradeRequired
from multiprotocol_api.rooms.actor import RoomNamespace, require_upgrade
from multiprotocol_api.rooms.broadcast import Connection

router = APIRouter()


class WebSocketConnection(Connection):
    """Adapts a Starlette WebSocket to the room connection interface."""

    def __init__(self, websocket: WebSocket) -> None:
        super().__init__()
        self.websocket = websocket

    async def open(self) -> None:
        await self.websocket.accept()

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self.websocket.close(code=code, reason=reason)


@router.get("/ws", include_in_schema=False)
def websocket_over_http(request: Request) -> None:
    require_upgrade(request.headers)
    # An Upgrade header on a plain HTTP scope means the server did not negotiate it.
    raise UpgradeRequired("WebSocket upgrade was not negotiated by the server")


@router.websocket("/ws")
async def room_socket(websocket: WebSocket) -> None:
    settings = websocket.app.state.settings
    rooms: RoomNamespace = websocket.app.state.rooms
    room_key = websocket.query_params.get("projectId") or settings.default_room

    connection = await rooms.get(room_key).accept(WebSocketConnection(websocket))
    with log_context(room=room_key, connection_id=connection.id):
        try:
            while True:
                message = await websocket.receive()
                # The actor may have been hibernated between frames; get() wakes it.
                actor = rooms.get(room_key)
                if message["type"] == "websocket.disconnect":
                    await actor.on_close(
                        connection, message.get("code", 1000), message.get("reason") or ""
                    )
                    break
                data = message.get("text")
                if data is None:
                    data = message.get("bytes") or b""
                await actor.on_message(connection, data)
        except Exception as e:
            await rooms.get(room_key).on_error(connection, e)
        finally:
            if connection.room_key is not None:
                # Cancelled before a close frame arrived (server shutdown, test client teardown).
                # detach() never awaits and broadcasts iterate a snapshot of the live set.
                rooms.get(room_key).state.detach(connection)
            rooms.evict_if_idle(room_key)
