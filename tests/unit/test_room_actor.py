"""Unit tests for room actors and the room namespace."""

from __future__ import annotations

import asyncio
import json

import pytest

from multiprotocol_api.operations.errors import UpgradeRequired
from multiprotocol_api.rooms.actor import RoomNamespace, require_upgrade


def _contents(conn) -> list[str]:
    return [json.loads(frame)["payload"]["content"] for frame in conn.sent]


def test_require_upgrade() -> None:
    require_upgrade({"upgrade": "WebSocket"})

    with pytest.raises(UpgradeRequired):
        require_upgrade({})
    with pytest.raises(UpgradeRequired):
        require_upgrade({"upgrade": "h2c"})


def test_accept_opens_and_activates_room(fake_connection) -> None:
    rooms = RoomNamespace()
    actor = rooms.get("alpha")
    conn = fake_connection("a")

    assert actor.status == "Idle"
    returned = asyncio.run(actor.accept(conn))

    assert returned is conn
    assert conn.opened is True
    assert conn.room_key == "alpha"
    assert conn.attached_at is not None
    assert actor.status == "Active"


def test_message_is_relayed_to_everyone_but_the_sender(fake_connection) -> None:
    actor = RoomNamespace().get("alpha")
    a, b, c = fake_connection("a"), fake_connection("b"), fake_connection("c")

    async def scenario() -> None:
        for conn in (a, b, c):
            await actor.accept(conn)
        await actor.on_message(a, "hello")

    asyncio.run(scenario())

    assert a.sent == []
    assert _contents(b) == _contents(c) == ["hello"]
    frame = json.loads(b.sent[0])
    assert frame["type"] == "message"
    assert frame["meta"]["from"] == "user"
    assert frame["meta"]["timestamp"]


def test_binary_frames_are_decoded(fake_connection) -> None:
    actor = RoomNamespace().get("alpha")
    a, b = fake_connection("a"), fake_connection("b")

    async def scenario() -> None:
        await actor.accept(a)
        await actor.accept(b)
        await actor.on_message(a, "héllo".encode())

    asyncio.run(scenario())

    assert _contents(b) == ["héllo"]


def test_failing_recipient_does_not_block_the_rest(fake_connection) -> None:
    actor = RoomNamespace().get("alpha")
    a, b, c = fake_connection("a"), fake_connection("b", fail=True), fake_connection("c")

    async def scenario() -> None:
        for conn in (a, b, c):
            await actor.accept(conn)
        await actor.on_message(a, "still delivered")

    asyncio.run(scenario())

    assert _contents(c) == ["still delivered"]
    assert actor.state.connection_count == 3


def test_rooms_are_independent(fake_connection) -> None:
    rooms = RoomNamespace()
    a, b = fake_connection("a"), fake_connection("b")
    x, y = fake_connection("x"), fake_connection("y")

    async def scenario() -> None:
        await rooms.get("alpha").accept(a)
        await rooms.get("alpha").accept(b)
        await rooms.get("beta").accept(x)
        await rooms.get("beta").accept(y)
        await rooms.get("alpha").on_message(a, "alpha only")

    asyncio.run(scenario())

    assert _contents(b) == ["alpha only"]
    assert x.sent == y.sent == []
    assert rooms.room_keys() == ["alpha", "beta"]


def test_close_removes_connection_and_goes_idle(fake_connection) -> None:
    rooms = RoomNamespace()
    actor = rooms.get("alpha")
    a, b = fake_connection("a"), fake_connection("b")

    async def scenario() -> None:
        await actor.accept(a)
        await actor.accept(b)
        await actor.on_close(a, 1000, "bye")
        await actor.on_message(b, "anyone?")

    asyncio.run(scenario())

    assert a.sent == []
    assert a.room_key is None
    assert actor.status == "Active"

    asyncio.run(actor.on_close(b))
    assert actor.status == "Idle"
    assert rooms.evict_if_idle("alpha") is True
    assert rooms.room_keys() == []


def test_error_drops_only_the_failing_connection(fake_connection) -> None:
    actor = RoomNamespace().get("alpha")
    a, b, c = fake_connection("a"), fake_connection("b"), fake_connection("c")

    async def scenario() -> None:
        for conn in (a, b, c):
            await actor.accept(conn)
        await actor.on_error(b, RuntimeError("transport failed"))
        await actor.on_message(a, "after error")

    asyncio.run(scenario())

    assert b.closed == (1011, "Internal error")
    assert b.sent == []
    assert _contents(c) == ["after error"]
    assert actor.state.connection_count == 2


def test_connection_cannot_join_two_rooms(fake_connection) -> None:
    rooms = RoomNamespace()
    conn = fake_connection("a")

    asyncio.run(rooms.get("alpha").accept(conn))

    with pytest.raises(ValueError, match="already attached"):
        asyncio.run(rooms.get("beta").accept(conn))
    assert rooms.state("beta").connection_count == 0


def test_hibernated_actor_wakes_with_its_connections(fake_connection) -> None:
    rooms = RoomNamespace()
    a, b = fake_connection("a"), fake_connection("b")
    first = rooms.get("alpha")

    async def join() -> None:
        await first.accept(a)
        await first.accept(b)

    asyncio.run(join())
    rooms.hibernate("alpha")

    woken = rooms.get("alpha")
    asyncio.run(woken.on_message(a, "after hibernation"))

    assert woken is not first
    assert woken.status == "Active"
    assert _contents(b) == ["after hibernation"]


def test_active_room_is_not_evicted(fake_connection) -> None:
    rooms = RoomNamespace()
    asyncio.run(rooms.get("alpha").accept(fake_connection("a")))

    assert rooms.evict_if_idle("alpha") is False
    assert rooms.evict_if_idle("missing") is False
    assert rooms.room_keys() == ["alpha"]


def test_publish_reaches_every_connection(fake_connection) -> None:
    actor = RoomNamespace().get("alpha")
    a, b = fake_connection("a"), fake_connection("b")

    async def scenario() -> None:
        await actor.accept(a)
        await actor.accept(b)
        await actor.publish("notice", {"text": "maintenance"}, {"source": "server"})

    asyncio.run(scenario())

    for conn in (a, b):
        frame = json.loads(conn.sent[0])
        assert frame["type"] == "notice"
        assert frame["meta"]["source"] == "server"


def test_stalled_recipient_does_not_block_room_lifecycle(fake_connection) -> None:
    class Stalled(fake_connection):
        async def send_text(self, data: str) -> None:
            await asyncio.sleep(10)

    actor = RoomNamespace(send_timeout=1.0).get("alpha")
    a, slow, b = fake_connection("a"), Stalled("slow"), fake_connection("b")
    closed_while_sending: list[bool] = []

    async def scenario() -> None:
        for conn in (a, slow, b):
            await actor.accept(conn)
        sending = asyncio.create_task(actor.on_message(a, "hello"))
        await asyncio.sleep(0.05)
        await asyncio.wait_for(actor.on_close(b), timeout=0.5)
        closed_while_sending.append(not sending.done())
        await sending

    asyncio.run(scenario())

    assert closed_while_sending == [True]
    assert _contents(b) == ["hello"]
    assert actor.state.connection_count == 2
