"""Tests for the connection manager."""
from typing import Any

from api.connections import ConnectionManager


class Recorder:
    """Connection that records messages."""

    def __init__(self) -> None:
        self.messages: list[Any] = []

    async def send_json(self, data: Any) -> None:
        self.messages.append(data)


class Broken:
    """Connection whose client has gone away."""

    async def send_json(self, data: Any) -> None:  # noqa: ARG002
        raise RuntimeError("socket closed")


class TestConnectionManager:
    """Tests for ConnectionManager."""

    async def test__send_to_user__reaches_all_user_connections(self) -> None:
        """Every tab of a user receives user-targeted messages; others don't."""
        manager = ConnectionManager()
        tab1, tab2, other = Recorder(), Recorder(), Recorder()
        manager.connect("u1", tab1)
        manager.connect("u1", tab2)
        manager.connect("u2", other)

        await manager.send_to_user("u1", {"n": 1})

        assert tab1.messages == [{"n": 1}]
        assert tab2.messages == [{"n": 1}]
        assert other.messages == []

    async def test__broadcast__reaches_everyone(self) -> None:
        """Broadcasts go to all users."""
        manager = ConnectionManager()
        a, b = Recorder(), Recorder()
        manager.connect("u1", a)
        manager.connect("u2", b)

        await manager.broadcast({"n": 2})

        assert a.messages == [{"n": 2}]
        assert b.messages == [{"n": 2}]

    async def test__broadcast__drops_failed_connections(self) -> None:
        """A dead connection doesn't block others and is forgotten."""
        manager = ConnectionManager()
        good = Recorder()
        manager.connect("u1", Broken())
        manager.connect("u2", good)

        await manager.broadcast({"n": 3})

        assert good.messages == [{"n": 3}]
        assert manager.user_ids == ["u2"]

    async def test__disconnect__is_idempotent(self) -> None:
        """Disconnecting twice or for unknown users is harmless."""
        manager = ConnectionManager()
        conn = Recorder()
        manager.connect("u1", conn)
        manager.disconnect("u1", conn)
        manager.disconnect("u1", conn)
        manager.disconnect("nobody", conn)
        assert manager.user_ids == []

    async def test__send_to_user__unknown_user_is_noop(self) -> None:
        """Sending to a user with no connections does nothing."""
        await ConnectionManager().send_to_user("ghost", {"n": 4})
