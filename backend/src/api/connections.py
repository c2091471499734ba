"""Per-user WebSocket connections and message broadcasting."""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can deliver a JSON message to a client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:
        """Send one JSON-serializable message."""


class ConnectionManager:
    """
    Tracks open client connections grouped by user.

    A user may have several connections open (e.g. multiple tabs); messages sent to
    a user go to all of them. Connections that fail to receive a message are dropped.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[Connection]] = defaultdict(set)

    def connect(self, user_id: str, connection: Connection) -> None:
        """Register an accepted connection for a user."""
        self._connections[user_id].add(connection)
        logger.info("User %s connected (%d open)", user_id, len(self._connections[user_id]))

    def disconnect(self, user_id: str, connection: Connection) -> None:
        """Forget a connection; safe to call more than once."""
        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(connection)
        if not connections:
            del self._connections[user_id]
        logger.info("User %s disconnected", user_id)

    @property
    def user_ids(self) -> list[str]:
        """Users with at least one open connection."""
        return list(self._connections)

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> None:
        """Send a message to every connection of one user."""
        targets = [(user_id, c) for c in list(self._connections.get(user_id, ()))]
        await self._send_all(targets, message)

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send a message to every connected client."""
        targets = [
            (user_id, c)
            for user_id, connections in list(self._connections.items())
            for c in list(connections)
        ]
        await self._send_all(targets, message)

    async def _send_all(
        self, targets: list[tuple[str, Connection]], message: dict[str, Any],
    ) -> None:
        results = await asyncio.gather(
            *(connection.send_json(message) for _, connection in targets),
            return_exceptions=True,
        )
        for (user_id, connection), result in zip(targets, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Dropping connection of user %s after send failure: %s", user_id, result)
                self.disconnect(user_id, connection)
