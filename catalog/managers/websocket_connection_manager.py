import asyncio

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from catalog.logging import logger
from catalog.schemas.response import BroadcastDataModel


class ConnectionManager:
    """
    Manager for websocket subscribers of change notifications.

    Tracks connected clients by subscriber key and fans broadcasts out to
    all of them.
    """

    def __init__(self) -> None:
        """
        Initializes a new instance of the `ConnectionManager` class.

        The `connections` attribute maps subscriber keys to websocket
        connections.
        """
        self.connections: dict[str, WebSocket] = {}

    def connect(self, key: str, websocket: WebSocket) -> None:
        """
        Adds a websocket connection under the given key.

        Args:
            key: Unique identifier for this subscriber.
            websocket: The websocket connection to be added.
        """
        self.connections[key] = websocket
        logger.debug(
            f"websocket object ({id(websocket)}) added to subscribers "
            f"with key {key}"
        )

    def disconnect(self, key: str) -> None:
        """
        Removes a websocket connection by key.

        Args:
            key: The key of the connection to remove.
        """
        if key not in self.connections:
            return

        websocket = self.connections.pop(key)
        logger.debug(
            f"websocket object ({id(websocket)}) removed from subscribers "
            f"for key {key}"
        )

    async def broadcast(self, message: BroadcastDataModel) -> None:
        """
        Broadcasts message to all subscribers concurrently.

        Connections that fail to receive the message are dropped.

        Args:
            message: The notification to send.
        """
        if not self.connections:
            return

        # Snapshot, sends may disconnect entries
        connections_snapshot = list(self.connections.items())
        payload = message.model_dump(mode="json")

        async def safe_send(key: str, connection: WebSocket) -> None:
            try:
                await connection.send_json(payload)
            except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
                logger.warning(
                    f"Failed to send to connection {id(connection)} "
                    f"(key: {key}): {e}"
                )
                self.disconnect(key)

        await asyncio.gather(
            *[safe_send(key, conn) for key, conn in connections_snapshot],
            return_exceptions=True,
        )


connection_manager = ConnectionManager()
