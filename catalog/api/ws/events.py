import uuid
from typing import Any

from fastapi import APIRouter
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from catalog.logging import logger
from catalog.managers.websocket_connection_manager import connection_manager

router = APIRouter()


@router.websocket_route("/ws/events")
class Events(WebSocketEndpoint):  # type: ignore[misc]
    """
    Subscription endpoint for change notifications.

    Connected clients receive every ``author_updated``, ``author_removed``
    and ``items_updated`` broadcast. Messages sent by clients are ignored.
    """

    encoding = "json"

    async def on_connect(self, websocket: WebSocket) -> None:
        """Accepts the connection and registers it under a fresh key."""
        await super().on_connect(websocket)

        self.connection_key = str(uuid.uuid4())
        connection_manager.connect(self.connection_key, websocket)
        logger.debug(f"Subscriber {self.connection_key} connected to events")

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        logger.debug(f"Ignoring message from subscriber {self.connection_key}")

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """Removes the connection from the connection manager."""
        connection_manager.disconnect(self.connection_key)
        logger.debug(
            f"Subscriber {self.connection_key} disconnected with code {close_code}"
        )
