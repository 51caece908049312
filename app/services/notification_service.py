import asyncio
from typing import Any, Dict, Set

from fastapi import WebSocket

from app.core.config import settings
from app.core.logger import logger

NEW_RESERVATION_EVENT = "newReservation"
CONNECTED_EVENT = "connected"


class ConnectionManager:
    """
    Real-time listeners connected over WebSocket.

    Broadcasting is best effort: every listener is sent to at once, a send that
    fails or takes longer than ``send_timeout`` seconds drops that listener, and
    broadcasting to nobody does nothing.
    """

    def __init__(self, send_timeout: float = None):
        self.active_connections: Set[WebSocket] = set()
        self.send_timeout = send_timeout if send_timeout is not None else settings.WS_SEND_TIMEOUT

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"🟢 Listener connected ({len(self.active_connections)} active)")
        await websocket.send_json({"event": CONNECTED_EVENT, "data": {"listeners": len(self.active_connections)}})

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.discard(websocket)
            logger.info(f"🔴 Listener disconnected ({len(self.active_connections)} active)")

    async def _send(self, websocket: WebSocket, message: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(websocket.send_json(message), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Dropping listener that did not read within {self.send_timeout}s")
        except Exception as e:
            logger.warning(f"⚠️ Dropping listener after failed send: {e}")
        self.disconnect(websocket)
        return False

    async def broadcast(self, event: str, payload: Dict[str, Any]) -> int:
        """
        Sends ``{"event": event, "data": payload}`` to every listener.
        Returns how many listeners received it.
        """
        listeners = list(self.active_connections)
        if not listeners:
            return 0

        message = {"event": event, "data": payload}
        results = await asyncio.gather(*(self._send(websocket, message) for websocket in listeners))
        return sum(results)

    @property
    def listener_count(self) -> int:
        return len(self.active_connections)


connection_manager = ConnectionManager()
