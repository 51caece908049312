from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.notification_service import connection_manager

router = APIRouter()


@router.websocket("/ws/reservations")
async def reservations_feed(websocket: WebSocket):
    """
    Sends a "connected" greeting, then {"event": "newReservation", "data": {...}}
    for every created reservation.
    Anything the client sends is ignored.
    """
    await connection_manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        connection_manager.disconnect(websocket)
