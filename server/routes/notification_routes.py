"""WebSocket route for the live notification channel."""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from server.notifications import NotificationHub

router = APIRouter(tags=["Notifications"])


def _remote_address(websocket: WebSocket) -> str:
    if websocket.client is None:
        return "unknown"
    return f"{websocket.client.host}:{websocket.client.port}"


@router.websocket("/")
@router.websocket("/ws")
async def notification_channel(websocket: WebSocket):
    """
    Persistent channel pushing 'files:updated' events.

    The server sends 'connection:ack' on connect. Clients may send
    {"type": "files:refresh"} to trigger a broadcast to every client.
    """
    hub: NotificationHub = websocket.app.state.notifications
    connection = await hub.connect(websocket, remote=_remote_address(websocket))
    if connection is None:
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"].decode("utf-8", errors="replace")
            await hub.handle_message(connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(connection)
