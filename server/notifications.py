"""Registry of live notification connections and the broadcast loop."""

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocketState

from common.constants import (
    EVENT_CONNECTION_ACK,
    EVENT_ERROR,
    EVENT_FILES_REFRESH,
    EVENT_FILES_UPDATED,
    NOTIFICATION_SEND_TIMEOUT_SECONDS
)
from common.formatting import format_utc_iso
from common.logging_config import get_logger
from server.exceptions import MalformedMessageError
from server.schemas.events import (
    ConnectionAckPayload,
    ErrorPayload,
    FilesUpdatedPayload,
    NotificationEvent
)
from server.schemas.files import StoredFileDescriptor

logger = get_logger(__name__)

ACK_MESSAGE = "connected"
MALFORMED_MESSAGE = "Malformed message, send a JSON object such as {\"type\": \"files:refresh\"}"


@dataclass
class NotificationConnection:
    """One accepted notification socket."""
    websocket: Any
    remote: str = "unknown"
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def is_ready(self) -> bool:
        """True while both sides of the socket are in the connected state."""
        return (
            getattr(self.websocket, "application_state", None) == WebSocketState.CONNECTED
            and getattr(self.websocket, "client_state", None) == WebSocketState.CONNECTED
        )


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of sending one event to one connection."""
    connection_id: str
    delivered: bool
    error: Optional[str] = None


def build_ack_event() -> NotificationEvent:
    return NotificationEvent(
        type=EVENT_CONNECTION_ACK,
        payload=ConnectionAckPayload(message=ACK_MESSAGE, connected_at=format_utc_iso()),
    )


def build_files_updated_event(latest: Optional[StoredFileDescriptor] = None) -> NotificationEvent:
    return NotificationEvent(
        type=EVENT_FILES_UPDATED,
        payload=FilesUpdatedPayload(latest=latest, refreshed_at=format_utc_iso()),
    )


def build_error_event(message: str) -> NotificationEvent:
    return NotificationEvent(type=EVENT_ERROR, payload=ErrorPayload(message=message))


def parse_client_message(raw: str) -> Dict[str, Any]:
    """
    Decode a client frame and check it is a known command.

    Raises:
        MalformedMessageError: If the frame is not JSON, not an object, or has an unknown type
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedMessageError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError("Message must be a JSON object")
    if data.get("type") != EVENT_FILES_REFRESH:
        raise MalformedMessageError(f"Unsupported message type: {data.get('type')!r}")
    return data


class NotificationHub:
    """
    Owns the set of open notification connections.

    Connections are kept in accept order. Broadcasts iterate over a
    snapshot, so connects and disconnects during a broadcast are safe.
    Every send is bounded by send_timeout; a client that stops reading
    only ever loses its own events.
    """

    def __init__(self, send_timeout: float = NOTIFICATION_SEND_TIMEOUT_SECONDS):
        self.lock = asyncio.Lock()
        self.send_timeout = send_timeout
        self._connections: Dict[str, NotificationConnection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: Any, remote: str = "unknown") -> Optional[NotificationConnection]:
        """
        Accept a socket, acknowledge it, then register it.

        The connection only becomes visible to broadcasts after its ack
        was sent, so the ack is always the first frame the client sees.

        Returns:
            The registered connection, or None if the ack could not be delivered
        """
        connection = NotificationConnection(websocket=websocket, remote=remote)
        await websocket.accept()

        result = await self._deliver(connection, build_ack_event().to_text(), EVENT_CONNECTION_ACK)
        if not result.delivered:
            logger.warning(f"Dropping notification client {remote}: ack not delivered ({result.error})")
            return None

        async with self.lock:
            self._connections[connection.connection_id] = connection

        logger.info(
            f"Notification client connected: {remote} [connection_id={connection.connection_id}] "
            f"open={len(self._connections)}"
        )
        return connection

    async def disconnect(self, connection: NotificationConnection) -> None:
        """Forget a connection; unknown connections are ignored."""
        async with self.lock:
            removed = self._connections.pop(connection.connection_id, None)

        if removed is not None:
            logger.info(
                f"Notification client disconnected: {connection.remote} "
                f"[connection_id={connection.connection_id}] open={len(self._connections)}"
            )

    async def snapshot(self) -> List[NotificationConnection]:
        async with self.lock:
            return list(self._connections.values())

    async def _deliver(self, connection: NotificationConnection, text: str, event_type: str) -> DeliveryResult:
        """Send one frame to one connection, never raising."""
        if not connection.is_ready():
            return DeliveryResult(connection.connection_id, False, "not ready")

        try:
            await asyncio.wait_for(connection.websocket.send_text(text), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Timed out delivering {event_type} to [connection_id={connection.connection_id}] "
                f"after {self.send_timeout}s"
            )
            return DeliveryResult(connection.connection_id, False, "send timed out")
        except Exception as e:
            logger.error(
                f"Failed to deliver {event_type} to [connection_id={connection.connection_id}]: {e}",
                exc_info=True
            )
            return DeliveryResult(connection.connection_id, False, str(e))

        return DeliveryResult(connection.connection_id, True)

    async def broadcast(self, event: NotificationEvent) -> List[DeliveryResult]:
        """
        Send an event to every open connection.

        Sends run concurrently, each under its own timeout. A failure on one
        connection is logged and recorded; it never affects the others or
        the caller.

        Returns:
            One DeliveryResult per connection present when the broadcast
            started, in accept order
        """
        text = event.to_text()
        connections = await self.snapshot()

        results = list(await asyncio.gather(
            *(self._deliver(connection, text, event.type) for connection in connections)
        ))

        delivered = sum(1 for r in results if r.delivered)
        logger.debug(f"Broadcast {event.type}: delivered={delivered} total={len(results)}")
        return results

    async def broadcast_files_updated(
        self,
        latest: Optional[StoredFileDescriptor] = None
    ) -> List[DeliveryResult]:
        return await self.broadcast(build_files_updated_event(latest))

    async def handle_message(self, connection: NotificationConnection, raw: str) -> None:
        """
        React to one inbound frame.

        A refresh request is re-broadcast to everyone; anything else gets an
        error event back to the sender only.
        """
        try:
            parse_client_message(raw)
        except MalformedMessageError as e:
            logger.warning(f"Malformed message from [connection_id={connection.connection_id}]: {e}")
            await self._deliver(connection, build_error_event(MALFORMED_MESSAGE).to_text(), EVENT_ERROR)
            return

        logger.info(f"Refresh requested by [connection_id={connection.connection_id}]")
        await self.broadcast_files_updated()
