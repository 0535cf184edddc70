"""Tests for the notification hub."""

import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from server.exceptions import MalformedMessageError
from server.notifications import MALFORMED_MESSAGE, NotificationHub, parse_client_message
from server.services.file_service import FileService
from server.storage import StorageDirectory


class FakeWebSocket:
    """Records frames sent by the hub."""

    def __init__(self, fail_on_send=False):
        self.application_state = WebSocketState.CONNECTING
        self.client_state = WebSocketState.CONNECTING
        self.fail_on_send = fail_on_send
        self.sent = []

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED

    async def send_text(self, text):
        if self.fail_on_send and self.sent:
            raise RuntimeError("socket broke")
        self.sent.append(json.loads(text))

    def types(self):
        return [message["type"] for message in self.sent]


class StalledWebSocket(FakeWebSocket):
    """Accepts the ack, then never completes another send."""

    def __init__(self, stall_ack=False):
        super().__init__()
        self.stall_ack = stall_ack

    async def send_text(self, text):
        if self.stall_ack or self.sent:
            await asyncio.Event().wait()
        self.sent.append(json.loads(text))


class TestParseClientMessage:
    """Test inbound frame validation."""

    def test_refresh_accepted(self):
        assert parse_client_message('{"type": "files:refresh"}') == {"type": "files:refresh"}

    @pytest.mark.parametrize("raw", [
        "not json",
        "",
        "[1, 2]",
        "42",
        '{"type": "files:delete"}',
        '{"payload": {}}',
    ])
    def test_malformed_rejected(self, raw):
        with pytest.raises(MalformedMessageError):
            parse_client_message(raw)


class TestNotificationHub:
    """Test connection bookkeeping and broadcast delivery."""

    @pytest.mark.asyncio
    async def test_connect_sends_ack_first(self):
        hub = NotificationHub()
        ws = FakeWebSocket()

        await hub.connect(ws, "127.0.0.1:5000")

        assert len(hub) == 1
        assert ws.types() == ["connection:ack"]
        assert ws.sent[0]["payload"]["message"] == "connected"
        assert ws.sent[0]["payload"]["connectedAt"].endswith("Z")

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_connection(self):
        hub = NotificationHub()
        sockets = [FakeWebSocket() for _ in range(3)]
        for ws in sockets:
            await hub.connect(ws)

        results = await hub.broadcast_files_updated()

        assert len(results) == 3
        assert all(r.delivered for r in results)
        for ws in sockets:
            assert ws.types() == ["connection:ack", "files:updated"]
            assert ws.sent[1]["payload"]["latest"] is None

    @pytest.mark.asyncio
    async def test_broadcast_skips_connections_not_ready(self):
        hub = NotificationHub()
        open_ws, closing_ws = FakeWebSocket(), FakeWebSocket()
        await hub.connect(open_ws)
        await hub.connect(closing_ws)
        closing_ws.client_state = WebSocketState.DISCONNECTED

        results = await hub.broadcast_files_updated()

        assert [r.delivered for r in results] == [True, False]
        assert closing_ws.types() == ["connection:ack"]

    @pytest.mark.asyncio
    async def test_failed_send_does_not_stop_broadcast(self):
        hub = NotificationHub()
        broken = FakeWebSocket(fail_on_send=True)
        healthy = FakeWebSocket()
        await hub.connect(broken)
        await hub.connect(healthy)

        results = await hub.broadcast_files_updated()

        assert [r.delivered for r in results] == [False, True]
        assert results[0].error == "socket broke"
        assert healthy.types() == ["connection:ack", "files:updated"]

    @pytest.mark.asyncio
    async def test_disconnected_client_receives_nothing(self):
        hub = NotificationHub()
        leaving, staying = FakeWebSocket(), FakeWebSocket()
        leaving_conn = await hub.connect(leaving)
        await hub.connect(staying)

        await hub.disconnect(leaving_conn)
        await hub.disconnect(leaving_conn)
        await hub.broadcast_files_updated()

        assert len(hub) == 1
        assert leaving.types() == ["connection:ack"]
        assert staying.types() == ["connection:ack", "files:updated"]

    @pytest.mark.asyncio
    async def test_malformed_message_answers_sender_only(self):
        hub = NotificationHub()
        sender, other = FakeWebSocket(), FakeWebSocket()
        sender_conn = await hub.connect(sender)
        await hub.connect(other)

        await hub.handle_message(sender_conn, "{broken")

        assert sender.types() == ["connection:ack", "error"]
        assert sender.sent[1]["payload"]["message"] == MALFORMED_MESSAGE
        assert other.types() == ["connection:ack"]
        assert len(hub) == 2

    @pytest.mark.asyncio
    async def test_refresh_request_broadcasts_to_everyone(self):
        hub = NotificationHub()
        sender, other = FakeWebSocket(), FakeWebSocket()
        sender_conn = await hub.connect(sender)
        await hub.connect(other)

        await hub.handle_message(sender_conn, json.dumps({"type": "files:refresh"}))

        for ws in (sender, other):
            assert ws.types() == ["connection:ack", "files:updated"]
            assert ws.sent[1]["payload"]["latest"] is None
            assert ws.sent[1]["payload"]["refreshedAt"].endswith("Z")


class TestStalledClients:
    """A client that stops reading only loses its own events."""

    @pytest.mark.asyncio
    async def test_broadcast_finishes_despite_stalled_client(self):
        hub = NotificationHub(send_timeout=0.05)
        stalled, healthy = StalledWebSocket(), FakeWebSocket()
        await hub.connect(stalled)
        await hub.connect(healthy)

        results = await asyncio.wait_for(hub.broadcast_files_updated(), timeout=2)

        assert [r.delivered for r in results] == [False, True]
        assert results[0].error == "send timed out"
        assert healthy.types() == ["connection:ack", "files:updated"]

    @pytest.mark.asyncio
    async def test_upload_responds_despite_stalled_client(self, storage_dir, make_source):
        hub = NotificationHub(send_timeout=0.05)
        await hub.connect(StalledWebSocket())
        service = FileService(StorageDirectory(storage_dir), hub)

        descriptor = await asyncio.wait_for(
            service.upload_file("a.txt", make_source(b"abc"), "http://testserver/"),
            timeout=2,
        )

        assert descriptor.display_name == "a.txt"

    @pytest.mark.asyncio
    async def test_stalled_handshake_does_not_block_registry(self):
        hub = NotificationHub(send_timeout=0.2)
        healthy = FakeWebSocket()
        await hub.connect(healthy)

        pending = asyncio.ensure_future(hub.connect(StalledWebSocket(stall_ack=True)))
        await asyncio.sleep(0)

        results = await asyncio.wait_for(hub.broadcast_files_updated(), timeout=0.1)
        assert [r.delivered for r in results] == [True]

        assert await pending is None
        assert len(hub) == 1
