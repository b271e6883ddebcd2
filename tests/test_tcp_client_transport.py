"""Tests for TcpKodiClientTransport."""

import asyncio
from collections.abc import Awaitable, Callable
from unittest.mock import patch

import pytest

from kodi_remote.client.tcp_client_transport import TcpKodiClientTransport
from kodi_remote.emulator import KodiEmulator
from kodi_remote.client.simple import create_kodi_transport
from kodi_remote.client.reconnect_client_transport import ConnectionState
from kodi_remote.exceptions import (
    ConnectError,
    ReceiveError,
    RemoteError,
    ResponseTimeoutError,
    TransportError,
    WriteError,
)
from kodi_remote.protocol import JsonRpcRequest

StreamHandler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


async def _unused_port() -> int:
    """Return a localhost port with nothing listening on it."""
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port


async def _raw_server(handler: StreamHandler) -> asyncio.Server:
    return await asyncio.start_server(handler, "127.0.0.1", 0)


class TestTcpKodiClientTransport:
    """Tests against the emulator and hand-written servers."""

    @pytest.mark.asyncio
    async def test_send_and_receive(self) -> None:
        """Test a basic request/reply exchange."""
        async with KodiEmulator(port=0) as emulator:
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                response = await transport.send(JsonRpcRequest("JSONRPC.Version"))
                assert response.result == {"version": emulator.version}
                assert emulator.received[0]["jsonrpc"] == "2.0"
                assert emulator.received[0]["method"] == "JSONRPC.Version"
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_assigns_increasing_ids(self) -> None:
        """Test that missing ids are filled in and distinct within a session."""
        async with KodiEmulator(port=0) as emulator:
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                first = JsonRpcRequest("Input.Up")
                second = JsonRpcRequest("Input.Down")
                await transport.send(first)
                await transport.send(second)
                assert first.id is not None and second.id is not None
                assert int(second.id) > int(first.id)
                assert [r["id"] for r in emulator.received] == [first.id, second.id]
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_keeps_caller_id(self) -> None:
        """Test that a caller-supplied id is sent unchanged."""
        async with KodiEmulator(port=0) as emulator:
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                response = await transport.send(JsonRpcRequest("Input.Up", id="custom"))
                assert response.id == "custom"
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_fragmented_reply(self) -> None:
        """Test that a reply split across TCP reads is reassembled."""
        async with KodiEmulator(port=0) as emulator:
            emulator.fragment_replies = True
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                response = await transport.send(JsonRpcRequest("Player.GetActivePlayers"))
                assert response.result == emulator.active_players
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_skips_notifications(self) -> None:
        """Test that notifications arriving ahead of the reply are skipped."""
        async with KodiEmulator(port=0) as emulator:
            emulator.notify_before_reply = True
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                response = await transport.send(JsonRpcRequest("JSONRPC.Version"))
                assert response.result == {"version": emulator.version}
                # and the notification queued before the next reply is skipped too
                response = await transport.send(JsonRpcRequest("Input.Up"))
                assert response.result == "OK"
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_coalesced_messages(self) -> None:
        """Test a stale reply and the real reply delivered in one write."""

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            line = await reader.readline()
            request_id = line.split(b'"id": "')[1].split(b'"')[0]
            writer.write(
                b'{"jsonrpc": "2.0", "id": "stale", "result": "old"}\n'
                b'{"jsonrpc": "2.0", "id": "' + request_id + b'", "result": "new"}\n'
            )
            await writer.drain()
            await reader.read()
            writer.close()

        server = await _raw_server(handler)
        port = server.sockets[0].getsockname()[1]
        transport = await TcpKodiClientTransport.create("127.0.0.1", port)
        try:
            response = await transport.send(JsonRpcRequest("Input.Up"))
            assert response.result == "new"
        finally:
            await transport.shutdown()
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_connect_refused(self) -> None:
        """Test that an unreachable port raises ConnectError."""
        port = await _unused_port()
        with pytest.raises(ConnectError):
            await TcpKodiClientTransport.create("127.0.0.1", port)

    @pytest.mark.asyncio
    async def test_invalid_json_reply(self) -> None:
        """Test that a malformed reply raises ReceiveError and shuts the transport down."""

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            writer.write(b"this is not json\n")
            await writer.drain()
            await reader.read()
            writer.close()

        server = await _raw_server(handler)
        port = server.sockets[0].getsockname()[1]
        transport = await TcpKodiClientTransport.create("127.0.0.1", port)
        try:
            with pytest.raises(ReceiveError, match="Invalid JSON"):
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
            assert transport.is_shutting_down()
            assert not transport.is_writable
            with pytest.raises(TransportError):
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_peer_closes_before_reply(self) -> None:
        """Test that the peer closing the connection raises ReceiveError."""

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            writer.close()

        server = await _raw_server(handler)
        port = server.sockets[0].getsockname()[1]
        transport = await TcpKodiClientTransport.create("127.0.0.1", port)
        try:
            with pytest.raises(ReceiveError, match="closed"):
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
            assert transport.is_shutting_down()
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_reply_timeout(self) -> None:
        """Test that a slow reply raises ResponseTimeoutError."""
        async with KodiEmulator(port=0) as emulator:
            emulator.reply_delay = 0.5
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port, timeout_secs=0.05)
            with pytest.raises(ResponseTimeoutError):
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
            assert transport.is_shutting_down()

    @pytest.mark.asyncio
    async def test_not_writable_after_peer_close(self) -> None:
        """Test that a connection closed by Kodi is reported as not writable."""
        async with KodiEmulator(port=0) as emulator:
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                assert transport.is_writable
                emulator.drop_connections()
                for _ in range(50):
                    if not transport.is_writable:
                        break
                    await asyncio.sleep(0.01)
                assert not transport.is_writable
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_timeout_covers_whole_request(self) -> None:
        """Test that a stream of notifications does not extend the reply timeout."""

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            notification = b'{"jsonrpc": "2.0", "method": "Player.OnPropertyChanged", "params": {}}\n'
            try:
                for _ in range(100):
                    if writer.is_closing():
                        break
                    writer.write(notification)
                    await writer.drain()
                    await asyncio.sleep(0.02)
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await _raw_server(handler)
        port = server.sockets[0].getsockname()[1]
        try:
            transport = await TcpKodiClientTransport.create("127.0.0.1", port, timeout_secs=0.2)
            loop = asyncio.get_running_loop()
            started = loop.time()
            with pytest.raises(ResponseTimeoutError):
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
            assert loop.time() - started < 1.0
            assert transport.is_shutting_down()
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_error_reply_without_id(self) -> None:
        """Test that an error reply with a null id is returned as the reply."""

        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            writer.write(b'{"jsonrpc": "2.0", "id": null, "error": {"code": -32600, "message": "Invalid request."}}\n')
            await writer.drain()
            await reader.read()
            writer.close()

        server = await _raw_server(handler)
        port = server.sockets[0].getsockname()[1]
        try:
            transport = await TcpKodiClientTransport.create("127.0.0.1", port, timeout_secs=5.0)
            try:
                response = await transport.send(JsonRpcRequest("JSONRPC.Version"))
                with pytest.raises(RemoteError) as exc_info:
                    response.raise_for_error("JSONRPC.Version")
                assert exc_info.value.code == -32600
                assert not transport.is_shutting_down()
            finally:
                await transport.shutdown()
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_write_failure(self) -> None:
        """Test that a failed write raises WriteError and shuts the transport down."""
        async with KodiEmulator(port=0) as emulator:
            transport = await TcpKodiClientTransport.create("127.0.0.1", emulator.port)
            try:
                assert transport.writer is not None
                with patch.object(transport.writer, "drain", side_effect=ConnectionResetError("reset")):
                    with pytest.raises(WriteError):
                        await transport.send(JsonRpcRequest("Input.Up"))
                assert transport.is_shutting_down()
            finally:
                await transport.shutdown()

    @pytest.mark.asyncio
    async def test_reconnects_after_write_failure(self) -> None:
        """Test that the reconnecting transport opens a new connection after WriteError."""
        async with KodiEmulator(port=0) as emulator:
            transport = create_kodi_transport("127.0.0.1", port=emulator.port)
            try:
                await transport.send(JsonRpcRequest("JSONRPC.Version"))
                first = transport.current_transport
                assert isinstance(first, TcpKodiClientTransport) and first.writer is not None
                with patch.object(first.writer, "drain", side_effect=ConnectionResetError("reset")):
                    with pytest.raises(WriteError):
                        await transport.send(JsonRpcRequest("Input.Up"))
                assert first.is_shutting_down()
                assert transport.connection_state == ConnectionState.DISCONNECTED
                response = await transport.send(JsonRpcRequest("JSONRPC.Version"))
                assert response.result == {"version": emulator.version}
                assert transport.current_transport is not first
                assert emulator.connection_count == 2
            finally:
                await transport.aclose()
