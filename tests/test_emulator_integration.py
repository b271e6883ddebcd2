"""End-to-end tests of KodiClient against the in-process Kodi emulator."""

import asyncio

import pytest

from kodi_remote import (
    KodiClientConfig,
    ConnectError,
    NoActivePlayerError,
    RemoteError,
    create_kodi_client,
    kodi_connect,
)
from kodi_remote.emulator import KodiEmulator


@pytest.mark.asyncio
async def test_buttons_end_to_end() -> None:
    """Test play, speed and navigation buttons against the emulator."""
    async with KodiEmulator(port=0) as emulator:
        async with await kodi_connect("127.0.0.1", port=emulator.port) as client:
            await client.button_press("PLAY")
            await client.button_press("FASTFORWARD")
            await client.button_press("FASTFORWARD")
            assert emulator.speed == 4
            await client.button_press("REWIND")
            assert emulator.speed == 2
            await client.button_press("guide")
            await client.button_press("Up")
        assert emulator.input_actions == ["ContextMenu", "Up"]
        assert emulator.methods == [
            "Player.GetActivePlayers",
            "Player.PlayPause",
            "Player.GetActivePlayers",
            "Player.SetSpeed",
            "Player.GetActivePlayers",
            "Player.SetSpeed",
            "Player.GetActivePlayers",
            "Player.SetSpeed",
            "Input.ContextMenu",
            "Input.Up",
        ]
        assert emulator.connection_count == 1


@pytest.mark.asyncio
async def test_status_and_shutdown() -> None:
    """Test get_status and an enabled power_off."""
    async with KodiEmulator(port=0, version={"major": 12, "minor": 4, "patch": 0}) as emulator:
        config = KodiClientConfig("127.0.0.1", emulator.port, shutdown_enabled=True)
        async with create_kodi_client(config=config) as client:
            status = await client.get_status()
            assert status == {"version": {"major": 12, "minor": 4, "patch": 0}}
            await client.power_off()
        assert emulator.shutdown_requested


@pytest.mark.asyncio
async def test_power_on_without_mac() -> None:
    """Test that power_on succeeds as soon as Kodi answers."""
    async with KodiEmulator(port=0) as emulator:
        async with create_kodi_client("127.0.0.1", port=emulator.port) as client:
            await client.power_on(retries=0)
        assert emulator.methods == ["JSONRPC.Version"]


@pytest.mark.asyncio
async def test_unknown_method() -> None:
    """Test that an unknown method yields RemoteError and the connection stays usable."""
    async with KodiEmulator(port=0) as emulator:
        async with await kodi_connect("127.0.0.1", port=emulator.port) as client:
            with pytest.raises(RemoteError) as exc_info:
                await client.call("Bogus.Method")
            assert exc_info.value.code == -32601
            await client.get_status()
        assert emulator.connection_count == 1


@pytest.mark.asyncio
async def test_no_active_player() -> None:
    """Test that PLAY with nothing playing raises NoActivePlayerError."""
    async with KodiEmulator(port=0, active_players=[]) as emulator:
        async with await kodi_connect("127.0.0.1", port=emulator.port) as client:
            with pytest.raises(NoActivePlayerError):
                await client.button_press("PLAY")
        assert emulator.methods == ["Player.GetActivePlayers"]


@pytest.mark.asyncio
async def test_recovers_after_kodi_restart() -> None:
    """Test that a dropped connection is reopened by the next request."""
    async with KodiEmulator(port=0) as emulator:
        async with create_kodi_client("127.0.0.1", port=emulator.port) as client:
            await client.get_status()
            emulator.drop_connections()
            await asyncio.sleep(0.05)
            await client.button_press("select")
        assert emulator.connection_count == 2
        assert emulator.input_actions == ["Select"]


@pytest.mark.asyncio
async def test_connect_refused() -> None:
    """Test that kodi_connect raises ConnectError when nothing is listening."""
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    config = KodiClientConfig("127.0.0.1", port, connect_timeout_secs=1.0)
    with pytest.raises(ConnectError):
        await kodi_connect(config=config)
