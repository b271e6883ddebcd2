# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi remote-control client.

Translates power, button and status intents into JSON-RPC calls over a
KodiClientTransport.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..exceptions import (
    KodiRemoteError,
    NoActivePlayerError,
    RetryExhaustedError,
    PowerOnCancelledError,
  )
from ..pkg_logging import logger
from ..protocol import (
    JsonRpcRequest,
    JsonRpcResponse,
    PLAY_PAUSE_BUTTONS,
    SPEED_BUTTONS,
    normalize_button_name,
    input_method_for_button,
  )

from .client_config import KodiClientConfig
from .client_transport import KodiClientTransport
from .playback_speed import PlaybackSpeed
from .wake_on_lan import send_wake_on_lan

class KodiClient:
    """Kodi remote-control client."""

    transport: KodiClientTransport
    config: KodiClientConfig
    speed: PlaybackSpeed

    _intent_lock: asyncio.Lock
    """Held for the whole of a player-targeted command, so that the player
    lookup and the command it feeds are not interleaved with other requests,
    and so that speed changes are applied in press order."""

    def __init__(
            self,
            transport: KodiClientTransport,
            config: Optional[KodiClientConfig]=None,
          ):
        self.transport = transport
        self.config = KodiClientConfig(base_config=config)
        self.speed = PlaybackSpeed()
        self._intent_lock = asyncio.Lock()

    async def send_request(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Sends a request and returns the reply.

        Raises RemoteError if Kodi answered with a JSON-RPC error.
        """
        response = await self.transport.send(request)
        response.raise_for_error(request.method)
        return response

    async def call(
            self,
            method: str,
            params: Optional[JsonableDict]=None,
          ) -> Any:
        """Calls a JSON-RPC method and returns its result."""
        response = await self.send_request(JsonRpcRequest(method, params=params))
        return response.result

    async def get_active_player_id(self) -> Jsonable:
        """Returns the playerid of the first active player.

        Raises NoActivePlayerError if nothing is playing.
        """
        players = await self.call("Player.GetActivePlayers")
        if not isinstance(players, list) or len(players) == 0:
            raise NoActivePlayerError(f"{self}: No active player")
        player = players[0]
        if not isinstance(player, dict) or player.get("playerid") is None:
            raise NoActivePlayerError(f"{self}: Active player has no playerid: {player!r}")
        return player["playerid"]

    async def call_player_no_lock(
            self,
            method: str,
            params: Optional[JsonableDict]=None,
          ) -> Any:
        """Looks up the active player, then calls a player-targeted method with its playerid.

        If the lookup fails, the method is not called. The caller must be holding
        the intent lock; ordinary users should call call_player() instead.
        """
        request = JsonRpcRequest(method, params=params)
        player_id = await self.get_active_player_id()
        request = request.with_params(playerid=player_id)
        response = await self.send_request(request)
        return response.result

    async def call_player(
            self,
            method: str,
            params: Optional[JsonableDict]=None,
          ) -> Any:
        """Looks up the active player, then calls a player-targeted method with its playerid."""
        async with self._intent_lock:
            return await self.call_player_no_lock(method, params=params)

    async def get_status(self) -> Any:
        """Returns the result of JSONRPC.Version. Used as a liveness probe."""
        return await self.call("JSONRPC.Version")

    async def button_press(self, button: str) -> None:
        """Sends a remote-control button press.

        PLAY and PAUSE toggle playback and reset the playback speed to 1.
        FASTFORWARD and REWIND step the playback speed. Any other button is sent
        as the matching Input.* action (GUIDE is sent as Input.ContextMenu).
        """
        name = normalize_button_name(button)
        async with self._intent_lock:
            if name in PLAY_PAUSE_BUTTONS:
                self.speed.reset()
                logger.debug(f"{self}: {name}: toggling playback")
                await self.call_player_no_lock("Player.PlayPause")
            elif name in SPEED_BUTTONS:
                self.speed.step(SPEED_BUTTONS[name])
                logger.debug(f"{self}: {name}: setting speed to {self.speed.value}")
                await self.call_player_no_lock(
                    "Player.SetSpeed",
                    {"speed": self.speed.wire_value},
                  )
            else:
                await self.call(input_method_for_button(name))

    async def wake(self) -> bool:
        """Sends a Wake-on-LAN packet if a MAC address is configured.

        Returns False without sending anything if there is no MAC address.
        """
        if self.config.mac is None:
            logger.warning(f"{self}: Cannot send Wake-on-LAN because no MAC address was configured")
            return False
        await send_wake_on_lan(
            self.config.mac,
            broadcast_address=self.config.wol_broadcast_address,
            port=self.config.wol_port,
          )
        return True

    async def ensure_on(
            self,
            max_retries: int,
            cancel_event: Optional[asyncio.Event]=None,
          ) -> None:
        """Wakes Kodi and waits until it answers a status probe.

        Each attempt sends Wake-on-LAN (skipped without a MAC address), then probes
        get_status(). After a failed attempt, waits wake_retry_interval_secs and tries
        again, up to max_retries more times.

        If max_retries is 0, the error from the single attempt is raised unchanged.
        Otherwise RetryExhaustedError is raised when all attempts have failed.
        If cancel_event is set before a retry, raises PowerOnCancelledError.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative: {max_retries}")
        retries_left = max_retries
        attempts = 0
        while True:
            attempts += 1
            try:
                await self.wake()
                await self.get_status()
                logger.debug(f"{self}: Kodi is up after {attempts} attempt(s)")
                return
            except KodiRemoteError as e:
                if retries_left <= 0:
                    if max_retries == 0:
                        raise
                    raise RetryExhaustedError(attempts, e) from e
                logger.debug(f"{self}: Kodi is not up yet ({retries_left} retries left): {e}")
            if cancel_event is not None and cancel_event.is_set():
                raise PowerOnCancelledError(f"{self}: Power on cancelled after {attempts} attempt(s)")
            await asyncio.sleep(self.config.wake_retry_interval_secs)
            if cancel_event is not None and cancel_event.is_set():
                raise PowerOnCancelledError(f"{self}: Power on cancelled after {attempts} attempt(s)")
            retries_left -= 1

    async def power_on(
            self,
            retries: Optional[int]=None,
            cancel_event: Optional[asyncio.Event]=None,
          ) -> None:
        """Turns Kodi on, and waits for it to answer.

        If retries is None, config.power_on_retries is used.
        """
        if retries is None:
            retries = self.config.power_on_retries
        await self.ensure_on(retries, cancel_event=cancel_event)

    async def power_off(self) -> None:
        """Sends System.Shutdown if shutdown is enabled in the configuration; otherwise does nothing."""
        if not self.config.shutdown_enabled:
            logger.debug(f"{self}: Shutdown is not enabled; leaving Kodi on")
            return
        await self.call("System.Shutdown")

    async def _async_dispose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> KodiClient:
        logger.debug(f"{self}: Entering async context manager")
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType]
          ) -> None:
        logger.debug(f"{self}: Exiting async context manager, exc={exc_val}")
        await self._async_dispose()

    def __str__(self) -> str:
        return f"KodiClient(name={self.config.name!r}, transport={self.transport})"

    def __repr__(self) -> str:
       return str(self)

    async def aclose(self) -> None:
       await self._async_dispose()
