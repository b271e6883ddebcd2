# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Auto-reconnect Kodi client transport.

Provides an implementation of KodiClientTransport that lazily connects
through a connector, and reconnects on the next request after the connection
is lost or fails.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from ..internal_types import *
from ..exceptions import TransportError
from ..pkg_logging import logger
from ..protocol import JsonRpcRequest, JsonRpcResponse

from .connector import KodiConnector
from .client_config import KodiClientConfig
from .client_transport import KodiClientTransport

class ConnectionState(Enum):
    """State of the connection held by a ReconnectKodiClientTransport."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"

class ReconnectKodiClientTransport(KodiClientTransport):
    """Kodi client transport that automatically
       connects/reconnects through a connector.

    Only one request is outstanding at a time. Any transport failure
    discards the current connection, so the next request opens a new one.
    """

    config: KodiClientConfig

    connector: KodiConnector
    """The connector to use to connect to Kodi."""

    current_transport: Optional[KodiClientTransport] = None
    """The current transport, or None if not connected."""

    closing_transport: Optional[KodiClientTransport] = None
    """The transport that was current when shutdown() was called, if any."""

    connection_state: ConnectionState = ConnectionState.DISCONNECTED

    shutting_down: bool = False

    _transaction_lock: asyncio.Lock
    """A mutex to ensure that only one request is in progress at a time;
    this allows multiple callers to use the same transport without worrying
    about mixing up replies."""

    idle_timer: Optional[asyncio.TimerHandle] = None
    timing_out: bool = False
    timeout_task: Optional[asyncio.Task[None]] = None

    def __init__(
            self,
            connector: KodiConnector,
            config: Optional[KodiClientConfig]=None,
          ) -> None:
        """Initializes the transport. Does not connect."""
        super().__init__()
        self.config = KodiClientConfig(base_config=config)
        self.connector = connector
        self._transaction_lock = asyncio.Lock()

    def is_shutting_down(self) -> bool:
        """Returns True if the transport is shutting down or closed."""
        return self.shutting_down

    @property
    def is_connected(self) -> bool:
        """True if a connection is open and usable."""
        return (
            self.connection_state == ConnectionState.READY and
            self.current_transport is not None and
            self.current_transport.is_writable
          )

    async def discard_current_transport(self, exc: Optional[BaseException]=None) -> None:
        """Shuts down the current connection, if any. The next request reconnects."""
        transport = self.current_transport
        self.current_transport = None
        self.connection_state = ConnectionState.DISCONNECTED
        if transport is not None:
            logger.debug(f"{self}: Discarding connection {transport}")
            await transport.shutdown(exc)

    async def get_connected_transport(self) -> KodiClientTransport:
        """Returns the current transport, or connects if not connected.
        """
        if self.is_shutting_down():
            raise TransportError(f"{self}: Transport is shutting down")
        if self.current_transport is not None and not self.current_transport.is_writable:
            logger.debug(f"{self}: Connection to Kodi was closed; reconnecting")
            await self.discard_current_transport()

        if self.current_transport is None:
            self.connection_state = ConnectionState.CONNECTING
            try:
                self.current_transport = await self.connector.connect()
            except BaseException:
                self.connection_state = ConnectionState.DISCONNECTED
                raise
            self.connection_state = ConnectionState.READY

        return self.current_transport

    async def connect(self) -> None:
        """Opens the connection now rather than on the first request."""
        async with self._transaction_lock:
            await self.get_connected_transport()
            self.restart_idle_timer()

    def cancel_idle_timer(self) -> None:
        """Cancels the idle timer on the current transport."""
        if self.idle_timer is not None:
            self.idle_timer.cancel()
            self.idle_timer = None
        self.timing_out = False
        if self.timeout_task is not None:
            self.timeout_task.cancel()
            self.timeout_task = None

    def restart_idle_timer(self) -> None:
        """Restarts the idle timer on the current transport, if idle disconnect is enabled."""
        self.cancel_idle_timer()
        if self.current_transport is not None and self.config.idle_disconnect_secs is not None:
            self.timing_out = True
            self.idle_timer = asyncio.get_running_loop().call_later(
                self.config.idle_disconnect_secs,
                self.idle_timeout_callback
            )

    def idle_timeout_callback(self) -> None:
        """Called when the idle timer expires."""
        self.idle_timer = None
        if self.timeout_task is None:
            self.timeout_task = asyncio.get_running_loop().create_task(self.on_idle_timeout())

    async def on_idle_timeout(self) -> None:
        """Called when the idle timeout expires."""
        self.timeout_task = None
        if self.timing_out and not self._transaction_lock.locked():
            self.timing_out = False
            if self.current_transport is not None:
                logger.debug(f"{self}: Idle timeout; closing connection to Kodi")
                await self.discard_current_transport()

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Sends a request over the current connection, connecting first if necessary.

        Raises TransportError (or a subclass) if the request could not be
        delivered or answered; the connection is then discarded.
        """
        async with self._transaction_lock:
            self.cancel_idle_timer()
            try:
                return await self.send_no_lock(request)
            finally:
                self.restart_idle_timer()

    async def send_no_lock(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Sends a request and reads the matching reply.

        The caller must be holding the transaction lock. Ordinary users
        should call send() instead.
        """
        transport = await self.get_connected_transport()
        try:
            return await transport.send(request)
        except BaseException as e:
            if self.current_transport is transport:
                await self.discard_current_transport(e)
            raise

    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Shuts the transport down. Does not wait for the transport to finish
           closing. Safe to call from a callback or with transaction lock.

        Has no effect if the transport is already shutting down or closed.
        """
        if not self.shutting_down:
            self.shutting_down = True
            if exc is not None:
                logger.debug(f"{self}: Shutting down after error: {exc!r}")
        self.cancel_idle_timer()
        if self.current_transport is not None:
            self.closing_transport = self.current_transport
            await self.discard_current_transport()

    async def wait(self) -> None:
        """Waits for complete shutdown/cleanup. Does not initiate shutdown.
        Not safe to call from a callback.

        Errors that caused the last connection to be discarded have already been
        raised to the caller of send(), so they are logged here, not raised.
        """
        transport = self.closing_transport
        self.closing_transport = None
        if transport is not None:
            try:
                await transport.wait()
            except Exception:
                logger.debug(f"{self}: Exception while closing connection", exc_info=True)

    async def __aenter__(self) -> ReconnectKodiClientTransport:
        """Enters a context that will close the transport on exit."""
        return self

    def __str__(self) -> str:
        return f"ReconnectKodiClientTransport({self.connector})"

    def __repr__(self) -> str:
        return str(self)
