# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi TCP/IP client transport.

Provides an implementation of KodiClientTransport over a single TCP/IP
connection to Kodi's raw JSON-RPC service.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..exceptions import (
    TransportError,
    ConnectError,
    WriteError,
    ReceiveError,
    ResponseTimeoutError,
  )
from ..constants import DEFAULT_TIMEOUT, DEFAULT_PORT, CONNECT_TIMEOUT, MAX_LINE_LENGTH
from ..pkg_logging import logger
from ..protocol import JsonRpcRequest, JsonRpcResponse, next_request_id

from .client_transport import KodiClientTransport
from .resolve_host import resolve_kodi_tcp_host

class TcpKodiClientTransport(KodiClientTransport):
    """Kodi TCP/IP client transport.

    Requests and replies are newline-delimited JSON objects. Replies are matched to
    requests by id; notifications and stale replies that arrive in between are skipped.
    """

    reader: Optional[asyncio.StreamReader] = None
    writer: Optional[asyncio.StreamWriter] = None
    host: str
    port: int
    timeout_secs: float
    connect_timeout_secs: float
    shutting_down: bool = False
    final_exc: Optional[BaseException] = None
    reader_closed: bool = False
    writer_closed: bool = False
    last_request_id: Optional[str] = None

    _transaction_lock: asyncio.Lock
    """A mutex to ensure that only one request is outstanding at a time;
    this allows multiple callers to use the same transport without worrying
    about mixing up replies."""

    def __init__(
            self,
            host: str,
            port: int=DEFAULT_PORT,
            timeout_secs: float=DEFAULT_TIMEOUT,
            connect_timeout_secs: float=CONNECT_TIMEOUT,
          ) -> None:
        """Initializes the transport. Does not connect."""
        super().__init__()
        self.host = host
        self.port = port
        self.timeout_secs = timeout_secs
        self.connect_timeout_secs = connect_timeout_secs
        self._transaction_lock = asyncio.Lock()

    def is_shutting_down(self) -> bool:
        return self.shutting_down

    @property
    def is_writable(self) -> bool:
        """True if the connection is open, and Kodi has not closed its end."""
        if self.shutting_down or self.reader is None or self.writer is None:
            return False
        if self.writer.is_closing():
            return False
        return not self.reader.at_eof()

    async def _write_line(self, line: bytes) -> None:
        """Writes one framed message, with timeout (nonlocking).

        On error, the transport will be shut down, and no further interaction is possible.
        """
        assert self.writer is not None

        try:
            logger.debug(f"{self}: Sending: {line!r}")
            try:
                self.writer.write(line)
                await asyncio.wait_for(self.writer.drain(), self.timeout_secs)
            except (OSError, RuntimeError, asyncio.TimeoutError) as e:
                raise WriteError(f"{self}: Failed to write request: {e!r}") from e
        except BaseException as e:
            await self.shutdown(e)
            raise

    async def _read_message(self, timeout_secs: float) -> Optional[JsonRpcResponse]:
        """Reads one framed message, waiting at most timeout_secs (nonlocking).

        Returns None for blank lines. On error, the transport will be shut
        down, and no further interaction is possible.
        """
        assert self.reader is not None

        try:
            try:
                line = await asyncio.wait_for(self.reader.readline(), max(timeout_secs, 0.0))
            except asyncio.TimeoutError as e:
                raise ResponseTimeoutError(f"{self}: No reply from Kodi within {self.timeout_secs} seconds") from e
            except (OSError, ValueError) as e:
                # ValueError is raised by readline() when a line exceeds the buffer limit
                raise ReceiveError(f"{self}: Failed to read reply: {e!r}") from e
            if len(line) == 0:
                raise ReceiveError(f"{self}: Connection closed by Kodi while waiting for reply")
            if not line.endswith(b'\n'):
                raise ReceiveError(f"{self}: Connection closed by Kodi with partial reply: {line[:200]!r}")
            line = line.strip()
            if len(line) == 0:
                return None
            logger.debug(f"{self}: Received: {line!r}")
            return JsonRpcResponse.from_line(line)
        except BaseException as e:
            await self.shutdown(e)
            raise

    async def _read_reply(self, request_id: str) -> JsonRpcResponse:
        """Reads messages until the reply to request_id arrives (nonlocking).

        timeout_secs bounds the whole wait, however many notifications arrive in between.
        An error reply with a null id answers the request, since only one is outstanding.
        """
        deadline = asyncio.get_running_loop().time() + self.timeout_secs
        while True:
            message = await self._read_message(deadline - asyncio.get_running_loop().time())
            if message is None:
                continue
            if message.id == request_id:
                return message
            if message.id is None and not message.is_notification and message.error is not None:
                logger.debug(f"{self}: Error reply without id taken as reply to {request_id!r}")
                return message
            if message.is_notification:
                logger.debug(f"{self}: Skipping notification {message.method}")
            else:
                logger.warning(f"{self}: Skipping reply with unexpected id {message.id!r} (waiting for {request_id!r})")

    async def send_no_lock(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Sends a request and reads the matching reply.

        The caller must be holding the transaction lock. Ordinary users
        should call send() instead.
        """
        if not self.is_writable:
            exc = TransportError(f"{self}: Connection to Kodi is not open")
            await self.shutdown(exc)
            raise exc
        if request.id is None:
            request.id = next_request_id(self.last_request_id)
        self.last_request_id = request.id
        await self._write_line(request.to_line())
        return await self._read_reply(request.id)

    async def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        async with self._transaction_lock:
            return await self.send_no_lock(request)

    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Shuts the transport down. Does not wait for the transport to finish
           closing. Safe to call from a callback or with transaction lock.

        If exc is not None, sets the final status of the transport.

        Has no effect if the transport is already shutting down or closed.

        Does not raise an exception based on final status.
        """
        if not self.shutting_down:
            self.shutting_down = True
            self.final_exc = exc
            if exc is not None:
                logger.debug(f"{self}: Shutting down after error: {exc!r}")
        try:
            if not self.reader_closed:
                self.reader_closed = True
                if self.reader is not None:
                    self.reader.feed_eof()
        except Exception:
            logger.debug("Exception while closing reader", exc_info=True)
        finally:
            try:
                if not self.writer_closed:
                    self.writer_closed = True
                    if self.writer is not None:
                        self.writer.close()
            except Exception:
                logger.debug("Exception while closing writer", exc_info=True)

    async def wait(self) -> None:
        """Waits for complete shutdown/cleanup. Does not initiate shutdown.
        Not safe to call from a callback.

        Returns immediately if the transport is already closed.
        Raises an exception if the transport was shut down because of an error.
        """
        try:
            if self.writer is not None:
                await self.writer.wait_closed()
        except Exception as e:
            logger.debug("Exception while waiting for writer to close", exc_info=True)
            await self.shutdown(e)
        finally:
            if not self.shutting_down:
                await self.shutdown()
        if self.final_exc is not None:
            raise self.final_exc

    async def __aenter__(self) -> TcpKodiClientTransport:
        """Enters a context that will close the transport on exit."""
        return self

    async def connect(self) -> None:
        """Connects to Kodi, with timeout.

        Raises ConnectError if the connection cannot be opened.
        """
        try:
            async with self._transaction_lock:
                assert self.reader is None and self.writer is None
                logger.debug(f"Connecting to Kodi at {self.host}:{self.port}")
                try:
                    self.reader, self.writer = await asyncio.wait_for(
                        asyncio.open_connection(self.host, self.port, limit=MAX_LINE_LENGTH),
                        self.connect_timeout_secs
                      )
                except (OSError, asyncio.TimeoutError) as e:
                    raise ConnectError(f"Unable to connect to Kodi at {self.host}:{self.port}: {e!r}") from e
                logger.info(f"{self} connected")
        except BaseException as e:
            await self.shutdown(e)
            raise

    @classmethod
    async def create(
            cls,
            host: Optional[str]=None,
            port: Optional[int]=None,
            timeout_secs: float=DEFAULT_TIMEOUT,
            connect_timeout_secs: float=CONNECT_TIMEOUT,
          ) -> Self:
        """Creates and connects a transport to
           Kodi over TCP/IP.

              Args:
                host: The hostname or IPV4 address of the Kodi device.
                      may optionally be prefixed with "tcp://".
                      May be suffixed with ":<port>" to specify a
                      non-default port, which will override the port argument.
                      If None, the host will be taken from the
                        KODI_HOST environment variable.
                port: The default TCP/IP port number to use. If None, the port
                      will be taken from KODI_PORT. If that
                      environment variable is not found, the default Kodi
                      JSON-RPC port (9090) will be used.
                timeout_secs: The time to wait for each reply.
                connect_timeout_secs: The time to wait for the connection to open.
        """
        final_host, final_port = resolve_kodi_tcp_host(host, port)

        transport = cls(
            final_host,
            port=final_port,
            timeout_secs=timeout_secs,
            connect_timeout_secs=connect_timeout_secs,
          )
        await transport.connect()
        # on error, the transport will be shut down, and no further interaction is possible
        return transport

    def __str__(self) -> str:
        return f"TcpKodiClientTransport({self.host}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
