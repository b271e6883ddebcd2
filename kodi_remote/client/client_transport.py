# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi client abstract transport interface.

Provides a low-level abstract interface for sending a JSON-RPC request
to Kodi and receiving the reply that matches it. Does not provide any
higher-level abstractions such as buttons, players or power management.

This abstraction allows for the implementation of proxies, reconnecting
wrappers and test doubles.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from ..internal_types import *
from ..protocol import JsonRpcRequest, JsonRpcResponse


class KodiClientTransport(ABC):
    @abstractmethod
    async def send(
            self,
            request: JsonRpcRequest,
          ) -> JsonRpcResponse:
        """Sends a request and reads the reply with the same id.

        If request.id is None, an id is assigned before sending.
        JSON-RPC error replies are returned, not raised.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    def is_shutting_down(self) -> bool:
        """Returns True if the transport is shutting down or closed.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @property
    def is_writable(self) -> bool:
        """True if a request can be sent without (re)connecting.

        May be overridden by subclasses.
        """
        return not self.is_shutting_down()

    @abstractmethod
    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Shuts the transport down. Does not wait for the transport to finish
           closing. Safe to call from a callback.

        If exc is not None, sets the final status of the transport.

        Has no effect if the transport is already shutting down or closed.

        Does not raise an exception based on final status.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    async def wait(self) -> None:
        """Waits for complete shutdown/cleanup. Does not initiate shutdown
        Not safe to call from a callback.

        Returns immediately if the transport is already closed.

        Must be implemented by a subclass.
        """
        raise NotImplementedError()

    async def aclose(self, exc: Optional[BaseException] = None) -> None:
        """Closes the transport and waits for complete shutdown/cleanup.
        Not safe to call from a callback.

        If exc is not None, sets the final status of the transport.

        Has no effect if the transport is already closed.

        May be overridden by subclasses. The default implementation simply calls
        shutdown() and then wait().
        """
        await self.shutdown(exc)
        await self.wait()

    async def __aenter__(self) -> KodiClientTransport:
        """Enters a context that will close the transport on exit."""
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        """Exits the context, closes the transport, and waits for complete shutdown/cleanup."""
        # Close the transport without raising an exception
        closer: asyncio.Task[None] = asyncio.ensure_future(self.aclose(exc))
        assert isinstance(closer, asyncio.Task)
        done, pending = await asyncio.wait([closer])
        assert len(done) == 1 and len(pending) == 0
        if exc is None:
            # raise the exception from the transport if there is one
            closer.result()
