#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from __future__ import annotations

from typing import Any, Optional

class KodiRemoteError(Exception):
    """Base class for all error exceptions defined by this package."""
    pass

class ConfigError(KodiRemoteError):
    """The client configuration is invalid."""
    pass

class TransportError(KodiRemoteError):
    """A request could not be delivered, or its reply could not be read.

    The connection is always torn down when one of these is raised.
    """
    pass

class ConnectError(TransportError):
    """The TCP connection to Kodi could not be opened."""
    pass

class WriteError(TransportError):
    """A request could not be written to an open connection."""
    pass

class ReceiveError(TransportError):
    """The reply could not be read, or was not a valid JSON-RPC message."""
    pass

class ResponseTimeoutError(ReceiveError):
    """No reply arrived within the per-request timeout."""
    pass

class RemoteError(KodiRemoteError):
    """Kodi answered a request with a JSON-RPC error object."""
    code: int
    remote_message: str
    data: Any

    def __init__(self, code: int, message: str, data: Any = None, method: Optional[str] = None):
        self.code = code
        self.remote_message = message
        self.data = data
        self.method = method
        text = f"[{code}] {message}"
        if data is not None:
            text += f": {data}"
        if method is not None:
            text = f"{method} failed: {text}"
        super().__init__(text)

class NoActivePlayerError(KodiRemoteError):
    """A player-targeted command was requested but Kodi has no active player."""
    pass

class WakeOnLanError(KodiRemoteError):
    """The Wake-on-LAN magic packet could not be sent."""
    pass

class RetryExhaustedError(KodiRemoteError):
    """power_on() ran out of attempts. The last failure is in last_error."""
    attempts: int
    last_error: BaseException

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Kodi did not come up after {attempts} attempts: {last_error}")

class PowerOnCancelledError(KodiRemoteError):
    """power_on() was cancelled through its cancel_event."""
    pass
