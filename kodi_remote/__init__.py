# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package kodi_remote provides an API for controlling
Kodi media players via their JSON-RPC interface over raw TCP, with
Wake-on-LAN power-on.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    KodiRemoteError,
    ConfigError,
    TransportError,
    ConnectError,
    WriteError,
    ReceiveError,
    ResponseTimeoutError,
    RemoteError,
    NoActivePlayerError,
    WakeOnLanError,
    RetryExhaustedError,
    PowerOnCancelledError,
  )

from .constants import DEFAULT_PORT, DEFAULT_TIMEOUT, DEFAULT_POWER_ON_RETRIES, WAKE_RETRY_INTERVAL

from .client import (
    KodiClient,
    resolve_kodi_tcp_host,
    KodiClientTransport,
    TcpKodiClientTransport,
    KodiConnector,
    TcpKodiConnector,
    ConnectionState,
    ReconnectKodiClientTransport,
    PlaybackSpeed,
    next_speed,
    send_wake_on_lan,
    create_kodi_transport,
    create_kodi_client,
    kodi_transport_connect,
    kodi_connect,
    KodiClientConfig,
  )

from .protocol import (
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcErrorInfo,
    next_request_id,
    translate_button_to_kodi,
  )
