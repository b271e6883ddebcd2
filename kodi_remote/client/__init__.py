# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi remote-control client.

Provides transports, connectors and the high-level KodiClient.
"""

from .resolve_host import resolve_kodi_tcp_host
from .client_config import KodiClientConfig
from .client_transport import KodiClientTransport
from .tcp_client_transport import TcpKodiClientTransport
from .connector import KodiConnector
from .tcp_connector import TcpKodiConnector
from .reconnect_client_transport import ConnectionState, ReconnectKodiClientTransport
from .playback_speed import PlaybackSpeed, next_speed
from .wake_on_lan import send_wake_on_lan
from .simple import (
    create_kodi_transport,
    create_kodi_client,
    kodi_transport_connect,
    kodi_connect,
  )
from .client_impl import (
    KodiClient,
  )
