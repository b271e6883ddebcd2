# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi simple client connection API.

Provides a simple API for creating a client for a Kodi device from
an address and/or a configuration.
"""

from __future__ import annotations

from ..internal_types import *

from .client_transport import KodiClientTransport
from .tcp_connector import TcpKodiConnector
from .client_config import KodiClientConfig
from .client_impl import KodiClient
from .reconnect_client_transport import ReconnectKodiClientTransport

def create_kodi_transport(
        address: Optional[str]=None,
        port: Optional[int]=None,
        config: Optional[KodiClientConfig]=None
      ) -> ReconnectKodiClientTransport:
    """Create a reconnecting transport for a Kodi device. Does not connect;
       the connection is opened by the first request.

    Args:
        address: The hostname or IPV4 address of the Kodi device.
                may optionally be prefixed with "tcp://".
                May be suffixed with ":<port>" to specify a
                non-default port, which will override the port argument.
                If None, the address will be taken from the config or the
                KODI_HOST environment variable.
        port:   The TCP/IP port of Kodi's JSON-RPC service. If None, taken
                from the config.
        config: A KodiClientConfig object that specifies
                the default address, port, etc. to use.
                If None, a default config will be created.
    """
    config = KodiClientConfig(
        address=address,
        port=port,
        base_config=config
      )
    connector = TcpKodiConnector(config=config)
    return ReconnectKodiClientTransport(connector, config=config)

def create_kodi_client(
        address: Optional[str]=None,
        port: Optional[int]=None,
        config: Optional[KodiClientConfig]=None
      ) -> KodiClient:
    """Create a client for a Kodi device. Does not connect; the connection is
       opened by the first request, and reopened whenever it is lost.

    Args: as for create_kodi_transport().
    """
    config = KodiClientConfig(
        address=address,
        port=port,
        base_config=config
      )
    transport = create_kodi_transport(config=config)
    return KodiClient(transport, config=config)

async def kodi_transport_connect(
        address: Optional[str]=None,
        port: Optional[int]=None,
        config: Optional[KodiClientConfig]=None
      ) -> KodiClientTransport:
    """Create a reconnecting transport for a Kodi device, and open its connection now.

    Raises ConnectError if Kodi cannot be reached.

    Args: as for create_kodi_transport().
    """
    transport = create_kodi_transport(address=address, port=port, config=config)
    try:
        await transport.connect()
    except BaseException:
        await transport.aclose()
        raise
    return transport

async def kodi_connect(
        address: Optional[str]=None,
        port: Optional[int]=None,
        config: Optional[KodiClientConfig]=None
      ) -> KodiClient:
    """Create a client for a Kodi device, and open its connection now.

    Raises ConnectError if Kodi cannot be reached.

    Args: as for create_kodi_transport().
    """
    config = KodiClientConfig(
        address=address,
        port=port,
        base_config=config
      )
    transport = await kodi_transport_connect(config=config)
    try:
        client = KodiClient(
            transport,
            config=config,
          )
    except BaseException:
        await transport.aclose()
        raise

    return client
