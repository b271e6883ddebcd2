# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi TCP/IP client connector.

Provides a connector for a KodiClientTransport over a TCP/IP
socket.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import ConfigError
from .connector import KodiConnector
from .client_transport import KodiClientTransport
from .client_config import KodiClientConfig

from .tcp_client_transport import TcpKodiClientTransport

class TcpKodiConnector(KodiConnector):
    """Kodi TCP/IP client transport connector."""

    config: KodiClientConfig

    def __init__(
            self,
            address: Optional[str]=None,
            port: Optional[int]=None,
            timeout_secs: Optional[float] = None,
            config: Optional[KodiClientConfig]=None,
          ) -> None:
        """Creates a connector that can create transports to
           a Kodi device that is reachable over TCP/IP.

              Args:
                address: The hostname or IPV4 address of the Kodi device.
                      may optionally be prefixed with "tcp://".
                      May be suffixed with ":<port>" to specify a
                      non-default port, which will override the port argument.
                      If None, the address will be taken from the config,
                      or the KODI_HOST environment variable.
                port: The default TCP/IP port number to use. If None, the port
                      will be taken from the config.
                timeout_secs: The time to wait for each reply. If None, taken
                      from the config.
                config: A KodiClientConfig object that specifies
                        the default address, port, etc to use.
                        If None, a default config will be created.
        """
        super().__init__()
        self.config = KodiClientConfig(
            address=address,
            port=port,
            timeout_secs=timeout_secs,
            base_config=config
          )
        address = self.config.address
        if address is None:
            raise ConfigError("No Kodi address configured, and KODI_HOST is not set")
        if '://' in address and not address.startswith('tcp://'):
            raise ConfigError(f"Invalid host protocol specifier for TCP transport: '{address}'")

    async def connect(self) -> KodiClientTransport:
        """Create and connect a TCP/IP client transport for the Kodi device
           associated with this connector.
        """
        transport = await TcpKodiClientTransport.create(
            self.config.address,
            port=self.config.port,
            timeout_secs=self.config.timeout_secs,
            connect_timeout_secs=self.config.connect_timeout_secs,
          )
        return transport

    def __str__(self) -> str:
        return f"TcpKodiConnector(address='{self.config.address}', port={self.config.port})"

    def __repr__(self) -> str:
        return str(self)
