# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi host IP/Port resolver.

Resolves host specifiers and environment variables into a Kodi
address and port.
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import ConfigError
from ..constants import DEFAULT_PORT

def resolve_kodi_tcp_host(
        host: Optional[str]=None,
        default_port: Optional[int]=None,
      ) -> Tuple[str, int]:
    """Resolves a Kodi host string into a hostname and port.

        Args:
            host: The hostname or IPV4 address of the Kodi device.
                    May optionally be prefixed with "tcp://".
                    May be suffixed with ":<port>" to specify a
                    non-default port, which will override the default_port argument.
                    If None, the host will be taken from the
                    KODI_HOST environment variable.
            default_port: The default TCP/IP port number to use. If None, the port
                    will be taken from KODI_PORT. If that
                    environment variable is not found, the default Kodi
                    JSON-RPC port (9090) will be used.

        Returns:
            A tuple of (hostname: str, port: int).
    """
    if host is None or host == '':
        host = os.environ.get('KODI_HOST')
        if host is None or host == '':
            raise ConfigError("No Kodi host specified, and KODI_HOST is not set")

    if default_port is None or default_port <= 0:
        default_port_str = os.environ.get('KODI_PORT')
        if default_port_str is None or default_port_str == '':
            default_port = DEFAULT_PORT
        else:
            try:
                default_port = int(default_port_str)
            except ValueError as e:
                raise ConfigError(f"Invalid KODI_PORT: {default_port_str!r}") from e

    if host.startswith('tcp://'):
        host = host[6:]
    elif '://' in host:
        raise ConfigError(f"Invalid host protocol specifier for TCP transport: '{host}'")

    port: int
    if host.startswith('[') and ']' in host:
        # bracketed IPV6 literal, optionally followed by ":<port>"
        bracket_end = host.index(']')
        rest = host[bracket_end+1:]
        result_host = host[1:bracket_end]
        if rest.startswith(':'):
            port = _parse_port(rest[1:], host)
        elif rest == '':
            port = default_port
        else:
            raise ConfigError(f"Invalid Kodi host specifier: '{host}'")
    elif host.count(':') == 1:
        result_host, port_str = host.rsplit(':', 1)
        port = _parse_port(port_str, host)
    else:
        result_host = host
        port = default_port

    if result_host == '':
        raise ConfigError(f"Invalid Kodi host specifier: '{host}'")

    return (result_host, port)

def _parse_port(port_str: str, host: str) -> int:
    try:
        port = int(port_str)
    except ValueError as e:
        raise ConfigError(f"Invalid port in Kodi host specifier: '{host}'") from e
    if port <= 0 or port > 65535:
        raise ConfigError(f"Port out of range in Kodi host specifier: '{host}'")
    return port
