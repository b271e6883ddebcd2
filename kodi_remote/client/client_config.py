# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi client configuration.

Provides the configuration object (device options) shared by connectors,
transports and KodiClient.
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import ConfigError
from ..constants import (
    DEFAULT_NAME,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    CONNECT_TIMEOUT,
    DEFAULT_POWER_ON_RETRIES,
    WAKE_RETRY_INTERVAL,
    WOL_BROADCAST_ADDRESS,
    WOL_PORT,
  )

_TRUE_STRINGS = ('1', 'true', 'yes', 'on')
_FALSE_STRINGS = ('0', 'false', 'no', 'off', '')

def _parse_bool(value: Union[str, bool, int], name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {value!r}")

class KodiClientConfig:
    """Kodi client configuration."""
    name: str
    address: Optional[str]
    port: int
    mac: Optional[str]
    shutdown_enabled: bool
    timeout_secs: float
    connect_timeout_secs: float
    power_on_retries: int
    wake_retry_interval_secs: float
    idle_disconnect_secs: Optional[float]
    wol_broadcast_address: str
    wol_port: int

    def __init__(
            self,
            address: Optional[str]=None,
            port: Optional[int]=None,
            *,
            name: Optional[str]=None,
            mac: Optional[str]=None,
            shutdown_enabled: Optional[bool]=None,
            timeout_secs: Optional[float]=None,
            connect_timeout_secs: Optional[float]=None,
            power_on_retries: Optional[int]=None,
            wake_retry_interval_secs: Optional[float]=None,
            idle_disconnect_secs: Optional[float]=None,
            wol_broadcast_address: Optional[str]=None,
            wol_port: Optional[int]=None,
            base_config: Optional[KodiClientConfig]=None
          ) -> None:
        """Creates a configuration for a Kodi client.

           Args:
             address: The hostname or IPV4 address of the Kodi device.
                   May optionally be prefixed with "tcp://".
                   May be suffixed with ":<port>" to specify a
                   non-default port, which will override the port argument.
                   If None, the address will be taken from the
                   KODI_HOST environment variable.
             port: The TCP/IP port of Kodi's JSON-RPC service.
                   If None, the port will be taken from KODI_PORT.
                   If that environment variable is not found, 9090 is used.
             name: A friendly name for the device, used in log messages.
             mac:  The MAC address of the device. Enables Wake-on-LAN in
                   power_on(). If None, taken from KODI_MAC.
             shutdown_enabled:
                   If True, power_off() sends System.Shutdown. If False,
                   power_off() does nothing. If None, taken from KODI_SHUTDOWN;
                   the default is False.
             timeout_secs:
                   The time to wait for each JSON-RPC reply, in seconds.
                   If None, taken from KODI_TIMEOUT, or the default (5 seconds).
             connect_timeout_secs:
                   The time to wait for a TCP connection to open, in seconds.
             power_on_retries:
                   The number of times power_on() retries the wake+probe
                   sequence before giving up. Default 60.
             wake_retry_interval_secs:
                   The pause between power_on() attempts, in seconds. Default 1.
             idle_disconnect_secs:
                   If not None, the connection is closed after this many
                   idle seconds, and reopened on demand. Default None (stay connected).
             wol_broadcast_address:
                   The address Wake-on-LAN packets are sent to.
             wol_port:
                   The UDP port Wake-on-LAN packets are sent to.
             base_config:
                   An optional base configuration to use.
        """
        if base_config is None:
            self.init_from_defaults()
        else:
            self.init_from_base_config(base_config)

        if address is not None and address != '':
            self.address = address

        if port is not None and port > 0:
            self.port = port

        if name is not None and name != '':
            self.name = name

        if mac is not None:
            self.mac = None if mac == '' else mac

        if shutdown_enabled is not None:
            self.shutdown_enabled = shutdown_enabled

        if timeout_secs is not None:
            self.timeout_secs = timeout_secs

        if connect_timeout_secs is not None:
            self.connect_timeout_secs = connect_timeout_secs

        if power_on_retries is not None:
            if power_on_retries < 0:
                raise ConfigError(f"power_on_retries must not be negative: {power_on_retries}")
            self.power_on_retries = power_on_retries

        if wake_retry_interval_secs is not None:
            if wake_retry_interval_secs < 0:
                raise ConfigError(f"wake_retry_interval_secs must not be negative: {wake_retry_interval_secs}")
            self.wake_retry_interval_secs = wake_retry_interval_secs

        if idle_disconnect_secs is not None:
            self.idle_disconnect_secs = None if idle_disconnect_secs <= 0 else idle_disconnect_secs

        if wol_broadcast_address is not None and wol_broadcast_address != '':
            self.wol_broadcast_address = wol_broadcast_address

        if wol_port is not None and wol_port > 0:
            self.wol_port = wol_port

    def init_from_defaults(self) -> None:
        """Initializes the configuration from defaults and environment variables."""
        self.name = DEFAULT_NAME
        address = os.environ.get('KODI_HOST')
        self.address = None if address == '' else address
        port_str = os.environ.get('KODI_PORT')
        if port_str is None or port_str == '':
            self.port = DEFAULT_PORT
        else:
            try:
                self.port = int(port_str)
            except ValueError as e:
                raise ConfigError(f"Invalid KODI_PORT: {port_str!r}") from e
        mac = os.environ.get('KODI_MAC')
        self.mac = None if mac == '' else mac
        shutdown_str = os.environ.get('KODI_SHUTDOWN')
        self.shutdown_enabled = False if shutdown_str is None else _parse_bool(shutdown_str, 'KODI_SHUTDOWN')
        timeout_str = os.environ.get('KODI_TIMEOUT')
        if timeout_str is None or timeout_str == '':
            self.timeout_secs = DEFAULT_TIMEOUT
        else:
            try:
                self.timeout_secs = float(timeout_str)
            except ValueError as e:
                raise ConfigError(f"Invalid KODI_TIMEOUT: {timeout_str!r}") from e
        self.connect_timeout_secs = CONNECT_TIMEOUT
        self.power_on_retries = DEFAULT_POWER_ON_RETRIES
        self.wake_retry_interval_secs = WAKE_RETRY_INTERVAL
        self.idle_disconnect_secs = None
        self.wol_broadcast_address = WOL_BROADCAST_ADDRESS
        self.wol_port = WOL_PORT

    def init_from_base_config(self, base_config: KodiClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.name = base_config.name
        self.address = base_config.address
        self.port = base_config.port
        self.mac = base_config.mac
        self.shutdown_enabled = base_config.shutdown_enabled
        self.timeout_secs = base_config.timeout_secs
        self.connect_timeout_secs = base_config.connect_timeout_secs
        self.power_on_retries = base_config.power_on_retries
        self.wake_retry_interval_secs = base_config.wake_retry_interval_secs
        self.idle_disconnect_secs = base_config.idle_disconnect_secs
        self.wol_broadcast_address = base_config.wol_broadcast_address
        self.wol_port = base_config.wol_port

    @classmethod
    def from_jsonable(
            cls,
            data: JsonableDict,
            base_config: Optional[KodiClientConfig]=None
          ) -> KodiClientConfig:
        """Creates a configuration from a JSON object, as loaded from a config file.

        Unknown keys are rejected. Missing keys fall back to base_config or
        the environment/defaults.
        """
        known_keys = (
            'name', 'address', 'port', 'mac', 'shutdown', 'timeout_secs',
            'connect_timeout_secs', 'power_on_retries', 'wake_retry_interval_secs',
            'idle_disconnect_secs', 'wol_broadcast_address', 'wol_port',
          )
        if not isinstance(data, dict):
            raise ConfigError(f"Kodi client config must be a JSON object, got {type(data).__name__}")
        unknown = [k for k in data if k not in known_keys]
        if len(unknown) > 0:
            raise ConfigError(f"Unknown Kodi client config keys: {', '.join(sorted(unknown))}")
        try:
            shutdown = data.get('shutdown')
            return cls(
                address=data.get('address'),
                port=None if data.get('port') is None else int(data['port']),
                name=data.get('name'),
                mac=data.get('mac'),
                shutdown_enabled=None if shutdown is None else _parse_bool(shutdown, 'shutdown'),
                timeout_secs=None if data.get('timeout_secs') is None else float(data['timeout_secs']),
                connect_timeout_secs=(
                    None if data.get('connect_timeout_secs') is None else float(data['connect_timeout_secs'])),
                power_on_retries=None if data.get('power_on_retries') is None else int(data['power_on_retries']),
                wake_retry_interval_secs=(
                    None if data.get('wake_retry_interval_secs') is None else float(data['wake_retry_interval_secs'])),
                idle_disconnect_secs=(
                    None if data.get('idle_disconnect_secs') is None else float(data['idle_disconnect_secs'])),
                wol_broadcast_address=data.get('wol_broadcast_address'),
                wol_port=None if data.get('wol_port') is None else int(data['wol_port']),
                base_config=base_config,
              )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid Kodi client config: {e}") from e

    def to_jsonable(self) -> JsonableDict:
        return {
            'name': self.name,
            'address': self.address,
            'port': self.port,
            'mac': self.mac,
            'shutdown': self.shutdown_enabled,
            'timeout_secs': self.timeout_secs,
            'connect_timeout_secs': self.connect_timeout_secs,
            'power_on_retries': self.power_on_retries,
            'wake_retry_interval_secs': self.wake_retry_interval_secs,
            'idle_disconnect_secs': self.idle_disconnect_secs,
            'wol_broadcast_address': self.wol_broadcast_address,
            'wol_port': self.wol_port,
          }

    def __str__(self) -> str:
        return (
            f"KodiClientConfig("
            f"name={self.name!r}, "
            f"address={self.address}, "
            f"port={self.port}, "
            f"mac={self.mac}, "
            f"shutdown_enabled={self.shutdown_enabled})"
          )

    def __repr__(self) -> str:
        return str(self)
