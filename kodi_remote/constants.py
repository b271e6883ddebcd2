# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by kodi_remote"""

DEFAULT_PORT = 9090
"""The listen port number used by Kodi for raw TCP JSON-RPC."""

DEFAULT_NAME = "kodi"
"""The default friendly name of a Kodi device."""

DEFAULT_TIMEOUT = 5.0
"""The default timeout for reading a JSON-RPC reply, in seconds."""

CONNECT_TIMEOUT = 5.0
"""The timeout for connecting to Kodi over TCP/IP, in seconds."""

DEFAULT_POWER_ON_RETRIES = 60
"""Number of times the wake+probe sequence is retried by power_on() before giving up."""

WAKE_RETRY_INTERVAL = 1.0
"""The interval between wake+probe attempts while Kodi boots, in seconds."""

WOL_BROADCAST_ADDRESS = "255.255.255.255"
"""The address Wake-on-LAN magic packets are sent to."""

WOL_PORT = 9
"""The UDP port Wake-on-LAN magic packets are sent to."""

JSONRPC_VERSION = "2.0"
"""Value of the "jsonrpc" member of every request."""

MAX_LINE_LENGTH = 4 * 1024 * 1024
"""Upper bound on the size of one newline-framed JSON-RPC message, in bytes."""
