# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi emulator.

Provides a simple emulation of Kodi's JSON-RPC service on TCP/IP.
"""

from .emulator_impl import KodiEmulator, EmulatorMethodError
from .session import KodiEmulatorSession
