# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi emulator session.

One asyncio protocol instance per client connection. Splits the incoming
byte stream into newline-framed messages and hands them to the emulator.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger

if TYPE_CHECKING:
    from .emulator_impl import KodiEmulator

class KodiEmulatorSession(asyncio.Protocol):
    emulator: KodiEmulator
    session_id: int
    transport: Optional[asyncio.Transport] = None
    buffer: bytearray
    closed: bool = False

    def __init__(self, emulator: KodiEmulator):
        super().__init__()
        self.emulator = emulator
        self.buffer = bytearray()
        self.session_id = emulator.alloc_session_id(self)

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        assert isinstance(transport, asyncio.Transport)
        self.transport = transport
        logger.debug(f"{self}: Connection made")

    def data_received(self, data: bytes) -> None:
        self.buffer.extend(data)
        while True:
            end = self.buffer.find(b'\n')
            if end < 0:
                break
            line = bytes(self.buffer[:end])
            del self.buffer[:end+1]
            if len(line.strip()) > 0:
                self.emulator.on_line_received(self, line)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"{self}: Connection lost: {exc}")
        self.closed = True
        self.transport = None
        self.emulator.free_session_id(self.session_id)

    def write(self, data: bytes) -> None:
        if self.transport is not None and not self.transport.is_closing():
            self.transport.write(data)

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()

    def __str__(self) -> str:
        return f"KodiEmulatorSession({self.session_id})"

    def __repr__(self) -> str:
        return str(self)
