# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Kodi client abstract transport connector interface.

Provides a low-level abstract interface for objects that can create
connected transports to a Kodi device. Used by the reconnecting
transport to open a fresh connection whenever the previous one is lost.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..internal_types import *
from .client_transport import KodiClientTransport

class KodiConnector(ABC):
    """Abstract base class for Kodi client transport connectors."""

    @abstractmethod
    async def connect(self) -> KodiClientTransport:
        """Create and connect a client transport for the Kodi device associated
           with this connector.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()
