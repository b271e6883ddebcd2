# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Wake-on-LAN support for powering on a sleeping Kodi device.
"""

from __future__ import annotations

import asyncio
from functools import partial

from wakeonlan import send_magic_packet

from ..internal_types import *
from ..exceptions import WakeOnLanError
from ..constants import WOL_BROADCAST_ADDRESS, WOL_PORT
from ..pkg_logging import logger

async def send_wake_on_lan(
        mac: str,
        broadcast_address: str=WOL_BROADCAST_ADDRESS,
        port: int=WOL_PORT,
      ) -> None:
    """Broadcasts a Wake-on-LAN magic packet for mac. Fire-and-forget: success
       only means the packet was sent.

    Raises WakeOnLanError if the MAC address is malformed or the packet could not be sent.
    """
    logger.debug(f"Sending Wake-on-LAN packet to {mac} via {broadcast_address}:{port}")
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(
            None,
            partial(send_magic_packet, mac, ip_address=broadcast_address, port=port)
          )
    except (OSError, ValueError) as e:
        logger.error(f"Sending Wake-on-LAN packet to {mac} failed: {e}")
        raise WakeOnLanError(f"Unable to send Wake-on-LAN packet to {mac}: {e}") from e
