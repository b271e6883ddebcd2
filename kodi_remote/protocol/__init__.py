# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Low-level protocol definitions for Kodi's JSON-RPC interface over raw TCP.

Refer to https://kodi.wiki/view/JSON-RPC_API for the official protocol documentation.
"""

from .jsonrpc import (
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcErrorInfo,
    next_request_id,
  )

from .buttons import (
    PLAY_PAUSE_BUTTONS,
    SPEED_BUTTONS,
    FASTFORWARD,
    REWIND,
    normalize_button_name,
    translate_button_to_kodi,
    input_method_for_button,
  )
