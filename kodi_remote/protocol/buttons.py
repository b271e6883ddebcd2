# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Mapping of generic remote-control button names onto Kodi's input vocabulary.
"""

from __future__ import annotations

from ..internal_types import *

PLAY_PAUSE_BUTTONS = frozenset(("PLAY", "PAUSE"))
"""Buttons that toggle playback and reset the playback speed."""

FASTFORWARD = "FASTFORWARD"
REWIND = "REWIND"

SPEED_BUTTONS: Dict[str, int] = {
    FASTFORWARD: 1,
    REWIND: -1,
  }
"""Buttons that change the playback speed, with their direction."""

INPUT_ACTION_OVERRIDES: Dict[str, str] = {
    "GUIDE": "ContextMenu",
  }
"""Buttons whose Kodi Input.* action is not simply the capitalized button name."""

def normalize_button_name(button: str) -> str:
    """Returns the canonical (upper case) form of a button name."""
    name = button.strip().upper()
    if name == '':
        raise ValueError("Button name must not be empty")
    return name

def translate_button_to_kodi(button: str) -> str:
    """Returns the Kodi Input.* action for a button name.

    "GUIDE" maps to "ContextMenu"; anything else is capitalized, so "UP" and "up"
    both map to "Up".
    """
    name = normalize_button_name(button)
    override = INPUT_ACTION_OVERRIDES.get(name)
    if override is not None:
        return override
    return name[0] + name[1:].lower()

def input_method_for_button(button: str) -> str:
    """Returns the JSON-RPC method name for a non-player button."""
    return f"Input.{translate_button_to_kodi(button)}"
