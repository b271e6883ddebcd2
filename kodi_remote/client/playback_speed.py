# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Playback speed stepping for repeated fast-forward/rewind presses.
"""

from __future__ import annotations

from fractions import Fraction

from ..internal_types import *

def next_speed(speed: Fraction, direction: int) -> Fraction:
    """Returns the speed that follows speed after one press in direction (+1 or -1).

    Moving further in the current direction doubles the magnitude; moving against it
    halves the magnitude. Stepping back from 1 enters reverse at -1 rather than 1/2,
    and stepping forward from -1 returns to 1. A speed of 0 is left unchanged.
    """
    if direction not in (1, -1):
        raise ValueError(f"Playback speed direction must be 1 or -1, got {direction!r}")
    if speed == 1 and direction < 0:
        return Fraction(-1)
    if speed == -1 and direction > 0:
        return Fraction(1)
    if speed > 0:
        return speed * 2 if direction > 0 else speed / 2
    if speed < 0:
        return speed * 2 if direction < 0 else speed / 2
    return speed

class PlaybackSpeed:
    """The playback speed most recently requested by a client.

    Not read back from Kodi; starts at 1 and only changes through step() and reset().
    """
    value: Fraction

    def __init__(self, value: Union[int, Fraction]=1):
        self.value = Fraction(value)

    def step(self, direction: int) -> Fraction:
        """Advances the speed one press in direction (+1 or -1) and returns the new speed."""
        self.value = next_speed(self.value, direction)
        return self.value

    def reset(self) -> None:
        self.value = Fraction(1)

    @property
    def wire_value(self) -> Union[int, float]:
        """The speed as sent in Player.SetSpeed: an int when integral."""
        if self.value.denominator == 1:
            return int(self.value)
        return float(self.value)

    def __str__(self) -> str:
        return f"PlaybackSpeed({self.value})"

    def __repr__(self) -> str:
        return str(self)
