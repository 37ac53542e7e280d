"""Normalized display-space color distance."""
from __future__ import annotations

import math

from .types import Color

_MAX_NORM = math.sqrt(3.0)


def _channel_delta(a: int, b: int) -> float:
    return a / 255.0 - b / 255.0


def color_distance(a: Color, b: Color) -> float:
    """Return the Euclidean distance between *a* and *b* scaled to [0, 1].

    Channels are normalized to the unit interval before differencing and the
    norm is divided by sqrt(3), so black vs white is exactly 1.0.
    """
    d_r = _channel_delta(a.red, b.red)
    d_g = _channel_delta(a.green, b.green)
    d_b = _channel_delta(a.blue, b.blue)
    return min(1.0, math.sqrt(d_r * d_r + d_g * d_g + d_b * d_b) / _MAX_NORM)
