"""Target color parsing for coverhue."""
from __future__ import annotations

import re
from typing import Dict, Tuple

from coverhue.pipeline.types import Color

_NAMED_COLORS: Dict[str, Tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "white": (255, 255, 255),
    "maroon": (128, 0, 0),
    "red": (255, 0, 0),
    "purple": (128, 0, 128),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "olive": (128, 128, 0),
    "yellow": (255, 255, 0),
    "navy": (0, 0, 128),
    "blue": (0, 0, 255),
    "teal": (0, 128, 128),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "orange": (255, 165, 0),
    "pink": (255, 192, 203),
    "brown": (165, 42, 42),
    "gold": (255, 215, 0),
    "indigo": (75, 0, 130),
    "violet": (238, 130, 238),
    "skyblue": (135, 206, 235),
    "turquoise": (64, 224, 208),
}

_HEX_PATTERN = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")
_RGB_PATTERN = re.compile(r"rgba?\s*\((.*)\)", re.IGNORECASE)


def _parse_channel(token: str) -> int:
    token = token.strip()
    if token.endswith("%"):
        value = float(token[:-1]) / 100.0 * 255.0
    else:
        value = float(token)
    if not 0.0 <= value <= 255.0:
        raise ValueError(f"channel value out of range: {token}")
    return int(round(value))


def parse_color(value: str) -> Color:
    """Parse a CSS-like color string: ``#f00``, ``#ff0000``, ``rgb(255, 0, 0)`` or ``red``."""
    text = (value or "").strip()
    if not text:
        raise ValueError("empty color")

    named = _NAMED_COLORS.get(text.lower().replace(" ", ""))
    if named is not None:
        return Color(*named)

    hex_match = _HEX_PATTERN.fullmatch(text)
    if hex_match:
        digits = hex_match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return Color(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    rgb_match = _RGB_PATTERN.fullmatch(text)
    if rgb_match:
        tokens = [token for token in re.split(r"[,\s/]+", rgb_match.group(1).strip()) if token]
        if len(tokens) not in (3, 4):
            raise ValueError(f"expected three channels in {value!r}")
        try:
            return Color(*(_parse_channel(token) for token in tokens[:3]))
        except ValueError as error:
            raise ValueError(f"invalid color {value!r}: {error}") from error

    raise ValueError(f"unrecognized color {value!r}")


__all__ = ["parse_color"]
