"""sRGB <-> CIE L*a*b* conversion helpers backed by OpenCV."""
from __future__ import annotations

from typing import List, Sequence

import cv2
import numpy as np

from .types import Color


def pixels_to_lab(pixels: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) pixel buffer into an ``(n, 3)`` float32 L*a*b* array.

    Accepts either an image shaped ``(h, w, 3|4)`` or a flat ``(n, 3|4)``
    array of 8-bit channels. Alpha is dropped. Each channel is scaled to
    [0, 1] before OpenCV's sRGB -> L*a*b* transform, which yields L in
    [0, 100] and a/b roughly in [-127, 127].
    """
    array = np.asarray(pixels)
    if array.size == 0:
        return np.empty((0, 3), dtype=np.float32)

    if array.ndim == 3 and array.shape[2] in (3, 4):
        flat = array.reshape(-1, array.shape[2])
    elif array.ndim == 2 and array.shape[1] in (3, 4):
        flat = array
    else:
        raise ValueError(f"Expected RGB or RGBA pixels, got array of shape {array.shape}")

    rgb = flat[:, :3].astype(np.float32) / 255.0
    lab = cv2.cvtColor(rgb.reshape(-1, 1, 3), cv2.COLOR_RGB2Lab)
    return lab.reshape(-1, 3)


def color_to_lab(color: Color) -> np.ndarray:
    return pixels_to_lab(np.array([color.rgb], dtype=np.uint8))[0]


def labs_to_colors(labs: np.ndarray) -> List[Color]:
    """Convert ``(n, 3)`` L*a*b* values back to the nearest 8-bit colors."""
    array = np.asarray(labs, dtype=np.float32).reshape(-1, 3)
    if array.shape[0] == 0:
        return []
    rgb = cv2.cvtColor(np.ascontiguousarray(array.reshape(-1, 1, 3)), cv2.COLOR_Lab2RGB)
    quantized = np.clip(np.rint(rgb.reshape(-1, 3) * 255.0), 0, 255).astype(np.int64)
    return [Color(int(r), int(g), int(b)) for r, g, b in quantized]


def lab_to_color(lab: Sequence[float]) -> Color:
    return labs_to_colors(np.asarray(lab, dtype=np.float32).reshape(1, 3))[0]
