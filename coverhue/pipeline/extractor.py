"""Per-image dominant color extraction."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from .clusterer import Clusterer, KMeansClusterer
from .colorspace import pixels_to_lab
from .types import ConfigurationError, RepresentativeColor


class DecodeError(RuntimeError):
    """Raised when an image file cannot be read or decoded."""


@dataclass(frozen=True)
class ExtractorConfig:
    max_pixels: int = 0  # 0 disables downscaling

    def __post_init__(self) -> None:
        if self.max_pixels < 0:
            raise ConfigurationError(f"max_pixels must be >= 0, got {self.max_pixels}")


class ImageColorExtractor:
    """Decodes an image and reduces it to its ranked representative colors."""

    def __init__(
        self,
        config: ExtractorConfig | None = None,
        clusterer: Clusterer | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or ExtractorConfig()
        self._clusterer = clusterer or KMeansClusterer()
        self._logger = logger or logging.getLogger(__name__)

    def extract(self, path: Path) -> List[RepresentativeColor]:
        pixels = self.decode(path)
        if pixels.size == 0:
            self._logger.debug("Image %s has no pixels", path)
            return []
        pixels = self._downscale(pixels)
        samples = pixels_to_lab(pixels)
        colors = self._clusterer.cluster(samples)
        self._logger.debug("Extracted %d colors from %s", len(colors), path)
        return colors

    def decode(self, path: Path) -> np.ndarray:
        """Return the image at *path* as an RGB or RGBA uint8 array."""
        try:
            raw = np.fromfile(str(path), dtype=np.uint8)
        except OSError as error:
            raise DecodeError(f"Unable to read {path}: {error}") from error
        if raw.size == 0:
            raise DecodeError(f"Empty file: {path}")

        try:
            image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
        except cv2.error as error:
            raise DecodeError(f"Unable to decode {path}: {error}") from error
        if image is None:
            raise DecodeError(f"Unsupported or corrupt image: {path}")

        if image.dtype == np.uint16:
            image = (image // 257).astype(np.uint8)
        elif image.dtype != np.uint8:
            raise DecodeError(f"Unsupported pixel depth {image.dtype} in {path}")

        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        channels = image.shape[2]
        if channels == 1:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        raise DecodeError(f"Unsupported channel count {channels} in {path}")

    # ------------------------------------------------------------------
    def _downscale(self, pixels: np.ndarray) -> np.ndarray:
        max_pixels = self._config.max_pixels
        height, width = pixels.shape[:2]
        if not max_pixels or height * width <= max_pixels:
            return pixels
        scale = math.sqrt(max_pixels / float(height * width))
        size = (max(1, int(width * scale)), max(1, int(height * scale)))
        return cv2.resize(pixels, size, interpolation=cv2.INTER_AREA)
