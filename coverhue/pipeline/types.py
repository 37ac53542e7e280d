"""Typed primitives for the coverhue matching pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Color:
    """An 8-bit sRGB display color."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
                raise TypeError(f"{name} must be an integer, got {value!r}")
            if not 0 <= int(value) <= 255:
                raise ValueError(f"{name} must be within 0..255, got {value}")
            object.__setattr__(self, name, int(value))

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)

    def to_lab(self) -> np.ndarray:
        from .colorspace import color_to_lab

        return color_to_lab(self)

    @classmethod
    def from_lab(cls, lab: Sequence[float]) -> "Color":
        from .colorspace import lab_to_color

        return lab_to_color(lab)

    def __str__(self) -> str:
        return self.hex


@dataclass
class ClusterRun:
    """One k-means attempt over an image's samples."""

    centroids: np.ndarray
    labels: np.ndarray
    score: float
    seed: int

    @property
    def cluster_count(self) -> int:
        return int(self.centroids.shape[0])


@dataclass(frozen=True)
class RepresentativeColor:
    """A cluster centroid in display space and the share of pixels it covers."""

    color: Color
    coverage: float


@dataclass
class ImageCandidate:
    """Extracted colors for one image, ordered by descending coverage."""

    path: Path
    colors: List[RepresentativeColor] = field(default_factory=list)


@dataclass(frozen=True)
class TrackMetadata:
    """Catalog entry resolved for a matched image."""

    identifier: str
    name: str
    preview_url: Optional[str] = None
    artists: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchResult:
    """Final, ranked match payload."""

    identifier: str
    path: Path
    distance: float
    coverage: float
    metadata: TrackMetadata

    @property
    def name(self) -> str:
        return self.metadata.name


class ConfigurationError(ValueError):
    """Raised when a pipeline component is constructed with invalid settings."""
