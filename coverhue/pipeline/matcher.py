"""Filtering, ranking and catalog resolution of scanned images."""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Tuple

from .distance import color_distance
from .types import Color, ConfigurationError, ImageCandidate, MatchResult, RepresentativeColor, TrackMetadata

TRACK_ID_PATTERN = re.compile(r"[0-9A-Za-z]{22}")


class CatalogError(RuntimeError):
    """Raised when track metadata cannot be resolved."""


class CatalogNotFound(CatalogError):
    """Raised when the catalog has no entry for an identifier."""


class CatalogClient(Protocol):
    def fetch_metadata(self, identifier: str) -> TrackMetadata:
        ...


@dataclass(frozen=True)
class MatchConfig:
    target: Color
    threshold: float = 0.5
    min_coverage: float = 0.1
    extension: str = ".jpg"

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise ConfigurationError(f"threshold must be >= 0, got {self.threshold}")
        if not 0.0 <= self.min_coverage <= 1.0:
            raise ConfigurationError(f"min_coverage must be within [0, 1], got {self.min_coverage}")
        if not self.extension.startswith(".") or len(self.extension) < 2:
            raise ConfigurationError(f"extension must look like '.jpg', got {self.extension!r}")


@dataclass(frozen=True)
class _Survivor:
    identifier: str
    path: Path
    distance: float
    coverage: float


class MatchPipeline:
    """Keeps images whose closest sufficiently-covering color is near the target."""

    def __init__(self, config: MatchConfig, client: CatalogClient, logger: Optional[logging.Logger] = None) -> None:
        self._config = config
        self._client = client
        self._logger = logger or logging.getLogger(__name__)

    @property
    def config(self) -> MatchConfig:
        return self._config

    async def match(self, candidates: Iterable[ImageCandidate]) -> List[MatchResult]:
        survivors: List[_Survivor] = []
        for candidate in candidates:
            best = self.select_best(candidate)
            if best is None:
                continue
            identifier = self.identifier_for(candidate.path)
            if identifier is None:
                self._logger.debug("No track identifier in file name %s", candidate.path.name)
                continue
            color, distance = best
            survivors.append(_Survivor(identifier, candidate.path, distance, color.coverage))

        if not survivors:
            return []

        self._logger.debug("Resolving metadata for %d matches", len(survivors))
        resolved = await asyncio.gather(*(self._resolve(survivor) for survivor in survivors))
        results = [result for result in resolved if result is not None]
        results.sort(key=lambda result: (result.distance, -result.coverage, result.identifier))
        return results

    def select_best(self, candidate: ImageCandidate) -> Optional[Tuple[RepresentativeColor, float]]:
        """Return the closest color covering at least ``min_coverage``, if within threshold."""
        best: Optional[Tuple[RepresentativeColor, float]] = None
        for entry in candidate.colors:
            if entry.coverage < self._config.min_coverage:
                continue
            distance = color_distance(self._config.target, entry.color)
            if best is None or (distance, -entry.coverage) < (best[1], -best[0].coverage):
                best = (entry, distance)
        if best is None or best[1] >= self._config.threshold:
            return None
        return best

    def identifier_for(self, path: Path) -> Optional[str]:
        name = Path(path).name
        extension = self._config.extension
        if not name.endswith(extension):
            return None
        stem = name[: -len(extension)]
        if not TRACK_ID_PATTERN.fullmatch(stem):
            return None
        return stem

    # ------------------------------------------------------------------
    async def _resolve(self, survivor: _Survivor) -> MatchResult | None:
        try:
            metadata = await asyncio.to_thread(self._client.fetch_metadata, survivor.identifier)
        except CatalogError as error:
            self._logger.warning("Metadata lookup failed for %s: %s", survivor.identifier, error)
            return None
        except Exception:  # noqa: BLE001 - one failed lookup must not fail the batch
            self._logger.exception("Unexpected failure resolving %s", survivor.identifier)
            return None
        return MatchResult(
            identifier=survivor.identifier,
            path=survivor.path,
            distance=survivor.distance,
            coverage=survivor.coverage,
            metadata=metadata,
        )
