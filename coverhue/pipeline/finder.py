"""High-level search orchestrator."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .clusterer import ClustererConfig, KMeansClusterer
from .extractor import ExtractorConfig, ImageColorExtractor
from .matcher import CatalogClient, MatchConfig, MatchPipeline
from .scanner import ParallelScanner, ScanError, ScanProgress
from .types import ConfigurationError, MatchResult


@dataclass(frozen=True)
class FinderConfig:
    directory: Path
    match: MatchConfig
    limit: int = 100
    cluster: ClustererConfig = field(default_factory=ClustererConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ConfigurationError(f"limit must be >= 0, got {self.limit}")
        object.__setattr__(self, "directory", Path(self.directory))


class Finder:
    """Coordinates scanning, matching and catalog resolution."""

    def __init__(self, config: FinderConfig, client: CatalogClient, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        extractor = ImageColorExtractor(config.extractor, KMeansClusterer(config.cluster), self._logger)
        self._scanner = ParallelScanner(extractor, self._logger)
        self._matcher = MatchPipeline(config.match, client, self._logger)

    async def find(self, progress: Optional[ScanProgress] = None) -> List[MatchResult]:
        directory = self._config.directory
        if not directory.exists():
            raise ScanError(f"Image directory does not exist: {directory}")
        if not directory.is_dir():
            raise ScanError(f"Image path is not a directory: {directory}")

        target = self._config.match.target
        self._logger.info(
            "Searching %s for %s (threshold=%.3f, limit=%d)",
            directory,
            target.hex,
            self._config.match.threshold,
            self._config.limit,
        )
        candidates = await self._scanner.scan(directory, self._config.limit, progress)
        results = await self._matcher.match(candidates)
        self._logger.info("Extracted colors from %d images, %d matched", len(candidates), len(results))
        return results

    def find_sync(self, progress: Optional[ScanProgress] = None) -> List[MatchResult]:
        return asyncio.run(self.find(progress))
