"""Concurrent directory scanning."""
from __future__ import annotations

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Optional

from .extractor import DecodeError, ImageColorExtractor
from .types import ConfigurationError, ImageCandidate


class ScanError(RuntimeError):
    """Raised when the image directory cannot be listed."""


class ScanProgress:
    """Thread-safe completion counter for a scan.

    ``on_advance`` is invoked with ``(completed, total)`` after every finished
    task. The scanner advances from the event-loop thread running the scan;
    ``advance`` itself is lock-protected and may be called from any thread.
    """

    def __init__(self, on_advance: Optional[Callable[[int, int], None]] = None) -> None:
        self._lock = threading.Lock()
        self._on_advance = on_advance
        self._total = 0
        self._completed = 0

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def set_total(self, total: int) -> None:
        with self._lock:
            self._total = total

    def advance(self) -> int:
        with self._lock:
            self._completed += 1
            completed = self._completed
            total = self._total
        if self._on_advance is not None:
            self._on_advance(completed, total)
        return completed


class ParallelScanner:
    """Runs color extraction over a directory, one task per file."""

    def __init__(self, extractor: ImageColorExtractor | None = None, logger: Optional[logging.Logger] = None) -> None:
        self._extractor = extractor or ImageColorExtractor()
        self._logger = logger or logging.getLogger(__name__)

    async def scan(
        self,
        directory: Path,
        limit: int,
        progress: ScanProgress | None = None,
    ) -> List[ImageCandidate]:
        if limit < 0:
            raise ConfigurationError(f"limit must be >= 0, got {limit}")
        progress = progress or ScanProgress()

        entries = self.list_entries(Path(directory), limit)
        progress.set_total(len(entries))
        self._logger.debug("Scanning %d entries in %s", len(entries), directory)

        results = await asyncio.gather(*(self._extract_one(path, progress) for path in entries))
        candidates = [candidate for candidate in results if candidate is not None]
        skipped = len(entries) - len(candidates)
        if skipped:
            self._logger.info("Skipped %d of %d files that could not be processed", skipped, len(entries))
        return candidates

    def list_entries(self, directory: Path, limit: int) -> List[Path]:
        """Return up to *limit* regular files from *directory*, sorted by name."""
        try:
            with os.scandir(directory) as iterator:
                names = sorted(entry.name for entry in iterator if entry.is_file())
        except OSError as error:
            raise ScanError(f"Unable to list image directory {directory}: {error}") from error
        return [directory / name for name in names[:limit]]

    # ------------------------------------------------------------------
    async def _extract_one(self, path: Path, progress: ScanProgress) -> ImageCandidate | None:
        candidate: ImageCandidate | None = None
        try:
            colors = await asyncio.to_thread(self._extractor.extract, path)
        except DecodeError as error:
            self._logger.warning("Skipping %s: %s", path.name, error)
        except Exception:  # noqa: BLE001 - one bad file must not fail the scan
            self._logger.exception("Unexpected failure extracting colors from %s", path)
        else:
            candidate = ImageCandidate(path=path, colors=colors)
        self._advance(progress, path)
        return candidate

    def _advance(self, progress: ScanProgress, path: Path) -> None:
        try:
            progress.advance()
        except Exception:  # noqa: BLE001 - progress reporting never affects results
            self._logger.exception("Progress callback failed after %s", path.name)
