"""Dominant color clustering using KMeans in L*a*b* space."""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning

from .colorspace import labs_to_colors
from .types import ClusterRun, Color, ConfigurationError, RepresentativeColor


@dataclass(frozen=True)
class ClustererConfig:
    clusters: int = 8
    max_iterations: int = 20
    convergence: float = 0.0025
    run_count: int = 1
    seed: int = 0

    def __post_init__(self) -> None:
        if self.clusters < 1:
            raise ConfigurationError(f"clusters must be >= 1, got {self.clusters}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.convergence < 0:
            raise ConfigurationError(f"convergence must be >= 0, got {self.convergence}")
        if self.run_count < 1:
            raise ConfigurationError(f"run_count must be >= 1, got {self.run_count}")
        if self.seed < 0:
            raise ConfigurationError(f"seed must be >= 0, got {self.seed}")


class Clusterer:
    """Abstract clusterer."""

    def cluster(self, samples: np.ndarray) -> List[RepresentativeColor]:
        raise NotImplementedError


class KMeansClusterer(Clusterer):
    """KMeans clusterer that keeps the lowest-inertia run across several seeds."""

    def __init__(self, config: ClustererConfig | None = None) -> None:
        self._config = config or ClustererConfig()

    @property
    def config(self) -> ClustererConfig:
        return self._config

    def cluster(self, samples: np.ndarray) -> List[RepresentativeColor]:  # noqa: D401
        matrix = np.asarray(samples, dtype=np.float32).reshape(-1, 3)
        if matrix.shape[0] == 0:
            return []
        return self.representatives(self.best_run(matrix))

    def best_run(self, samples: np.ndarray) -> ClusterRun:
        matrix = np.asarray(samples, dtype=np.float32).reshape(-1, 3)
        n_samples = matrix.shape[0]
        if n_samples == 0:
            raise ValueError("Cannot cluster an empty sample set")

        k = min(self._config.clusters, n_samples)
        best: ClusterRun | None = None
        for attempt in range(self._config.run_count):
            run = self._run_once(matrix, k, self._config.seed + attempt)
            # strict comparison keeps the earliest run on ties
            if best is None or run.score < best.score:
                best = run
        assert best is not None
        return best

    def representatives(self, run: ClusterRun) -> List[RepresentativeColor]:
        """Rank a run's centroids by the share of samples assigned to them.

        Empty clusters are dropped. Centroids that quantize to the same 8-bit
        color are merged into the first one, so an image of a single flat
        color always yields exactly one entry.
        """
        counts = np.bincount(run.labels, minlength=run.cluster_count).astype(np.float64)
        total = float(counts.sum())
        if total <= 0:
            return []
        colors = labs_to_colors(run.centroids)

        merged: Dict[Color, float] = {}
        for index, color in enumerate(colors):
            if counts[index] <= 0:
                continue
            merged[color] = merged.get(color, 0.0) + counts[index] / total

        # dicts keep insertion order, so the sort is stable on centroid index
        ranked = sorted(merged.items(), key=lambda item: -item[1])
        return [RepresentativeColor(color=color, coverage=float(coverage)) for color, coverage in ranked]

    # ------------------------------------------------------------------
    def _run_once(self, matrix: np.ndarray, k: int, seed: int) -> ClusterRun:
        model = KMeans(
            n_clusters=k,
            init="k-means++",
            n_init=1,
            max_iter=self._config.max_iterations,
            tol=self._config.convergence,
            random_state=seed,
        )
        with warnings.catch_warnings():
            # duplicate pixels routinely yield fewer distinct clusters than k
            warnings.simplefilter("ignore", ConvergenceWarning)
            model.fit(matrix)
        return ClusterRun(
            centroids=np.asarray(model.cluster_centers_, dtype=np.float32),
            labels=np.asarray(model.labels_, dtype=np.int64),
            score=float(model.inertia_),
            seed=seed,
        )
