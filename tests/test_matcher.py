from __future__ import annotations

import asyncio
import math
import threading
from pathlib import Path

import pytest

from coverhue.pipeline.distance import color_distance
from coverhue.pipeline.matcher import CatalogNotFound, MatchConfig, MatchPipeline
from coverhue.pipeline.types import (
    Color,
    ConfigurationError,
    ImageCandidate,
    RepresentativeColor,
    TrackMetadata,
)

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)


class FakeCatalog:
    def __init__(self, missing: tuple[str, ...] = (), broken: tuple[str, ...] = ()) -> None:
        self.missing = set(missing)
        self.broken = set(broken)
        self.calls: list[str] = []

    def fetch_metadata(self, identifier: str) -> TrackMetadata:
        self.calls.append(identifier)
        if identifier in self.missing:
            raise CatalogNotFound(identifier)
        if identifier in self.broken:
            raise RuntimeError("connection reset")
        return TrackMetadata(identifier=identifier, name=f"Track {identifier[-2:]}")


def _track_id(index: int) -> str:
    return f"{index:022d}"


def _candidate(index: int, *colors: tuple[Color, float], extension: str = ".jpg") -> ImageCandidate:
    return ImageCandidate(
        path=Path("images") / f"{_track_id(index)}{extension}",
        colors=[RepresentativeColor(color, coverage) for color, coverage in colors],
    )


def _match(candidates, catalog=None, **config):
    config.setdefault("target", RED)
    pipeline = MatchPipeline(MatchConfig(**config), catalog or FakeCatalog())
    return asyncio.run(pipeline.match(candidates))


def test_exact_color_matches_with_zero_distance() -> None:
    results = _match([_candidate(1, (RED, 1.0))], threshold=0.01)

    assert len(results) == 1
    result = results[0]
    assert result.identifier == _track_id(1)
    assert result.distance == 0.0
    assert result.coverage == 1.0
    assert result.name == "Track 01"


def test_opposite_color_is_excluded() -> None:
    assert _match([_candidate(1, (BLUE, 1.0))], threshold=0.8) == []
    assert color_distance(RED, BLUE) == pytest.approx(math.sqrt(2.0 / 3.0))


def test_low_coverage_colors_are_ignored() -> None:
    candidate = _candidate(1, (BLUE, 0.95), (RED, 0.05))
    assert _match([candidate], threshold=0.5, min_coverage=0.1) == []


def test_closest_qualifying_color_wins() -> None:
    near_red = Color(240, 10, 10)
    candidate = _candidate(1, (BLUE, 0.6), (near_red, 0.4))

    results = _match([candidate], threshold=0.5)

    assert len(results) == 1
    assert results[0].coverage == 0.4
    assert results[0].distance == pytest.approx(color_distance(RED, near_red))


def test_threshold_is_strict() -> None:
    black = Color(0, 0, 0)
    threshold = color_distance(RED, black)
    assert _match([_candidate(1, (black, 1.0))], threshold=threshold) == []


def test_results_are_sorted_by_distance_then_coverage() -> None:
    candidates = [
        _candidate(1, (Color(200, 0, 0), 1.0)),
        _candidate(2, (Color(250, 0, 0), 0.5), (BLUE, 0.5)),
        _candidate(3, (RED, 0.3), (BLUE, 0.7)),
        _candidate(4, (Color(250, 0, 0), 0.9), (BLUE, 0.1)),
    ]

    results = _match(candidates, threshold=0.5)

    assert [result.identifier for result in results] == [
        _track_id(3),
        _track_id(4),
        _track_id(2),
        _track_id(1),
    ]
    distances = [result.distance for result in results]
    assert distances == sorted(distances)


def test_file_names_without_a_track_id_are_dropped() -> None:
    bad_paths = ["cover.jpg", "x" * 21 + ".jpg", _track_id(1) + ".png", _track_id(2) + ".JPG", "-" * 22 + ".jpg"]
    candidates = [ImageCandidate(Path(name), [RepresentativeColor(RED, 1.0)]) for name in bad_paths]
    catalog = FakeCatalog()

    assert _match(candidates, catalog=catalog, threshold=0.5) == []
    assert catalog.calls == []


def test_identifier_is_the_file_stem() -> None:
    pipeline = MatchPipeline(MatchConfig(target=RED), FakeCatalog())
    assert pipeline.identifier_for(Path("/tmp/4iV5W9uYEdYUVa79Axb7Rh.jpg")) == "4iV5W9uYEdYUVa79Axb7Rh"
    assert pipeline.identifier_for(Path("/tmp/4iV5W9uYEdYUVa79Axb7Rh.jpeg")) is None


def test_failed_lookups_drop_only_that_result() -> None:
    candidates = [_candidate(index, (RED, 1.0)) for index in range(1, 5)]
    catalog = FakeCatalog(missing=(_track_id(2),), broken=(_track_id(3),))

    results = _match(candidates, catalog=catalog, threshold=0.5)

    assert sorted(result.identifier for result in results) == [_track_id(1), _track_id(4)]
    assert sorted(catalog.calls) == [_track_id(index) for index in range(1, 5)]


def test_empty_input_yields_empty_result() -> None:
    assert _match([], threshold=0.5) == []
    assert _match([_candidate(1)], threshold=0.5) == []


def test_never_emits_results_violating_filters() -> None:
    colors = [Color(r, g, b) for r in (0, 128, 255) for g in (0, 128, 255) for b in (0, 128, 255)]
    candidates = [
        _candidate(index, (color, 0.6), (RED, 0.05), (BLUE, 0.35))
        for index, color in enumerate(colors)
    ]

    results = _match(candidates, threshold=0.4, min_coverage=0.1)

    assert results
    for result in results:
        assert result.distance < 0.4
        assert result.coverage >= 0.1
    assert len({result.path for result in results}) == len(results)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"threshold": -0.1},
        {"min_coverage": 1.5},
        {"min_coverage": -0.1},
        {"extension": "jpg"},
        {"extension": "."},
    ],
)
def test_invalid_match_configuration(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        MatchConfig(target=RED, **kwargs)


class RendezvousCatalog(FakeCatalog):
    def __init__(self, parties: int) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def fetch_metadata(self, identifier: str) -> TrackMetadata:
        self.barrier.wait()
        return super().fetch_metadata(identifier)


class ReverseOrderCatalog(FakeCatalog):
    """Each lookup finishes only after the lookup for the next identifier."""

    def __init__(self, identifiers: list[str]) -> None:
        super().__init__()
        self.order = identifiers
        self.done = {identifier: threading.Event() for identifier in identifiers}
        self.finished: list[str] = []
        self._lock = threading.Lock()

    def fetch_metadata(self, identifier: str) -> TrackMetadata:
        position = self.order.index(identifier)
        if position + 1 < len(self.order):
            if not self.done[self.order[position + 1]].wait(timeout=5):
                raise TimeoutError(identifier)
        metadata = super().fetch_metadata(identifier)
        with self._lock:
            self.finished.append(identifier)
        self.done[identifier].set()
        return metadata


def test_catalog_lookups_run_concurrently() -> None:
    candidates = [_candidate(index, (RED, 1.0)) for index in range(1, 4)]
    catalog = RendezvousCatalog(parties=3)

    results = _match(candidates, catalog=catalog, threshold=0.5)

    assert len(results) == 3
    assert not catalog.barrier.broken


def test_result_order_does_not_depend_on_lookup_completion_order() -> None:
    candidates = [
        _candidate(1, (RED, 1.0)),
        _candidate(2, (Color(250, 0, 0), 1.0)),
        _candidate(3, (Color(200, 0, 0), 1.0)),
    ]
    identifiers = [_track_id(index) for index in range(1, 4)]
    catalog = ReverseOrderCatalog(identifiers)

    results = _match(candidates, catalog=catalog, threshold=0.5)

    assert catalog.finished == list(reversed(identifiers))
    assert [result.identifier for result in results] == identifiers
