"""Color matching pipeline components for coverhue."""

from .clusterer import Clusterer, ClustererConfig, KMeansClusterer
from .colorspace import color_to_lab, lab_to_color, labs_to_colors, pixels_to_lab
from .distance import color_distance
from .extractor import DecodeError, ExtractorConfig, ImageColorExtractor
from .finder import Finder, FinderConfig
from .matcher import CatalogClient, CatalogError, CatalogNotFound, MatchConfig, MatchPipeline
from .scanner import ParallelScanner, ScanError, ScanProgress
from .types import (
    ClusterRun,
    Color,
    ConfigurationError,
    ImageCandidate,
    MatchResult,
    RepresentativeColor,
    TrackMetadata,
)

__all__ = [
    "Clusterer",
    "ClustererConfig",
    "KMeansClusterer",
    "color_to_lab",
    "lab_to_color",
    "labs_to_colors",
    "pixels_to_lab",
    "color_distance",
    "DecodeError",
    "ExtractorConfig",
    "ImageColorExtractor",
    "Finder",
    "FinderConfig",
    "CatalogClient",
    "CatalogError",
    "CatalogNotFound",
    "MatchConfig",
    "MatchPipeline",
    "ParallelScanner",
    "ScanError",
    "ScanProgress",
    "ClusterRun",
    "Color",
    "ConfigurationError",
    "ImageCandidate",
    "MatchResult",
    "RepresentativeColor",
    "TrackMetadata",
]
