#!/usr/bin/env python3
"""Find saved album art whose dominant color is close to a target color."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from coverhue.pipeline import (
    CatalogClient,
    CatalogError,
    ClustererConfig,
    ConfigurationError,
    ExtractorConfig,
    Finder,
    FinderConfig,
    MatchConfig,
    MatchResult,
    ScanError,
    ScanProgress,
)
from coverhue.service import config
from coverhue.service.catalog import SpotifyCatalogClient
from coverhue.service.colors import parse_color


def _color_arg(value: str):
    try:
        return parse_color(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(str(error)) from error


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find album art close to a color")
    parser.add_argument(
        "color",
        type=_color_arg,
        help="Target color: '#ff0000', '#f00', 'rgb(255, 0, 0)' or a CSS name such as 'red'",
    )
    parser.add_argument(
        "-d",
        "--directory",
        type=Path,
        default=config.IMAGE_DIR,
        help=f"Directory holding <track-id>{config.IMAGE_EXTENSION} images (default: {config.IMAGE_DIR})",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=config.THRESHOLD,
        help=f"Report images whose color distance is below this value (default: {config.THRESHOLD})",
    )
    parser.add_argument(
        "-l",
        "--limit",
        type=int,
        default=config.LIMIT,
        help=f"Maximum number of files to scan (default: {config.LIMIT})",
    )
    parser.add_argument(
        "--min-coverage",
        type=float,
        default=config.MIN_COVERAGE,
        help=f"Ignore colors covering less than this share of an image (default: {config.MIN_COVERAGE})",
    )
    parser.add_argument(
        "--clusters",
        type=int,
        default=config.CLUSTERS,
        help=f"Number of KMeans clusters per image (default: {config.CLUSTERS})",
    )
    parser.add_argument(
        "--max-iter",
        type=int,
        default=config.MAX_ITER,
        help=f"Maximum KMeans iterations (default: {config.MAX_ITER})",
    )
    parser.add_argument(
        "--runs",
        type=int,
        default=config.RUNS,
        help=f"KMeans runs per image, best inertia wins (default: {config.RUNS})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.SEED,
        help=f"KMeans seed of the first run (default: {config.SEED})",
    )
    parser.add_argument(
        "--convergence",
        type=float,
        default=config.CONVERGENCE,
        help=f"KMeans convergence tolerance (default: {config.CONVERGENCE})",
    )
    parser.add_argument(
        "--max-pixels",
        type=int,
        default=config.MAX_PIXELS,
        help="Downscale images above this many pixels before clustering (default: 0, disabled)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not display the scan progress bar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FinderConfig:
    return FinderConfig(
        directory=args.directory,
        limit=args.limit,
        match=MatchConfig(
            target=args.color,
            threshold=args.threshold,
            min_coverage=args.min_coverage,
            extension=config.IMAGE_EXTENSION,
        ),
        cluster=ClustererConfig(
            clusters=args.clusters,
            max_iterations=args.max_iter,
            convergence=args.convergence,
            run_count=args.runs,
            seed=args.seed,
        ),
        extractor=ExtractorConfig(max_pixels=args.max_pixels),
    )


def format_result(result: MatchResult) -> str:
    return f"{result.name} ... {result.identifier}, {result.path}, {result.distance:.4f}, {result.coverage:.4f}"


def run(finder_config: FinderConfig, client: CatalogClient, show_progress: bool) -> List[MatchResult]:
    finder = Finder(finder_config, client)
    with tqdm(total=0, unit="image", desc="Scanning", disable=not show_progress, leave=False) as bar:

        def _advance(completed: int, total: int) -> None:
            if bar.total != total:
                bar.total = total
            bar.update(1)

        return finder.find_sync(ScanProgress(_advance))


def main(argv: Optional[List[str]] = None, client: Optional[CatalogClient] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        finder_config = build_config(args)
        if client is None:
            client = SpotifyCatalogClient.from_env()
        results = run(finder_config, client, show_progress=not args.no_progress)
    except (ConfigurationError, ScanError, CatalogError) as error:
        print(f"[ERROR] {error}", file=sys.stderr)
        return 2

    for result in results:
        print(format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
