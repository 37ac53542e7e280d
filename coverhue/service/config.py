"""Runtime configuration for coverhue."""
from __future__ import annotations

import os
from pathlib import Path

IMAGE_DIR = Path(os.environ.get("COVERHUE_IMAGE_DIR", "./images"))
IMAGE_EXTENSION = os.environ.get("COVERHUE_IMAGE_EXTENSION", ".jpg")

THRESHOLD = float(os.environ.get("COVERHUE_THRESHOLD", "0.5"))
MIN_COVERAGE = float(os.environ.get("COVERHUE_MIN_COVERAGE", "0.1"))
LIMIT = int(os.environ.get("COVERHUE_LIMIT", "100"))

CLUSTERS = int(os.environ.get("COVERHUE_CLUSTERS", "8"))
MAX_ITER = int(os.environ.get("COVERHUE_MAX_ITER", "20"))
RUNS = int(os.environ.get("COVERHUE_RUNS", "1"))
SEED = int(os.environ.get("COVERHUE_SEED", "0"))
CONVERGENCE = float(os.environ.get("COVERHUE_CONVERGENCE", "0.0025"))
MAX_PIXELS = int(os.environ.get("COVERHUE_MAX_PIXELS", "0"))

HTTP_TIMEOUT = float(os.environ.get("COVERHUE_HTTP_TIMEOUT", "10"))
SPOTIFY_CLIENT_ID_ENV = "SPOTIFY_CLIENT_ID"
SPOTIFY_CLIENT_SECRET_ENV = "SPOTIFY_CLIENT_SECRET"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_URL = "https://api.spotify.com/v1"


__all__ = [
    "IMAGE_DIR",
    "IMAGE_EXTENSION",
    "THRESHOLD",
    "MIN_COVERAGE",
    "LIMIT",
    "CLUSTERS",
    "MAX_ITER",
    "RUNS",
    "SEED",
    "CONVERGENCE",
    "MAX_PIXELS",
    "HTTP_TIMEOUT",
    "SPOTIFY_CLIENT_ID_ENV",
    "SPOTIFY_CLIENT_SECRET_ENV",
    "SPOTIFY_TOKEN_URL",
    "SPOTIFY_API_URL",
]
