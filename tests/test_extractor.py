from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from coverhue.pipeline.clusterer import ClustererConfig, KMeansClusterer
from coverhue.pipeline.extractor import DecodeError, ExtractorConfig, ImageColorExtractor


def _write_png(path: Path, rgb: tuple[int, int, int], size: tuple[int, int] = (8, 8)) -> Path:
    image = np.zeros((size[0], size[1], 3), dtype=np.uint8)
    image[:, :] = rgb[::-1]  # OpenCV writes BGR
    assert cv2.imwrite(str(path), image)
    return path


def test_flat_red_image_has_one_color(tmp_path) -> None:
    path = _write_png(tmp_path / "red.png", (255, 0, 0))

    colors = ImageColorExtractor().extract(path)

    assert len(colors) == 1
    assert colors[0].coverage == pytest.approx(1.0)
    assert all(abs(a - b) <= 1 for a, b in zip(colors[0].color.rgb, (255, 0, 0)))


def test_split_image_reports_both_halves(tmp_path) -> None:
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    image[:, :7] = (0, 0, 255)  # red in BGR
    image[:, 7:] = (255, 0, 0)  # blue in BGR
    path = tmp_path / "split.png"
    assert cv2.imwrite(str(path), image)

    extractor = ImageColorExtractor(clusterer=KMeansClusterer(ClustererConfig(clusters=2)))
    colors = extractor.extract(path)

    assert [round(color.coverage, 2) for color in colors] == [0.7, 0.3]
    assert colors[0].color.red > 250 and colors[1].color.blue > 250


def test_alpha_channel_is_ignored(tmp_path) -> None:
    image = np.zeros((6, 6, 4), dtype=np.uint8)
    image[..., 1] = 255  # green
    image[..., 3] = np.arange(36, dtype=np.uint8).reshape(6, 6)
    path = tmp_path / "alpha.png"
    assert cv2.imwrite(str(path), image)

    colors = ImageColorExtractor().extract(path)

    assert len(colors) == 1
    assert colors[0].color.green > 250


def test_grayscale_image_is_expanded(tmp_path) -> None:
    path = tmp_path / "gray.png"
    assert cv2.imwrite(str(path), np.full((5, 5), 128, dtype=np.uint8))

    pixels = ImageColorExtractor().decode(path)

    assert pixels.shape == (5, 5, 3)
    assert (pixels == 128).all()


def test_corrupt_and_missing_files_raise_decode_error(tmp_path) -> None:
    corrupt = tmp_path / "corrupt.jpg"
    corrupt.write_bytes(b"definitely not a jpeg")
    empty = tmp_path / "empty.jpg"
    empty.write_bytes(b"")
    extractor = ImageColorExtractor()

    for path in (corrupt, empty, tmp_path / "missing.jpg", tmp_path):
        with pytest.raises(DecodeError):
            extractor.extract(path)


def test_large_images_are_downscaled_before_clustering(tmp_path) -> None:
    path = _write_png(tmp_path / "big.png", (0, 0, 255), size=(64, 64))
    seen = {}

    class RecordingClusterer(KMeansClusterer):
        def cluster(self, samples):
            seen["count"] = len(samples)
            return super().cluster(samples)

    extractor = ImageColorExtractor(ExtractorConfig(max_pixels=256), RecordingClusterer())
    colors = extractor.extract(path)

    assert seen["count"] <= 256
    assert colors[0].coverage == pytest.approx(1.0)
