"""
Pytest configuration and shared fixtures for Hierax tests.

This module provides synthetic rasters, a fake retinex capability and
helpers to write input images to temporary directories.
"""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def color_pixels():
    """
    Provide a 32x40 color image with distinct channels.

    Returns:
        (32, 40, 3) uint8 array
    """
    rng = np.random.default_rng(0)
    return rng.integers(20, 236, size=(32, 40, 3), dtype=np.uint8)


@pytest.fixture
def gray_pixels():
    """Provide a 32x40 single-channel gradient."""
    row = np.linspace(10, 245, 40).astype(np.uint8)
    return np.tile(row, (32, 1))


@pytest.fixture
def pseudo_color_pixels(gray_pixels):
    """Provide a 3-channel image whose channels are identical."""
    return np.stack([gray_pixels] * 3, axis=2)


@pytest.fixture
def papyrus_pixels():
    """
    Provide a light background carrying a brown sheet with dark strokes.

    Returns:
        (48, 48, 3) uint8 array
    """
    pixels = np.full((48, 48, 3), (235, 232, 225), dtype=np.uint8)
    pixels[8:40, 8:40] = (170, 130, 90)
    pixels[14:34:4, 12:36] = (60, 40, 30)
    pixels[12:36, 20] = (60, 40, 30)
    return pixels


@pytest.fixture
def sheet_pixels():
    """
    Provide a 96x96 light margin around a fibrous brown sheet with strokes.

    The margin is the outer 16 pixels; the sheet spans rows and columns
    16:80.

    Returns:
        (96, 96, 3) uint8 array
    """
    pixels = np.full((96, 96, 3), (235, 232, 225), dtype=np.uint8)
    pixels[16:80, 16:80] = (170, 130, 90)
    pixels[16:80:3, 16:80] = (150, 112, 78)
    pixels[28:72:8, 24:72] = (60, 40, 30)
    pixels[24:72, 40] = (60, 40, 30)
    return pixels


@pytest.fixture
def fake_retinex():
    """
    Provide a retinex capability that inverts the image when asked for a
    negative, and records its calls.
    """
    calls = []

    def retinex(pixels, method, postprocessing):
        calls.append((method, postprocessing))
        if postprocessing.negative:
            return (255 - pixels).astype(np.uint8)
        return pixels.copy()

    retinex.calls = calls
    return retinex


@pytest.fixture
def write_image():
    """Provide a helper writing a pixel array to a file and returning its path."""
    def _write(directory: Path, name: str, pixels: np.ndarray) -> Path:
        path = Path(directory) / name
        Image.fromarray(pixels).save(path)
        return path

    return _write


@pytest.fixture
def image_dir(tmp_path):
    """Provide a directory for input images."""
    directory = tmp_path / "scans"
    directory.mkdir()
    return directory
