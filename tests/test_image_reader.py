"""
Tests for image reading.

Tests cover:
- Supported pixel modes
- Palette expansion
- Rejected modes
- Missing and corrupt files
- Format helpers
"""

import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from HX_Libs.BatchLib.image_reader import (
    get_supported_formats,
    is_supported_format,
    read_image,
)


class TestReadImage(unittest.TestCase):
    """Test read_image."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def _save(self, image, name):
        path = self.dir / name
        image.save(path)
        return path

    def test_rgb(self):
        path = self._save(Image.new("RGB", (8, 6), (10, 20, 30)), "rgb.png")

        pixels = read_image(path)

        self.assertEqual(pixels.shape, (6, 8, 3))
        self.assertEqual(pixels.dtype, np.uint8)
        self.assertEqual(tuple(pixels[0, 0]), (10, 20, 30))

    def test_grayscale(self):
        path = self._save(Image.new("L", (8, 6), 77), "gray.png")

        pixels = read_image(path)

        self.assertEqual(pixels.shape, (6, 8))

    def test_gray_alpha(self):
        path = self._save(Image.new("LA", (8, 6), (77, 255)), "la.png")
        self.assertEqual(read_image(path).shape, (6, 8, 2))

    def test_rgba(self):
        path = self._save(Image.new("RGBA", (8, 6), (1, 2, 3, 4)), "rgba.png")
        self.assertEqual(read_image(path).shape, (6, 8, 4))

    def test_palette_expanded(self):
        image = Image.new("RGB", (8, 6), (200, 100, 50)).convert("P", palette=Image.Palette.ADAPTIVE)
        path = self._save(image, "palette.png")

        pixels = read_image(path)

        self.assertEqual(pixels.shape, (6, 8, 3))
        self.assertEqual(tuple(pixels[0, 0]), (200, 100, 50))

    def test_float_mode_rejected(self):
        path = self._save(Image.new("F", (8, 6), 0.5), "float.tif")

        with self.assertRaises(ValueError):
            read_image(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_image(self.dir / "missing.png")

    def test_corrupt_file(self):
        path = self.dir / "corrupt.png"
        path.write_bytes(b"not an image")

        with self.assertRaises(OSError) as ctx:
            read_image(path)

        self.assertIn("Failed to load image", str(ctx.exception))


class TestSupportedFormats(unittest.TestCase):
    """Test format helpers."""

    def test_supported_formats_sorted(self):
        formats = get_supported_formats()

        self.assertEqual(formats, sorted(formats))
        self.assertIn(".tif", formats)
        self.assertIn(".jpg", formats)

    def test_is_supported_format(self):
        self.assertTrue(is_supported_format("P1.TIF"))
        self.assertTrue(is_supported_format(Path("a/b.jpeg")))
        self.assertFalse(is_supported_format("notes.txt"))


if __name__ == "__main__":
    unittest.main()
