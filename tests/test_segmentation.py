"""
Tests for background segmentation.

Tests cover:
- Gabor bank configuration and kernels
- Shadow removal
- Mask polarity
- Which region of a papyrus scan is background
- Error handling
"""

import unittest

import numpy as np
import pytest

from HX_Libs.constants import DARK_BACKGROUND, LIGHT_BACKGROUND
from HX_Libs.ImagingLib.color_space import normalized_lightness, rgb_to_lab
from HX_Libs.ImagingLib.image_models import RasterImage
from HX_Libs.ImagingLib.segmentation import (
    GaborBankConfig,
    build_gabor_bank,
    deshadowed_lightness,
    integrate_orientations,
    segment_background,
)


class TestGaborBankConfig(unittest.TestCase):
    """Test GaborBankConfig."""

    def test_defaults(self):
        config = GaborBankConfig()

        self.assertEqual(config.wavelength, 2.0)
        self.assertEqual(config.orientations, [0.0, 45.0, 90.0, 135.0])
        self.assertEqual(config.frequency, 0.5)

    def test_sigmas_follow_aspect_ratio(self):
        config = GaborBankConfig()

        sigma_x, sigma_y = config.sigmas()

        self.assertGreater(sigma_x, 0)
        self.assertAlmostEqual(sigma_y, sigma_x / 0.05)

    def test_custom_orientation_step(self):
        config = GaborBankConfig(orientation_step=30)
        self.assertEqual(len(config.orientations), 6)

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            GaborBankConfig(wavelength=1)
        with self.assertRaises(ValueError):
            GaborBankConfig(orientation_step=0)
        with self.assertRaises(ValueError):
            GaborBankConfig(bandwidth=-1)
        with self.assertRaises(ValueError):
            GaborBankConfig(aspect_ratio=0)


class TestGaborBank(unittest.TestCase):
    """Test kernel construction and orientation integration."""

    def test_one_real_kernel_per_orientation(self):
        bank = build_gabor_bank(GaborBankConfig())

        self.assertEqual(len(bank), 4)
        for kernel in bank:
            self.assertEqual(kernel.ndim, 2)
            self.assertFalse(np.iscomplexobj(kernel))

    def test_integrated_response_is_normalized(self):
        rng = np.random.default_rng(3)
        field = rng.random((40, 40))

        integrated = integrate_orientations(field, build_gabor_bank(GaborBankConfig()))

        self.assertEqual(integrated.shape, field.shape)
        self.assertAlmostEqual(integrated.min(), 0.0)
        self.assertAlmostEqual(integrated.max(), 1.0)


class TestSegmentBackground(unittest.TestCase):
    """Test segment_background."""

    def setUp(self):
        rng = np.random.default_rng(4)
        self.field = rng.random((48, 48))

    def test_returns_boolean_mask(self):
        mask = segment_background(self.field, LIGHT_BACKGROUND)

        self.assertEqual(mask.background.shape, self.field.shape)
        self.assertEqual(mask.background.dtype, bool)
        self.assertEqual(mask.mask_background, LIGHT_BACKGROUND)
        self.assertFalse(mask.deshadowed)

    def test_dark_background_inverts_input(self):
        dark = segment_background(self.field, DARK_BACKGROUND)
        light = segment_background(1.0 - self.field, LIGHT_BACKGROUND)

        np.testing.assert_array_equal(dark.background, light.background)

    def test_deshadowed_keeps_binarization_polarity(self):
        plain = segment_background(self.field, LIGHT_BACKGROUND)
        deshadowed = segment_background(self.field, LIGHT_BACKGROUND, deshadowed=True)

        np.testing.assert_array_equal(plain.background, ~deshadowed.background)
        self.assertTrue(deshadowed.deshadowed)

    def test_constant_field(self):
        mask = segment_background(np.full((20, 20), 0.5), LIGHT_BACKGROUND)
        self.assertFalse(mask.background.any())

        deshadowed = segment_background(np.full((20, 20), 0.5), LIGHT_BACKGROUND, deshadowed=True)
        self.assertTrue(deshadowed.background.all())

    def test_foreground_is_complement(self):
        mask = segment_background(self.field, LIGHT_BACKGROUND)
        np.testing.assert_array_equal(mask.foreground, ~mask.background)

    def test_mask_image_is_white_on_background(self):
        mask = segment_background(self.field, LIGHT_BACKGROUND)

        image = mask.as_image()

        self.assertEqual(image.dtype, np.uint8)
        self.assertTrue((image[mask.background] == 255).all())
        self.assertTrue((image[mask.foreground] == 0).all())

    def test_unknown_polarity(self):
        with self.assertRaises(ValueError):
            segment_background(self.field, "greyBackground")

    def test_rejects_color_field(self):
        with self.assertRaises(ValueError):
            segment_background(np.zeros((8, 8, 3)), LIGHT_BACKGROUND)


MARGIN = np.ones((96, 96), dtype=bool)
MARGIN[10:86, 10:86] = False
SHEET = np.zeros((96, 96), dtype=bool)
SHEET[28:68, 28:68] = True


class TestPapyrusRegions:
    """The light margin of a scan is background, the sheet is not."""

    @pytest.fixture
    def lightness(self, sheet_pixels):
        return normalized_lightness(rgb_to_lab(sheet_pixels))

    def test_light_background(self, lightness):
        mask = segment_background(lightness, LIGHT_BACKGROUND)

        assert mask.background[MARGIN].mean() > 0.95
        assert mask.background[SHEET].mean() < 0.05

    def test_dark_background(self, sheet_pixels):
        inverted = normalized_lightness(rgb_to_lab(255 - sheet_pixels))

        mask = segment_background(inverted, DARK_BACKGROUND)

        assert mask.background[MARGIN].mean() > 0.95
        assert mask.background[SHEET].mean() < 0.05


class TestDeshadowedLightness(unittest.TestCase):
    """Test shadow removal."""

    def test_invariant_to_shading(self):
        rng = np.random.default_rng(5)
        pixels = (rng.integers(10, 120, size=(16, 16, 3)) * 2).astype(np.uint8)
        shaded = (pixels // 2).astype(np.uint8)

        lit = deshadowed_lightness(RasterImage(pixels=pixels))
        dim = deshadowed_lightness(RasterImage(pixels=shaded))

        np.testing.assert_allclose(lit, dim, atol=1e-9)

    def test_normalized_range(self):
        rng = np.random.default_rng(6)
        pixels = rng.integers(0, 256, size=(16, 16, 3), dtype=np.uint8)

        lightness = deshadowed_lightness(RasterImage(pixels=pixels))

        self.assertEqual(lightness.shape, (16, 16))
        self.assertGreaterEqual(lightness.min(), 0.0)
        self.assertLessEqual(lightness.max(), 1.0)

    def test_rejects_grayscale(self):
        raster = RasterImage(pixels=np.zeros((4, 4), dtype=np.uint8), grayscale=True)
        with self.assertRaises(ValueError):
            deshadowed_lightness(raster)


if __name__ == "__main__":
    unittest.main()
