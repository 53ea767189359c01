"""
Grayscale/color classification of input rasters.

Functions:
    classify_image: Normalize channel layout and classify an 8-bit image
"""

import logging

import numpy as np

from HX_Libs.ImagingLib.image_models import RasterImage

logger = logging.getLogger(__name__)


def classify_image(pixels: np.ndarray, red_channel_only: bool = False) -> RasterImage:
    """
    Classify an 8-bit image as grayscale or color.

    Images with more than 3 channels keep the first three (the rest is
    assumed to be alpha). A 2-channel image gets a zero third channel and is
    treated as color. A 3-channel image whose channels are pixel-identical
    collapses to a single grayscale channel.

    Args:
        pixels: (H, W) or (H, W, C) uint8 array
        red_channel_only: Keep only channel 0 of color images

    Returns:
        RasterImage with (H, W) pixels for grayscale or (H, W, 3) for color

    Raises:
        TypeError: If pixels is not a uint8 numpy array
        ValueError: If the array is not 2-D or 3-D or has no channels
    """
    if not isinstance(pixels, np.ndarray):
        raise TypeError(f"Expected numpy array, got {type(pixels)}")

    if pixels.dtype != np.uint8:
        raise TypeError(f"Expected 8-bit unsigned samples, got {pixels.dtype}")

    if pixels.ndim == 2:
        return RasterImage(pixels=pixels.copy(), grayscale=True, grayscale_source="single_channel")

    if pixels.ndim != 3 or pixels.shape[2] == 0:
        raise ValueError(f"Unsupported pixel layout with shape {pixels.shape}")

    if pixels.shape[2] > 3:
        pixels = pixels[:, :, :3]

    channels = pixels.shape[2]

    if channels == 1:
        return RasterImage(
            pixels=pixels[:, :, 0].copy(),
            grayscale=True,
            grayscale_source="single_channel",
        )

    if channels == 2:
        zeros = np.zeros(pixels.shape[:2] + (1,), dtype=np.uint8)
        pixels = np.concatenate([pixels, zeros], axis=2)
    elif np.array_equal(pixels[:, :, 0], pixels[:, :, 1]) and np.array_equal(
        pixels[:, :, 0], pixels[:, :, 2]
    ):
        return RasterImage(
            pixels=pixels[:, :, 0].copy(),
            grayscale=True,
            grayscale_source="identical_channels",
        )

    if red_channel_only:
        logger.debug("Retaining red channel only")
        return RasterImage(
            pixels=pixels[:, :, 0].copy(),
            grayscale=True,
            grayscale_source="red_channel",
        )

    return RasterImage(pixels=np.ascontiguousarray(pixels))
