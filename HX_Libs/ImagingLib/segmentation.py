"""
Unsupervised papyrus/background segmentation.

A bank of even-symmetric Gabor filters at a wavelength near the sampling
limit and a very narrow aspect ratio responds to thin, elongated ink-like
structures. The per-pixel maximum response across orientations is binarized
with a single global Otsu threshold. The background, made bright before
filtering, lands above the threshold and the papyrus below it. There is no
per-tile adaptivity; the method trades accuracy for speed over large batches.

Classes:
    GaborBankConfig: Filter bank parameters

Functions:
    deshadowed_lightness: Lightness of the color-invariant (chromaticity) image
    build_gabor_bank: Real parts of the oriented Gabor kernels
    integrate_orientations: Max response across orientations, rescaled
    segment_background: Full segmentation to a BackgroundMask
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

import numpy as np
from scipy import ndimage
from skimage.filters import gabor_kernel, threshold_otsu

from HX_Libs.constants import (
    DARK_BACKGROUND,
    DESHADOW_EPSILON,
    GABOR_ASPECT_RATIO,
    GABOR_BANDWIDTH,
    GABOR_ORIENTATION_STEP,
    GABOR_WAVELENGTH,
    MASK_BACKGROUNDS,
)
from HX_Libs.ImagingLib.color_space import normalized_lightness, rescale, rgb_to_lab
from HX_Libs.ImagingLib.image_models import BackgroundMask, RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaborBankConfig:
    """Gabor filter bank parameters.

    Attributes:
        wavelength: Wavelength of the sinusoidal carrier in pixels
        orientation_step: Angle between orientations in degrees, over [0, 180)
        bandwidth: Spatial-frequency bandwidth in octaves
        aspect_ratio: Ratio of the Gaussian envelope's along-carrier to
            across-carrier standard deviation
    """
    wavelength: float = GABOR_WAVELENGTH
    orientation_step: float = GABOR_ORIENTATION_STEP
    bandwidth: float = GABOR_BANDWIDTH
    aspect_ratio: float = GABOR_ASPECT_RATIO

    def __post_init__(self):
        if self.wavelength < 2:
            raise ValueError(f"wavelength must be >= 2 pixels, got {self.wavelength}")
        if not 0 < self.orientation_step <= 180:
            raise ValueError(f"orientation_step must be in (0, 180], got {self.orientation_step}")
        if self.bandwidth <= 0:
            raise ValueError(f"bandwidth must be positive, got {self.bandwidth}")
        if self.aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

    @property
    def orientations(self) -> List[float]:
        """Orientations in degrees, e.g. [0, 45, 90, 135] for a 45 degree step."""
        return list(np.arange(0.0, 180.0, self.orientation_step))

    @property
    def frequency(self) -> float:
        return 1.0 / self.wavelength

    def sigmas(self) -> Tuple[float, float]:
        """Return (sigma_x, sigma_y) of the Gaussian envelope."""
        octaves = 2.0 ** self.bandwidth
        prefactor = np.sqrt(np.log(2) / 2) / np.pi * (octaves + 1) / (octaves - 1)
        sigma_x = prefactor / self.frequency
        return sigma_x, sigma_x / self.aspect_ratio


def deshadowed_lightness(image: RasterImage) -> np.ndarray:
    """
    Lightness of a shadow-free version of a color image.

    Each channel is divided by the per-pixel channel sum, which removes
    intensity (shading) while keeping chromaticity.

    Returns:
        Normalized lightness in [0, 1]
    """
    if image.grayscale:
        raise ValueError("Shadow removal requires a color image")

    pixels = image.pixels.astype(np.float64)
    total = pixels.sum(axis=2, keepdims=True) + DESHADOW_EPSILON
    chromaticity = pixels / total
    return normalized_lightness(rgb_to_lab(chromaticity))


def build_gabor_bank(config: GaborBankConfig) -> List[np.ndarray]:
    """Return the even-symmetric (real) kernel for each orientation."""
    sigma_x, sigma_y = config.sigmas()
    bank = []
    for angle in config.orientations:
        kernel = gabor_kernel(
            config.frequency,
            theta=np.deg2rad(angle),
            sigma_x=sigma_x,
            sigma_y=sigma_y,
        )
        bank.append(np.real(kernel))
    return bank


def integrate_orientations(field: np.ndarray, bank: List[np.ndarray]) -> np.ndarray:
    """Filter ``field`` with each kernel and keep the per-pixel maximum, rescaled to [0, 1]."""
    responses = np.stack(
        [ndimage.convolve(field, kernel, mode="reflect") for kernel in bank],
        axis=2,
    )
    return rescale(responses.max(axis=2))


def segment_background(
    field: np.ndarray,
    mask_background: str,
    deshadowed: bool = False,
    config: Optional[GaborBankConfig] = None,
) -> BackgroundMask:
    """
    Segment the papyrus from its background.

    Args:
        field: Normalized lightness (or grayscale) in [0, 1]; for deshadowed
            segmentation pass the output of ``deshadowed_lightness``
        mask_background: "lightBackground" or "darkBackground"
        deshadowed: True if ``field`` comes from shadow removal; controls the
            post-binarization polarity
        config: Filter bank parameters (default: GaborBankConfig())

    Returns:
        BackgroundMask where True marks background

    Raises:
        ValueError: If mask_background is unknown or field is not 2-D
    """
    if mask_background not in MASK_BACKGROUNDS:
        raise ValueError(
            f"Unknown mask background '{mask_background}'. "
            f"Use one of: {', '.join(MASK_BACKGROUNDS)}"
        )

    field = np.asarray(field, dtype=np.float64)
    if field.ndim != 2:
        raise ValueError(f"Expected a 2-D field, got shape {field.shape}")

    config = config or GaborBankConfig()

    # make the background bright before filtering
    if mask_background == DARK_BACKGROUND:
        field = 1.0 - field

    integrated = integrate_orientations(field, build_gabor_bank(config))

    if np.ptp(integrated) == 0:
        binary = np.zeros(integrated.shape, dtype=bool)
    else:
        binary = integrated > threshold_otsu(integrated)

    # after the post-binarization flip, True marks the papyrus to enhance
    if not deshadowed:
        binary = ~binary
    background = ~binary

    logger.debug(
        f"Background mask: {background.mean():.1%} background "
        f"({mask_background}, deshadowed={deshadowed})"
    )

    return BackgroundMask(
        background=background,
        mask_background=mask_background,
        deshadowed=deshadowed,
    )
