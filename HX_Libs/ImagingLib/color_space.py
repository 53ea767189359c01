"""
Color space conversions for Hierax.

This module provides the color science used by every enhancement method:
gamut expansion through ICC profiles, sRGB <-> CIELAB conversion with the
D65 white point, lightness normalization, and clipping/quantization back to
8-bit display values.

Classes:
    GamutExpander: Profile-based gamut expansion, disabled with a warning
        when a profile cannot be loaded

Functions:
    rescale: Min-max stretch of a field to [0, 1], ignoring NaN
    rgb_to_lab: Convert an sRGB image to CIELAB
    normalized_lightness: Rescaled CIELAB lightness in [0, 1]
    lab_to_rgb: Convert CIELAB planes to clipped 8-bit sRGB
    recompose_lab: Substitute a normalized lightness into (a, b) and convert
    quantize: Clip a [0, 1] field and convert to uint8
    srgb_profile_bytes: Bytes of the sRGB ICC profile to embed in outputs
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging
import warnings

import numpy as np
from skimage import color

from HX_Libs.constants import (
    ADOBE_RGB_PROFILE_FILENAME,
    PRECISION,
    SRGB_PROFILE_FILENAME,
    WHITE_POINT,
)
from HX_Libs.ImagingLib.image_models import LabColorField, RasterImage
from HX_Libs.pillow_compat import Image, ImageCms

logger = logging.getLogger(__name__)


def rescale(field: np.ndarray) -> np.ndarray:
    """
    Stretch a field linearly to [0, 1].

    NaN entries are ignored for the min/max and stay NaN. A constant field
    maps to zeros.
    """
    field = np.asarray(field, dtype=np.float64)
    finite = np.isfinite(field)
    if not finite.any():
        return field.copy()

    low = field[finite].min()
    high = field[finite].max()
    if high == low:
        return np.where(finite, 0.0, field)

    return (field - low) / (high - low)


def rgb_to_lab(pixels: np.ndarray) -> LabColorField:
    """
    Convert an sRGB image to CIELAB (D65).

    Args:
        pixels: (H, W, 3) uint8 array, or float array in [0, 1]

    Returns:
        LabColorField with L in [0, 100]
    """
    return LabColorField(lab=color.rgb2lab(pixels, illuminant=WHITE_POINT))


def normalized_lightness(lab: LabColorField) -> np.ndarray:
    """Return the CIELAB lightness rescaled to [0, 1]."""
    return rescale(lab.lightness)


def quantize(field: np.ndarray) -> np.ndarray:
    """Clip a [0, 1] field and round it to 8-bit values."""
    clipped = np.clip(field, 0.0, 1.0)
    return np.round(clipped * PRECISION).astype(np.uint8)


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """
    Convert CIELAB planes to 8-bit sRGB (D65).

    Out-of-gamut values are clamped to [0, 1] before quantization.

    Args:
        lab: (H, W, 3) float array with L in [0, 100]

    Returns:
        (H, W, 3) uint8 array
    """
    with warnings.catch_warnings():
        # negative Z values are expected after chroma negation; they are clipped
        warnings.simplefilter("ignore", UserWarning)
        rgb = color.lab2rgb(lab, illuminant=WHITE_POINT)
    return quantize(rgb)


def recompose_lab(lightness: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Rebuild an sRGB image from a normalized lightness and chromatic planes.

    Args:
        lightness: Field in [0, 1], scaled back to [0, 100]
        a: CIELAB a plane
        b: CIELAB b plane

    Returns:
        (H, W, 3) uint8 array
    """
    lab = np.stack([100.0 * lightness, a, b], axis=2)
    return lab_to_rgb(lab)


def srgb_profile_bytes(profile_path: Optional[Union[str, Path]] = None) -> Optional[bytes]:
    """
    Return the sRGB ICC profile to embed in output files.

    Reads ``profile_path`` when given, otherwise builds the littleCMS
    sRGB profile. Returns None if neither is available.
    """
    if profile_path is not None:
        try:
            return Path(profile_path).read_bytes()
        except OSError as e:
            logger.warning(f"Could not read sRGB profile {profile_path}: {e}")
            return None

    if ImageCms is None:
        return None

    try:
        return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB")).tobytes()
    except ImageCms.PyCMSError as e:
        logger.warning(f"Could not build sRGB ICC profile: {e}")
        return None


class GamutExpander:
    """
    Expand the color gamut of color images with an ICC profile pair.

    The sRGB-encoded values are read as Adobe RGB (1998) and rendered to
    sRGB with the perceptual intent in both directions, which spreads the
    chroma of the faded papyrus colors over the wider gamut. Grayscale
    images are returned untouched.

    Profiles are loaded once. If either one cannot be loaded, expansion is
    disabled for the lifetime of the expander and a single warning is
    recorded in ``warnings``.

    Example:
        >>> expander = GamutExpander(adobe_rgb_profile_path="profiles/AdobeRGB1998.icc")
        >>> expanded = expander.expand(raster)
        >>> expander.warnings
        []
    """

    def __init__(
        self,
        profile_dir: Optional[Union[str, Path]] = None,
        srgb_profile_path: Optional[Union[str, Path]] = None,
        adobe_rgb_profile_path: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            profile_dir: Directory holding the standard profile file names
            srgb_profile_path: Explicit sRGB profile file (default: built-in sRGB)
            adobe_rgb_profile_path: Explicit Adobe RGB (1998) profile file
        """
        profile_dir = Path(profile_dir) if profile_dir else None

        if srgb_profile_path is None and profile_dir is not None:
            candidate = profile_dir / SRGB_PROFILE_FILENAME
            if candidate.exists():
                srgb_profile_path = candidate
        if adobe_rgb_profile_path is None and profile_dir is not None:
            adobe_rgb_profile_path = profile_dir / ADOBE_RGB_PROFILE_FILENAME

        self.srgb_profile_path = Path(srgb_profile_path) if srgb_profile_path else None
        self.adobe_rgb_profile_path = Path(adobe_rgb_profile_path) if adobe_rgb_profile_path else None
        self.warnings: List[str] = []
        self._transform = None
        self._loaded = False

    @property
    def enabled(self) -> bool:
        """True if the profile transform is available."""
        return self._load_transform() is not None

    def expand(self, image: RasterImage) -> RasterImage:
        """
        Apply gamut expansion to a color image.

        Args:
            image: Classified RasterImage

        Returns:
            A new RasterImage for color input, or ``image`` itself when the
            image is grayscale or expansion is disabled
        """
        if image.grayscale:
            return image

        transform = self._load_transform()
        if transform is None:
            return image

        source = Image.fromarray(image.pixels)
        expanded = ImageCms.applyTransform(source, transform)
        return RasterImage(pixels=np.asarray(expanded, dtype=np.uint8).copy())

    def _load_transform(self):
        if self._loaded:
            return self._transform

        self._loaded = True

        if ImageCms is None:
            self._disable("Pillow was built without littleCMS")
            return None

        if self.adobe_rgb_profile_path is None:
            self._disable(f"no {ADOBE_RGB_PROFILE_FILENAME} profile configured")
            return None

        try:
            source_profile, destination_profile = self._open_profiles()
            self._transform = ImageCms.buildTransform(
                source_profile,
                destination_profile,
                "RGB",
                "RGB",
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
            )
        except (OSError, ImageCms.PyCMSError) as e:
            self._disable(str(e))
            self._transform = None

        return self._transform

    def _open_profiles(self) -> Tuple[object, object]:
        source_profile = ImageCms.getOpenProfile(str(self.adobe_rgb_profile_path))
        if self.srgb_profile_path is not None:
            destination_profile = ImageCms.getOpenProfile(str(self.srgb_profile_path))
        else:
            destination_profile = ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))
        return source_profile, destination_profile

    def _disable(self, reason: str) -> None:
        message = (
            "Chromatic contrast using color gamut expansion not applied, "
            f"because the color profiles could not be read ({reason})."
        )
        self.warnings.append(message)
        logger.warning(message)
