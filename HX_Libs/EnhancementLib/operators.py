"""
Enhancement operators for papyri legibility.

Every lightness operator returns a new field in [0, 1] computed over the
foreground only (background pixels are NaN during the computation so they
do not take part in the dynamic range stretch). Variants are then rendered
by applying postprocessing (negative polarity, blue shift) and, for masked
runs, reinserting the original background.

Classes:
    Postprocessing: Negative / hue-complement directive for one variant
    PreparedImage: Classified image with its CIELAB decomposition and mask

Functions:
    prepare_image: Build a PreparedImage from a classified raster
    vividness: L2-norm of the CIELAB triple
    lsv: Inverted lightness blended with the saturation/value difference
    adaptive_contrast: Tiled histogram equalization toward a Rayleigh distribution
    rayleigh_mapping: Map a uniform [0, 1] field onto a Rayleigh distribution
    negative: Reverse lightness polarity
    blue_shift: Negate both chromatic planes
    reinsert_background: Keep original values where the mask marks background
    render_lightness_variant: Postprocess a lightness field and convert to 8-bit
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging

import numpy as np
from skimage import color, exposure

from HX_Libs.constants import (
    ADAPTIVE_CLIP_LIMIT,
    ADAPTIVE_NBINS,
    ADAPTIVE_TILES,
    FILE_SUFFIX_BLUE,
    FILE_SUFFIX_NEGATIVE,
    LABEL_BLUE_NEGATIVE,
    LABEL_NEGATIVE,
    RAYLEIGH_ALPHA,
)
from HX_Libs.ImagingLib.color_space import (
    normalized_lightness,
    quantize,
    recompose_lab,
    rescale,
    rgb_to_lab,
)
from HX_Libs.ImagingLib.image_models import BackgroundMask, LabColorField, RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Postprocessing:
    """Postprocessing directive applied after a base operator.

    Attributes:
        negative: Reverse lightness polarity
        complement_hue: Negate the chromatic planes (blue shift); implies negative
    """
    negative: bool = False
    complement_hue: bool = False

    @property
    def label(self) -> str:
        if self.complement_hue:
            return LABEL_BLUE_NEGATIVE
        if self.negative:
            return LABEL_NEGATIVE
        return ""

    @property
    def file_suffix(self) -> str:
        if self.complement_hue:
            return FILE_SUFFIX_NEGATIVE + FILE_SUFFIX_BLUE
        if self.negative:
            return FILE_SUFFIX_NEGATIVE
        return ""


PRIMARY = Postprocessing()
NEGATIVE = Postprocessing(negative=True)
BLUE_NEGATIVE = Postprocessing(negative=True, complement_hue=True)


@dataclass(frozen=True, eq=False)
class PreparedImage:
    """A classified image ready for enhancement.

    Attributes:
        raster: Classified (and, for color, gamut-expanded) image
        lab: CIELAB decomposition, None for grayscale
        lightness: Normalized lightness in [0, 1] for color, or the gray
            values scaled to [0, 1] for grayscale
        mask: Background mask for masked runs, None otherwise
    """
    raster: RasterImage
    lab: Optional[LabColorField]
    lightness: np.ndarray
    mask: Optional[BackgroundMask] = None

    @property
    def grayscale(self) -> bool:
        return self.raster.grayscale

    @property
    def masked(self) -> bool:
        return self.mask is not None

    def with_mask(self, mask: Optional[BackgroundMask]) -> "PreparedImage":
        return replace(self, mask=mask)

    def foreground(self, field: np.ndarray) -> np.ndarray:
        """Return ``field`` with background pixels set to NaN (unchanged when unmasked)."""
        if self.mask is None:
            return np.asarray(field, dtype=np.float64)
        background = self.mask.background
        if field.ndim == 3:
            background = background[:, :, np.newaxis]
        return np.where(background, np.nan, field)


def prepare_image(raster: RasterImage, mask: Optional[BackgroundMask] = None) -> PreparedImage:
    """Decompose a classified raster for the enhancement operators."""
    if raster.grayscale:
        return PreparedImage(raster=raster, lab=None, lightness=raster.as_float(), mask=mask)

    lab = rgb_to_lab(raster.pixels)
    return PreparedImage(raster=raster, lab=lab, lightness=normalized_lightness(lab), mask=mask)


def _require_color(prepared: PreparedImage, operator: str) -> LabColorField:
    if prepared.lab is None:
        raise ValueError(f"{operator} requires a color image")
    return prepared.lab


def vividness(prepared: PreparedImage) -> np.ndarray:
    """CIELAB vividness: per-pixel L2-norm of (L, a, b), rescaled to [0, 1]."""
    lab = _require_color(prepared, "Vividness")
    foreground = prepared.foreground(lab.lab)
    return rescale(np.sqrt(np.sum(foreground ** 2, axis=2)))


def lsv(prepared: PreparedImage) -> np.ndarray:
    """
    Lightness and difference of saturation and value.

    The absolute difference of V and the inverted saturation is averaged
    with the inverted lightness, and the result is inverted again.
    """
    _require_color(prepared, "LSV")
    hsv = color.rgb2hsv(prepared.raster.pixels)
    inverted_saturation = 1.0 - hsv[:, :, 1]
    difference = np.abs(hsv[:, :, 2] - inverted_saturation)
    difference = rescale(prepared.foreground(difference))

    inverted_lightness = rescale(1.0 - prepared.foreground(prepared.lightness))

    return 1.0 - (inverted_lightness + difference) / 2.0


def rayleigh_mapping(uniform: np.ndarray, alpha: float = RAYLEIGH_ALPHA) -> np.ndarray:
    """
    Map a uniformly distributed [0, 1] field onto a Rayleigh distribution.

    The Rayleigh CDF is truncated at 1 so the output also lies in [0, 1].
    """
    spread = 2.0 * alpha ** 2
    vmax = 1.0 - np.exp(-1.0 / spread)
    value = np.clip(vmax * uniform, 0.0, 1.0 - np.finfo(np.float64).eps)
    return np.sqrt(-spread * np.log(1.0 - value))


def adaptive_contrast(field: np.ndarray) -> np.ndarray:
    """
    Contrast-limited adaptive histogram equalization with a Rayleigh target.

    NaN (masked) entries are zeroed first. The field is rescaled before and
    after equalization.

    Args:
        field: 2-D field, typically normalized lightness or gray values

    Returns:
        Field in [0, 1]
    """
    field = rescale(np.nan_to_num(field, nan=0.0))
    kernel_size = tuple(max(1, size // ADAPTIVE_TILES) for size in field.shape)
    equalized = exposure.equalize_adapthist(
        field,
        kernel_size=kernel_size,
        clip_limit=ADAPTIVE_CLIP_LIMIT,
        nbins=ADAPTIVE_NBINS,
    )
    return rescale(rayleigh_mapping(equalized))


def adaptive_contrast_lightness(prepared: PreparedImage) -> np.ndarray:
    """Adaptive contrast over the lightness (color) or gray values (grayscale)."""
    return adaptive_contrast(prepared.foreground(prepared.lightness))


def negative(field: np.ndarray) -> np.ndarray:
    """Reverse polarity of a [0, 1] field."""
    return 1.0 - field


def blue_shift(a: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Change the sign of both chromatic planes."""
    return -a, -b


def reinsert_background(
    enhanced: np.ndarray,
    original: np.ndarray,
    background: np.ndarray,
) -> np.ndarray:
    """
    Keep ``original`` where ``background`` is True and ``enhanced`` elsewhere.

    ``background`` is 2-D; it is broadcast over a trailing channel axis.
    """
    if enhanced.ndim == 3 and background.ndim == 2:
        background = background[:, :, np.newaxis]
    return np.where(background, original, enhanced)


def render_lightness_variant(
    prepared: PreparedImage,
    lightness: np.ndarray,
    postprocessing: Postprocessing,
) -> np.ndarray:
    """
    Render one variant of a lightness operator as an 8-bit image.

    Args:
        prepared: The image the lightness was computed from
        lightness: Operator output in [0, 1]
        postprocessing: Directive for this variant

    Returns:
        (H, W, 3) uint8 for color images, (H, W) uint8 for grayscale
    """
    if postprocessing.negative or postprocessing.complement_hue:
        lightness = negative(lightness)

    if prepared.grayscale:
        if prepared.masked:
            lightness = reinsert_background(lightness, prepared.lightness, prepared.mask.background)
        return quantize(lightness)

    lab = prepared.lab
    a, b = lab.a, lab.b
    if postprocessing.complement_hue:
        a, b = blue_shift(a, b)

    if prepared.masked:
        background = prepared.mask.background
        lightness = reinsert_background(lightness, prepared.lightness, background)
        a = reinsert_background(a, lab.a, background)
        b = reinsert_background(b, lab.b, background)

    return recompose_lab(lightness, a, b)
