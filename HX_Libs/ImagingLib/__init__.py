"""
ImagingLib - Classification, color space and segmentation

This module provides the imaging foundations of the enhancement
pipeline for the Hierax project.
"""

from HX_Libs.ImagingLib.image_models import (
    BackgroundMask,
    LabColorField,
    OutputSet,
    RasterImage,
)
from HX_Libs.ImagingLib.classifier import classify_image
from HX_Libs.ImagingLib.color_space import (
    GamutExpander,
    lab_to_rgb,
    normalized_lightness,
    quantize,
    recompose_lab,
    rescale,
    rgb_to_lab,
    srgb_profile_bytes,
)
from HX_Libs.ImagingLib.segmentation import (
    GaborBankConfig,
    deshadowed_lightness,
    segment_background,
)

__all__ = [
    "BackgroundMask",
    "LabColorField",
    "OutputSet",
    "RasterImage",
    "classify_image",
    "GamutExpander",
    "lab_to_rgb",
    "normalized_lightness",
    "quantize",
    "recompose_lab",
    "rescale",
    "rgb_to_lab",
    "srgb_profile_bytes",
    "GaborBankConfig",
    "deshadowed_lightness",
    "segment_background",
]
