"""
Constants and configuration values for Hierax.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the enhancement core.
"""

# Image precision
PRECISION = 2 ** 8 - 1

# Color management (fixed, not configurable per run)
SRGB_PROFILE_FILENAME = "sRGB Profile.icc"
ADOBE_RGB_PROFILE_FILENAME = "AdobeRGB1998.icc"
WHITE_POINT = "D65"

# Background masking
LIGHT_BACKGROUND = "lightBackground"
DARK_BACKGROUND = "darkBackground"
MASK_BACKGROUNDS = (LIGHT_BACKGROUND, DARK_BACKGROUND)
DESHADOW_EPSILON = 2.220446049250313e-16

# Gabor filter bank defaults
GABOR_WAVELENGTH = 2.0  # pixels, Nyquist limit
GABOR_ORIENTATION_STEP = 45.0  # degrees
GABOR_BANDWIDTH = 15.0  # octaves, very long
GABOR_ASPECT_RATIO = 0.05  # very narrow, filiform

# Adaptive contrast (Rayleigh target distribution)
ADAPTIVE_CLIP_LIMIT = 0.01
ADAPTIVE_NBINS = 256
ADAPTIVE_TILES = 8
RAYLEIGH_ALPHA = 0.4

# Method labels
LABEL_ORIGINAL = "Original"
LABEL_VIVIDNESS = "Vividness"
LABEL_LSV = "LSV"
LABEL_ADAPTHISTEQ = "Adapthisteq"
LABEL_RETINEX = "Retinex"
LABEL_NEGATIVE = "Negative"
LABEL_BLUE_NEGATIVE = "Blue Negative"
LABEL_MASKED = "Masked"

# Retinex methods
RETINEX_COLOR_METHODS = (
    "MSRCR-RGB",
    "MSR-VAB",
    "MSR-LAB",
    "MSR-V",
    "MSR-L",
    "MSRCP-I",
    "MSRCP-V",
    "MSRCP-L",
)
RETINEX_GRAYSCALE_METHOD = "MSR-A"

# Label axes per image class
INPUT_LABELS = (LABEL_ORIGINAL,)
COLOR_PROCESSING_LABELS = (
    LABEL_VIVIDNESS,
    LABEL_LSV,
    LABEL_ADAPTHISTEQ,
) + tuple(f"{LABEL_RETINEX} {method}" for method in RETINEX_COLOR_METHODS)
COLOR_POSTPROCESSING_LABELS = ("", LABEL_NEGATIVE, LABEL_BLUE_NEGATIVE)
COLOR_AUXILIARY_LABELS = ("", LABEL_MASKED)
GRAYSCALE_PROCESSING_LABELS = (
    LABEL_ADAPTHISTEQ,
    f"{LABEL_RETINEX} {RETINEX_GRAYSCALE_METHOD}",
)
GRAYSCALE_POSTPROCESSING_LABELS = ("", LABEL_NEGATIVE)
GRAYSCALE_AUXILIARY_LABELS = ("", LABEL_MASKED)

# File naming
FILE_SUFFIX_NEGATIVE = "-neg"
FILE_SUFFIX_BLUE = "-blue"
FILE_LABEL_RED = "red"
FILE_LABEL_MASKED = "masked"
FILE_LABEL_DESHADOWED = "deshadowed"
FILE_LABEL_MASK = "mask"
MASK_FILE_FORMAT = "PNG"

# Output
DEFAULT_OUTPUT_DIR_NAME = "enhanced"
DEFAULT_JPEG_QUALITY = 75
FORMAT_JPEG = "JPEG"
FORMAT_TIFF = "TIFF"
FORMAT_EXTENSIONS = {FORMAT_JPEG: ".jpg", FORMAT_TIFF: ".tif"}
DEFAULT_EXIFTOOL = "exiftool"
UNREADABLE_LOG_FILENAME = "log unreadable images.txt"

# Supported input formats
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
