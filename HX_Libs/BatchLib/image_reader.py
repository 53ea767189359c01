"""
Image reading for Hierax.

Images are decoded with Pillow into 8-bit numpy arrays. The channel layout
is left as stored (1, 2, 3 or 4 channels); the classifier decides what to
do with it.

Functions:
    read_image: Decode an image file into an 8-bit array
    get_supported_formats: Get list of supported image file extensions
    is_supported_format: Check if a file path has a supported extension
"""

from pathlib import Path
from typing import List, Union
import logging

import numpy as np

from HX_Libs.constants import SUPPORTED_STANDARD_IMAGES
from HX_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

# 8-bit modes accepted as stored
ACCEPTED_MODES = {"L", "LA", "RGB", "RGBA", "CMYK"}


def get_supported_formats() -> List[str]:
    """
    Get list of supported image formats.

    Returns:
        Sorted list of file extensions (e.g., ['.bmp', '.gif', ...])
    """
    return sorted(SUPPORTED_STANDARD_IMAGES)


def is_supported_format(file_path: Union[str, Path]) -> bool:
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def read_image(file_path: Union[str, Path]) -> np.ndarray:
    """
    Read an image file as an 8-bit array.

    Palette images are expanded to RGB (or RGBA when they carry
    transparency). CMYK samples are returned as stored; the classifier
    keeps their first three channels.

    Args:
        file_path: Path to the image file

    Returns:
        (H, W) or (H, W, C) uint8 array

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If the file cannot be decoded
        ValueError: If the pixel mode is not an 8-bit mode Hierax handles
    """
    file_path = Path(file_path)

    if not file_path.is_file():
        raise FileNotFoundError(f"Image file not found: {file_path}")

    try:
        with Image.open(file_path) as img:
            img.load()
            if img.mode == "P":
                img = img.convert("RGBA" if "transparency" in img.info else "RGB")
            elif img.mode == "PA":
                img = img.convert("RGBA")

            if img.mode not in ACCEPTED_MODES:
                raise ValueError(
                    f"Unsupported pixel mode '{img.mode}' in {file_path}. "
                    f"Supported modes: {', '.join(sorted(ACCEPTED_MODES))}"
                )

            pixels = np.asarray(img, dtype=np.uint8).copy()
    except (OSError, Image.DecompressionBombError) as e:
        raise OSError(f"Failed to load image from {file_path}: {str(e)}")

    logger.debug(f"Read {file_path} ({pixels.shape}, {pixels.dtype})")
    return pixels
