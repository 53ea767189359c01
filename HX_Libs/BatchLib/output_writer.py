"""
Output writing for Hierax.

Enhanced images are saved next to their source, in an output directory
(default "enhanced"), as TIFF and/or JPEG. File names encode the source
extension, the red-channel reduction, the method, the mask polarity and
the shadow removal, so that variants of the same source never collide:

    <stem>_<ext>[-red]-<method>[-masked-<polarity>][-deshadowed].<tif|jpg>

Color outputs carry an embedded sRGB ICC profile: TIFF files get it as a
tag at save time, JPEG files through the external ExifTool program.
Embedding failures are reported as status strings and never raised.

Classes:
    OutputSettings: Output configuration
    OutputWriter: Writes variants and masks, collects ICC status messages

Functions:
    build_basename: Compose the output base name of a variant
    build_mask_filename: Compose the file name of a background mask
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import os
import subprocess
import tempfile

import numpy as np

from HX_Libs.constants import (
    DEFAULT_EXIFTOOL,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_OUTPUT_DIR_NAME,
    FILE_LABEL_DESHADOWED,
    FILE_LABEL_MASK,
    FILE_LABEL_MASKED,
    FILE_LABEL_RED,
    FORMAT_EXTENSIONS,
    FORMAT_JPEG,
    FORMAT_TIFF,
    MASK_FILE_FORMAT,
)
from HX_Libs.ImagingLib.color_space import srgb_profile_bytes
from HX_Libs.ImagingLib.image_models import BackgroundMask
from HX_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

ICC_STATUS_JPEG = "No ICC color profiles embedded in JPEG files."
ICC_STATUS_TIFF = "No ICC color profiles embedded in TIFF files."


@dataclass
class OutputSettings:
    """Configuration for writing enhanced images.

    Attributes:
        jpeg: Write JPEG files (default: True)
        tiff: Write TIFF files (default: False)
        jpeg_quality: JPEG quality 0-100 (default: 75)
        output_dir_name: Directory created next to the inputs (default: "enhanced")
        embed_icc: Embed the sRGB profile in color outputs (default: True)
        exiftool: ExifTool executable used for JPEG embedding
        icc_profile_path: sRGB profile file to embed (default: built-in sRGB)
    """
    jpeg: bool = True
    tiff: bool = False
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    output_dir_name: str = DEFAULT_OUTPUT_DIR_NAME
    embed_icc: bool = True
    exiftool: str = DEFAULT_EXIFTOOL
    icc_profile_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutputSettings":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)

    @property
    def formats(self) -> List[str]:
        """Enabled formats, TIFF first."""
        formats = []
        if self.tiff:
            formats.append(FORMAT_TIFF)
        if self.jpeg:
            formats.append(FORMAT_JPEG)
        return formats

    def get_save_kwargs(self, save_format: str) -> Dict[str, Any]:
        """Get PIL Image.save() kwargs for ``save_format``."""
        save_format = save_format.upper()
        if save_format == "JPG":
            save_format = FORMAT_JPEG

        kwargs = {"format": save_format}

        if save_format == FORMAT_JPEG:
            kwargs["quality"] = max(0, min(100, int(self.jpeg_quality)))

        return kwargs


def _source_prefix(source_path: Path) -> str:
    extension = source_path.suffix.lstrip(".")
    return f"{source_path.stem}_{extension}" if extension else source_path.stem


def build_basename(
    source_path: Union[str, Path],
    method_file_label: str,
    masked: bool = False,
    red_channel: bool = False,
    mask_background: str = "",
    deshadowed: bool = False,
) -> str:
    """
    Compose the base name (no extension) of an enhanced image.

    The source extension is kept in the name so that "a.png" and "a.jpg"
    do not overwrite each other.

    Example:
        >>> build_basename("P.Gen.1.tif", "lsv-neg", masked=True,
        ...                mask_background="lightBackground")
        'P.Gen.1_tif-lsv-neg-masked-lightBackground'
    """
    name = _source_prefix(Path(source_path))
    if red_channel:
        name += f"-{FILE_LABEL_RED}"
    name += f"-{method_file_label}"
    if masked:
        name += f"-{FILE_LABEL_MASKED}-{mask_background}"
    if deshadowed:
        name += f"-{FILE_LABEL_DESHADOWED}"
    return name


def build_mask_filename(source_path: Union[str, Path], mask_background: str, deshadowed: bool = False) -> str:
    name = f"{_source_prefix(Path(source_path))}-{FILE_LABEL_MASK}-{mask_background}"
    if deshadowed:
        name += f"-{FILE_LABEL_DESHADOWED}"
    return name + ".png"


class OutputWriter:
    """
    Writes enhanced images and masks into an output directory.

    Usable as a context manager; ``close()`` removes the temporary ICC file
    handed to ExifTool.

    Example:
        >>> with OutputWriter("scans/enhanced", OutputSettings(tiff=True)) as writer:
        ...     paths = writer.write_variant(bitmap, "scans/P1.jpg", "vividness")
        >>> writer.status_messages
        []
    """

    def __init__(self, output_dir: Union[str, Path], settings: Optional[OutputSettings] = None):
        self.output_dir = Path(output_dir)
        self.settings = settings or OutputSettings()
        self.status_messages: List[str] = []
        self._icc_bytes: Optional[bytes] = None
        self._icc_loaded = False
        self._icc_file: Optional[Path] = None

    def __enter__(self) -> "OutputWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ensure_output_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def write_variant(
        self,
        bitmap: np.ndarray,
        source_path: Union[str, Path],
        method_file_label: str,
        masked: bool = False,
        red_channel: bool = False,
        mask_background: str = "",
        deshadowed: bool = False,
    ) -> List[Path]:
        """
        Save one enhanced image in every enabled format.

        Args:
            bitmap: (H, W) or (H, W, 3) uint8 array
            source_path: Path of the input image
            method_file_label: Method fragment, e.g. "vividness-neg"
            masked: True for the masked pass
            red_channel: True if the source was reduced to its red channel
            mask_background: Mask polarity, used in masked names
            deshadowed: True if shadow removal fed the mask

        Returns:
            Paths written

        Raises:
            OSError: If a file cannot be written
        """
        basename = build_basename(
            source_path,
            method_file_label,
            masked=masked,
            red_channel=red_channel,
            mask_background=mask_background,
            deshadowed=deshadowed,
        )
        color_image = bitmap.ndim == 3
        image = Image.fromarray(bitmap)
        self.ensure_output_dir()

        written = []
        for save_format in self.settings.formats:
            output_file = self.output_dir / (basename + FORMAT_EXTENSIONS[save_format])
            kwargs = self.settings.get_save_kwargs(save_format)

            if save_format == FORMAT_TIFF and color_image and self.settings.embed_icc:
                icc = self._profile_bytes()
                if icc is not None:
                    kwargs["icc_profile"] = icc
                else:
                    self._add_status(ICC_STATUS_TIFF)

            try:
                image.save(output_file, **kwargs)
            except (OSError, ValueError) as e:
                raise OSError(f"Failed to save image to {output_file}: {str(e)}")

            if save_format == FORMAT_JPEG and color_image and self.settings.embed_icc:
                self._embed_jpeg_profile(output_file)

            written.append(output_file)

        logger.debug(f"Wrote {basename} ({', '.join(self.settings.formats)})")
        return written

    def write_mask(self, mask: BackgroundMask, source_path: Union[str, Path]) -> Path:
        """
        Save a background mask as PNG, white for background.

        Raises:
            OSError: If the file cannot be written
        """
        self.ensure_output_dir()
        output_file = self.output_dir / build_mask_filename(
            source_path, mask.mask_background, mask.deshadowed
        )
        try:
            Image.fromarray(mask.as_image()).save(output_file, format=MASK_FILE_FORMAT)
        except (OSError, ValueError) as e:
            raise OSError(f"Failed to save mask to {output_file}: {str(e)}")
        return output_file

    def close(self) -> None:
        """Remove the temporary ICC profile file, if any."""
        if self._icc_file is not None:
            try:
                self._icc_file.unlink()
            except FileNotFoundError:
                pass
            self._icc_file = None

    def _add_status(self, message: str) -> None:
        if message not in self.status_messages:
            self.status_messages.append(message)
            logger.warning(message)

    def _profile_bytes(self) -> Optional[bytes]:
        if not self._icc_loaded:
            self._icc_loaded = True
            self._icc_bytes = srgb_profile_bytes(self.settings.icc_profile_path)
        return self._icc_bytes

    def _profile_file(self) -> Optional[Path]:
        if self.settings.icc_profile_path is not None:
            return Path(self.settings.icc_profile_path)
        if self._icc_file is None:
            icc = self._profile_bytes()
            if icc is None:
                return None
            handle, name = tempfile.mkstemp(suffix=".icc")
            with os.fdopen(handle, "wb") as f:
                f.write(icc)
            self._icc_file = Path(name)
        return self._icc_file

    def _embed_jpeg_profile(self, jpeg_path: Path) -> bool:
        """Copy the sRGB profile into a JPEG file with ExifTool."""
        profile = self._profile_file()
        if profile is None:
            self._add_status(ICC_STATUS_JPEG)
            return False

        command = [
            self.settings.exiftool,
            "-q",
            "-overwrite_original",
            "-tagsFromFile",
            str(profile),
            "-ICC_Profile",
            str(jpeg_path),
        ]
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            logger.debug(f"Could not run {self.settings.exiftool}: {e}")
            self._add_status(ICC_STATUS_JPEG)
            return False

        if result.returncode != 0:
            logger.debug(f"{self.settings.exiftool} failed on {jpeg_path}: {result.stderr.strip()}")
            self._add_status(ICC_STATUS_JPEG)
            return False

        return True
