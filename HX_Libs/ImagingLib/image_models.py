"""
Imaging data models for Hierax.

This module defines the core data structures passed between the
classification, color space, segmentation and enhancement stages.

Classes:
    RasterImage: 8-bit pixels plus their grayscale classification
    LabColorField: CIELAB decomposition of a color RasterImage
    BackgroundMask: Binary background/foreground field for one image
    OutputSet: Parallel bitmaps, labels and stable indices for one image

Type Aliases:
    ImageClass: "color" or "grayscale"
    GrayscaleSource: How a grayscale classification was reached
"""

from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Tuple

import numpy as np

from HX_Libs.constants import PRECISION

ImageClass = Literal["color", "grayscale"]
GrayscaleSource = Literal["single_channel", "identical_channels", "red_channel"]


@dataclass(frozen=True, eq=False)
class RasterImage:
    """An 8-bit image and its classification.

    Attributes:
        pixels: (H, W) uint8 array for grayscale, (H, W, 3) for color
        grayscale: True if the image was classified grayscale
        grayscale_source: Where the grayscale classification came from
    """
    pixels: np.ndarray
    grayscale: bool = False
    grayscale_source: Optional[GrayscaleSource] = None

    @property
    def image_class(self) -> ImageClass:
        return "grayscale" if self.grayscale else "color"

    @property
    def red_channel(self) -> bool:
        """True when the image was reduced to its red channel."""
        return self.grayscale_source == "red_channel"

    @property
    def shape(self) -> Tuple[int, int]:
        return self.pixels.shape[0], self.pixels.shape[1]

    def as_float(self) -> np.ndarray:
        """Return pixels scaled to [0, 1]."""
        return self.pixels.astype(np.float64) / PRECISION


@dataclass(frozen=True, eq=False)
class LabColorField:
    """CIELAB planes of a color image (L in [0, 100], a and b roughly [-128, 127])."""
    lab: np.ndarray

    @property
    def lightness(self) -> np.ndarray:
        return self.lab[:, :, 0]

    @property
    def a(self) -> np.ndarray:
        return self.lab[:, :, 1]

    @property
    def b(self) -> np.ndarray:
        return self.lab[:, :, 2]


@dataclass(frozen=True, eq=False)
class BackgroundMask:
    """Binary background field; True marks background to keep undisturbed.

    Attributes:
        background: (H, W) bool array
        mask_background: Configured background polarity
        deshadowed: True if shadow removal fed the segmentation
    """
    background: np.ndarray
    mask_background: str
    deshadowed: bool = False

    @property
    def foreground(self) -> np.ndarray:
        return ~self.background

    def as_image(self) -> np.ndarray:
        """Render the mask as an 8-bit image, white for background."""
        return np.where(self.background, PRECISION, 0).astype(np.uint8)


@dataclass(frozen=True, eq=False)
class OutputSet:
    """Enhanced images of one input, in generation order.

    The three sequences are parallel. ``indices`` hold the 1-based position
    of each image in the order the variants were generated, so they survive
    any later display reordering.
    """
    bitmaps: Tuple[np.ndarray, ...] = ()
    labels: Tuple[str, ...] = ()
    indices: Tuple[int, ...] = ()

    def __post_init__(self):
        if not len(self.bitmaps) == len(self.labels) == len(self.indices):
            raise ValueError(
                f"OutputSet sequences must have equal length: "
                f"{len(self.bitmaps)}, {len(self.labels)}, {len(self.indices)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    def append(self, bitmap: np.ndarray, label: str, index: int) -> "OutputSet":
        """Return a new OutputSet with one more image at the end."""
        return OutputSet(
            bitmaps=self.bitmaps + (bitmap,),
            labels=self.labels + (label,),
            indices=self.indices + (index,),
        )

    def prepend(self, bitmap: np.ndarray, label: str, index: int) -> "OutputSet":
        """Return a new OutputSet with one more image at the front."""
        return OutputSet(
            bitmaps=(bitmap,) + self.bitmaps,
            labels=(label,) + self.labels,
            indices=(index,) + self.indices,
        )

    def take(self, positions: Sequence[int]) -> "OutputSet":
        """Return a new OutputSet holding the entries at ``positions``, in that order."""
        return OutputSet(
            bitmaps=tuple(self.bitmaps[p] for p in positions),
            labels=tuple(self.labels[p] for p in positions),
            indices=tuple(self.indices[p] for p in positions),
        )

    def bitmap_for(self, label: str) -> np.ndarray:
        """Return the bitmap stored under ``label``."""
        try:
            return self.bitmaps[self.labels.index(label)]
        except ValueError:
            raise KeyError(f"No image labeled '{label}' in output set")
