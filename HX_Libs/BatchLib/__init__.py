"""
BatchLib - Reading, batch processing and writing

This module provides the batch runner of the Hierax project together with
its image reader, output writer and cancellation token.
"""

from HX_Libs.BatchLib.cancellation import CancellationToken
from HX_Libs.BatchLib.image_reader import (
    get_supported_formats,
    is_supported_format,
    read_image,
)
from HX_Libs.BatchLib.output_writer import (
    OutputSettings,
    OutputWriter,
    build_basename,
    build_mask_filename,
)
from HX_Libs.BatchLib.batch_runner import (
    BatchResult,
    BatchRunner,
    ImageResult,
    UnreadableImage,
    grayscale_warning,
    run_batch,
    summarize,
)

__all__ = [
    "CancellationToken",
    "get_supported_formats",
    "is_supported_format",
    "read_image",
    "OutputSettings",
    "OutputWriter",
    "build_basename",
    "build_mask_filename",
    "BatchResult",
    "BatchRunner",
    "ImageResult",
    "UnreadableImage",
    "grayscale_warning",
    "run_batch",
    "summarize",
]
