"""
Invocation contract of the external retinex capability.

The retinex algorithms themselves live outside Hierax. Any callable with
the signature ``retinex(pixels, method, postprocessing) -> pixels`` can be
plugged in, either directly or by a ``"module:function"`` reference.

Type Aliases:
    RetinexFunction: Callable[[np.ndarray, str, Postprocessing], np.ndarray]

Functions:
    retinex_methods_for: Methods to run for an image class
    render_retinex_variant: Call the capability for one variant and check its output
    load_retinex_provider: Resolve a "module:function" reference
"""

from importlib import import_module
from typing import Callable, Sequence, Tuple
import logging

import numpy as np

from HX_Libs.constants import RETINEX_GRAYSCALE_METHOD
from HX_Libs.ImagingLib.color_space import quantize
from HX_Libs.EnhancementLib.operators import Postprocessing, PreparedImage, reinsert_background

logger = logging.getLogger(__name__)

RetinexFunction = Callable[[np.ndarray, str, Postprocessing], np.ndarray]


def retinex_methods_for(grayscale: bool, color_methods: Sequence[str]) -> Tuple[str, ...]:
    """Grayscale images always use the single-channel method."""
    if grayscale:
        return (RETINEX_GRAYSCALE_METHOD,)
    return tuple(color_methods)


def render_retinex_variant(
    retinex: RetinexFunction,
    prepared: PreparedImage,
    method: str,
    postprocessing: Postprocessing,
) -> np.ndarray:
    """
    Run one retinex variant.

    Float results are taken to lie in [0, 1] and quantized. For masked runs
    the original pixels are put back over the background.

    Raises:
        ValueError: If the capability returns an array of the wrong shape or
            a non-8-bit integer type
    """
    source = prepared.raster.pixels
    result = np.asarray(retinex(source, method, postprocessing))

    if np.issubdtype(result.dtype, np.floating):
        result = quantize(result)
    elif result.dtype != np.uint8:
        raise ValueError(f"Retinex {method} returned unsupported dtype {result.dtype}")

    if result.shape != source.shape:
        raise ValueError(
            f"Retinex {method} returned shape {result.shape}, expected {source.shape}"
        )

    if prepared.masked:
        result = reinsert_background(result, source, prepared.mask.background)

    return result


def load_retinex_provider(reference: str) -> RetinexFunction:
    """
    Import a retinex capability from a ``"package.module:function"`` reference.

    Raises:
        ValueError: If the reference is malformed or does not name a callable
        ImportError: If the module cannot be imported
    """
    module_name, sep, attribute = str(reference).partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Retinex provider must look like 'module:function', got '{reference}'")

    module = import_module(module_name)
    try:
        provider = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attribute}'")

    if not callable(provider):
        raise ValueError(f"Retinex provider '{reference}' is not callable")

    logger.debug(f"Loaded retinex provider {reference}")
    return provider
