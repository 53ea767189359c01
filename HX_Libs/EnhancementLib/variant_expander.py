"""
Variant expansion of the base operators.

Each enabled base operator yields its primary image, then its negative
(when enabled) and then its blue negative (when enabled, color only). The
order of the operators is the registry's declaration order; retinex methods
follow the order selected in the request. Indices count from the first
variant of an image and run on across the masked and unmasked passes.

Variants are produced lazily, one at a time, so the caller can write each
one to disk and check for cancellation between them. The per-image result
is accumulated in an immutable ExpansionState.

Classes:
    Variant: One generated image with its label and index
    ExpansionState: Accumulated OutputSet and bookkeeping of one image

Functions:
    postprocessing_for: Postprocessing directives of a request and image class
    variant_label: Compose "<operator>[ <postprocessing>][ Masked]"
    unsupported_operators: Enabled operators that cannot process grayscale
    applicable_operators: Enabled operators that can process an image class
    expected_variant_count: Number of variants a request generates per image
    iter_variants: Lazily generate the variants of one pass over an image
"""

from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Tuple
import logging

import numpy as np

from HX_Libs.constants import LABEL_MASKED, LABEL_RETINEX
from HX_Libs.EnhancementLib.enhancement_request import EnhancementRequest
from HX_Libs.EnhancementLib.operator_registry import (
    OperatorContext,
    OperatorRegistry,
    get_default_registry,
)
from HX_Libs.EnhancementLib.operators import (
    BLUE_NEGATIVE,
    NEGATIVE,
    PRIMARY,
    Postprocessing,
    PreparedImage,
)
from HX_Libs.EnhancementLib.retinex import retinex_methods_for
from HX_Libs.ImagingLib.image_models import OutputSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Variant:
    """One enhanced image.

    Attributes:
        label: Display label, e.g. "LSV Negative Masked"
        index: 1-based generation index within the image
        bitmap: 8-bit image
        operator: Base operator name
        method_file_label: File name fragment including the postprocessing
            suffix, e.g. "lsv-neg"
        postprocessing: Directive the image was rendered with
        masked: True for the masked pass
    """
    label: str
    index: int
    bitmap: np.ndarray
    operator: str
    method_file_label: str
    postprocessing: Postprocessing
    masked: bool


@dataclass(frozen=True)
class ExpansionState:
    """Accumulator threaded through the variants of one image.

    Attributes:
        output_set: Labels, indices and (when retained) bitmaps so far
        next_index: Index of the next variant
        written: Paths written for this image so far
        keep_bitmaps: Store bitmaps in the output set (first image only);
            otherwise None is stored in their place
    """
    output_set: OutputSet = field(default_factory=OutputSet)
    next_index: int = 1
    written: Tuple[str, ...] = ()
    keep_bitmaps: bool = False

    def emit(self, variant: Variant, written: Tuple[str, ...] = ()) -> "ExpansionState":
        """Return the state after ``variant`` has been generated."""
        bitmap = variant.bitmap if self.keep_bitmaps else None
        return replace(
            self,
            output_set=self.output_set.append(bitmap, variant.label, variant.index),
            next_index=variant.index + 1,
            written=self.written + tuple(written),
        )

    @property
    def count(self) -> int:
        return len(self.output_set)


def postprocessing_for(request: EnhancementRequest, grayscale: bool) -> List[Postprocessing]:
    """Primary, then negative, then blue negative; grayscale has no blue negative."""
    directives = [PRIMARY]
    if request.negative:
        directives.append(NEGATIVE)
    if request.blue and not grayscale:
        directives.append(BLUE_NEGATIVE)
    return directives


def variant_label(method_label: str, postprocessing: Postprocessing, masked: bool) -> str:
    parts = [method_label, postprocessing.label, LABEL_MASKED if masked else ""]
    return " ".join(part for part in parts if part)


def unsupported_operators(
    request: EnhancementRequest,
    grayscale: bool,
    registry: Optional[OperatorRegistry] = None,
) -> List[str]:
    """Enabled operators that will produce nothing for this image class."""
    if not grayscale:
        return []
    registry = registry or get_default_registry()
    enabled = request.enabled_operators()
    return [
        name
        for name in registry.list_operators()
        if name in enabled and not registry.supports_grayscale(name)
    ]


def applicable_operators(
    request: EnhancementRequest,
    grayscale: bool,
    registry: Optional[OperatorRegistry] = None,
) -> List[str]:
    registry = registry or get_default_registry()
    enabled = request.enabled_operators()
    return [
        name
        for name in registry.list_operators()
        if name in enabled
        and (not grayscale or registry.supports_grayscale(name))
    ]


def expected_variant_count(
    request: EnhancementRequest,
    grayscale: bool = False,
    registry: Optional[OperatorRegistry] = None,
) -> int:
    """
    Number of variants generated for one image, excluding "Original".

    For color images this is k * (1 + p) * mask_runs, where retinex counts
    once per selected method.
    """
    methods = sum(
        _method_count(name, request, grayscale)
        for name in applicable_operators(request, grayscale, registry)
    )
    return methods * len(postprocessing_for(request, grayscale)) * request.mask_runs


def _method_count(name: str, request: EnhancementRequest, grayscale: bool) -> int:
    if name == LABEL_RETINEX:
        return len(retinex_methods_for(grayscale, request.retinex_methods))
    return 1


def iter_variants(
    prepared: PreparedImage,
    context: OperatorContext,
    start_index: int = 1,
    registry: Optional[OperatorRegistry] = None,
) -> Iterator[Variant]:
    """
    Generate the variants of one pass (masked or unmasked) over an image.

    Operator work happens only as the iterator is advanced, so a consumer
    that stops early does not pay for the remaining operators.

    Args:
        prepared: Image to enhance; its mask decides whether the pass is masked
        context: Request and external collaborators
        start_index: Index of the first variant of this pass
        registry: Operator registry (default: the global registry)

    Yields:
        Variant in generation order
    """
    registry = registry or get_default_registry()
    request = context.request
    directives = postprocessing_for(request, prepared.grayscale)
    index = start_index

    for name in applicable_operators(request, prepared.grayscale, registry):
        executor = registry.get_executor(name)
        for run in executor(prepared, context):
            for postprocessing in directives:
                label = variant_label(run.label, postprocessing, prepared.masked)
                logger.debug(f"Generating variant {index}: {label}")
                yield Variant(
                    label=label,
                    index=index,
                    bitmap=run.render(postprocessing),
                    operator=name,
                    method_file_label=run.file_label + postprocessing.file_suffix,
                    postprocessing=postprocessing,
                    masked=prepared.masked,
                )
                index += 1
