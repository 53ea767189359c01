"""
EnhancementLib - Enhancement operators, variants and labels

This module provides the enhancement operators, their registry, the
variant expansion and the label combinatorics for the Hierax project.
"""

from HX_Libs.EnhancementLib.enhancement_request import EnhancementRequest
from HX_Libs.EnhancementLib.operators import (
    BLUE_NEGATIVE,
    NEGATIVE,
    PRIMARY,
    Postprocessing,
    PreparedImage,
    adaptive_contrast,
    lsv,
    negative,
    prepare_image,
    rayleigh_mapping,
    render_lightness_variant,
    vividness,
)
from HX_Libs.EnhancementLib.retinex import RetinexFunction, load_retinex_provider
from HX_Libs.EnhancementLib.operator_registry import (
    MethodRun,
    OperatorContext,
    OperatorRegistry,
    get_default_registry,
    register_default_operators,
)
from HX_Libs.EnhancementLib.variant_expander import (
    ExpansionState,
    Variant,
    expected_variant_count,
    iter_variants,
    postprocessing_for,
    unsupported_operators,
    variant_label,
)
from HX_Libs.EnhancementLib.label_lists import (
    LabelAxes,
    MethodLists,
    build_method_lists,
    interleaved_labels,
    limit_to_round,
    reorder_output_set,
    sequential_labels,
)

__all__ = [
    "EnhancementRequest",
    "BLUE_NEGATIVE",
    "NEGATIVE",
    "PRIMARY",
    "Postprocessing",
    "PreparedImage",
    "adaptive_contrast",
    "lsv",
    "negative",
    "prepare_image",
    "rayleigh_mapping",
    "render_lightness_variant",
    "vividness",
    "RetinexFunction",
    "load_retinex_provider",
    "MethodRun",
    "OperatorContext",
    "OperatorRegistry",
    "get_default_registry",
    "register_default_operators",
    "ExpansionState",
    "Variant",
    "expected_variant_count",
    "iter_variants",
    "postprocessing_for",
    "unsupported_operators",
    "variant_label",
    "LabelAxes",
    "MethodLists",
    "build_method_lists",
    "interleaved_labels",
    "limit_to_round",
    "reorder_output_set",
    "sequential_labels",
]
