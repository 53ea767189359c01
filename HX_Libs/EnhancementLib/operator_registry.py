"""
Enhancement Operator Registry.

This module provides a centralized registry for the base enhancement
operators. Operators are kept in declaration order, which is the order in
which their variants are generated and indexed.

An executor receives the prepared image and an OperatorContext and returns
one MethodRun per method it contributes (one for the lightness operators,
one per selected retinex method). Each MethodRun renders its variants on
demand.

Classes:
    OperatorContext: Request and collaborators passed to executors
    MethodRun: One method of an operator with its variant renderer
    OperatorRegistry: Registry for operator executors

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_operators: Register the built-in operators
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

import numpy as np

from HX_Libs.constants import (
    LABEL_ADAPTHISTEQ,
    LABEL_LSV,
    LABEL_RETINEX,
    LABEL_VIVIDNESS,
)
from HX_Libs.EnhancementLib.enhancement_request import EnhancementRequest
from HX_Libs.EnhancementLib.operators import (
    Postprocessing,
    PreparedImage,
    adaptive_contrast_lightness,
    lsv,
    render_lightness_variant,
    vividness,
)
from HX_Libs.EnhancementLib.retinex import (
    RetinexFunction,
    render_retinex_variant,
    retinex_methods_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperatorContext:
    """Everything an executor needs besides the image.

    Attributes:
        request: The run configuration
        retinex: External retinex capability, None when not configured
    """
    request: EnhancementRequest
    retinex: Optional[RetinexFunction] = None


@dataclass(frozen=True)
class MethodRun:
    """One method of a base operator.

    Attributes:
        label: Method label, e.g. "Vividness" or "Retinex MSR-V"
        file_label: File name fragment, e.g. "vividness" or "retinex-MSR-V"
        render: Produces the 8-bit image for a postprocessing directive
    """
    label: str
    file_label: str
    render: Callable[[Postprocessing], np.ndarray]


# Type alias for executor function
ExecutorFunction = Callable[[PreparedImage, OperatorContext], List[MethodRun]]


class OperatorRegistry:
    """
    Registry for enhancement operators.

    Example:
        >>> registry = OperatorRegistry()
        >>> registry.register("Vividness", execute_vividness, supports_grayscale=False)
        >>> executor = registry.get_executor("Vividness")
        >>> runs = executor(prepared, context)
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._executors: Dict[str, ExecutorFunction] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        name: str,
        executor: ExecutorFunction,
        description: str = "",
        supports_grayscale: bool = False,
        tags: Optional[List[str]] = None,
    ) -> None:
        """
        Register an operator after the ones already registered.

        Args:
            name: Operator label (e.g., "Vividness")
            executor: Callable accepting (prepared, context)
            description: Human-readable description
            supports_grayscale: True if the operator runs on grayscale images
            tags: Optional list of tags for categorization

        Raises:
            ValueError: If name is empty or executor is not callable
            RuntimeError: If name is already registered
        """
        name = str(name).strip()

        if not name:
            raise ValueError("operator name cannot be empty")

        if not callable(executor):
            raise ValueError(f"executor must be callable, got {type(executor)}")

        if name in self._executors:
            raise RuntimeError(
                f"Operator '{name}' is already registered. "
                f"Use unregister() first to replace it."
            )

        self._executors[name] = executor
        self._metadata[name] = {
            "description": str(description),
            "supports_grayscale": bool(supports_grayscale),
            "tags": list(tags) if tags else [],
        }

        logger.debug(f"Registered enhancement operator: {name}")

    def unregister(self, name: str) -> bool:
        """
        Unregister an operator.

        Returns:
            True if unregistered, False if the operator was not registered
        """
        name = str(name).strip()

        if name in self._executors:
            del self._executors[name]
            del self._metadata[name]
            logger.debug(f"Unregistered enhancement operator: {name}")
            return True

        return False

    def get_executor(self, name: str) -> ExecutorFunction:
        """
        Get the executor of an operator.

        Raises:
            KeyError: If the operator is not registered
        """
        name = str(name).strip()

        if name not in self._executors:
            available = ", ".join(self.list_operators())
            raise KeyError(
                f"No enhancement operator named '{name}'. "
                f"Available operators: {available}"
            )

        return self._executors[name]

    def has_operator(self, name: str) -> bool:
        return str(name).strip() in self._executors

    def list_operators(self) -> List[str]:
        """Registered operator names in declaration order."""
        return list(self._executors.keys())

    def get_metadata(self, name: str) -> Dict[str, Any]:
        """
        Get metadata for an operator.

        Returns:
            Dictionary with description, supports_grayscale, tags

        Raises:
            KeyError: If the operator is not registered
        """
        name = str(name).strip()

        if name not in self._metadata:
            raise KeyError(f"No metadata for operator: {name}")

        return dict(self._metadata[name])

    def supports_grayscale(self, name: str) -> bool:
        return self.get_metadata(name)["supports_grayscale"]

    def filter_by_tag(self, tag: str) -> List[str]:
        """Operators carrying ``tag``, in declaration order."""
        tag = str(tag).strip().lower()
        return [
            name
            for name, meta in self._metadata.items()
            if tag in [t.lower() for t in meta.get("tags", [])]
        ]

    def clear(self) -> None:
        """Clear all registered operators. Use with caution."""
        self._executors.clear()
        self._metadata.clear()
        logger.warning("Enhancement operator registry cleared")


def _lightness_run(label: str, file_label: str, prepared: PreparedImage, field: np.ndarray) -> MethodRun:
    return MethodRun(
        label=label,
        file_label=file_label,
        render=lambda post: render_lightness_variant(prepared, field, post),
    )


def execute_vividness(prepared: PreparedImage, context: OperatorContext) -> List[MethodRun]:
    return [_lightness_run(LABEL_VIVIDNESS, "vividness", prepared, vividness(prepared))]


def execute_lsv(prepared: PreparedImage, context: OperatorContext) -> List[MethodRun]:
    return [_lightness_run(LABEL_LSV, "lsv", prepared, lsv(prepared))]


def execute_adapthisteq(prepared: PreparedImage, context: OperatorContext) -> List[MethodRun]:
    return [
        _lightness_run(
            LABEL_ADAPTHISTEQ, "adapthisteq", prepared, adaptive_contrast_lightness(prepared)
        )
    ]


def execute_retinex(prepared: PreparedImage, context: OperatorContext) -> List[MethodRun]:
    """One run per retinex method; grayscale images get the single-channel method."""
    if context.retinex is None:
        raise ValueError("Retinex is enabled but no retinex capability is configured")

    retinex = context.retinex
    runs = []
    for method in retinex_methods_for(prepared.grayscale, context.request.retinex_methods):
        runs.append(MethodRun(
            label=f"{LABEL_RETINEX} {method}",
            file_label=f"retinex-{method}",
            render=lambda post, method=method: render_retinex_variant(
                retinex, prepared, method, post
            ),
        ))
    return runs


# Global singleton registry
_default_registry: Optional[OperatorRegistry] = None


def get_default_registry() -> OperatorRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers the built-in operators.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = OperatorRegistry()
        register_default_operators(_default_registry)

    return _default_registry


def register_default_operators(registry: OperatorRegistry) -> None:
    """
    Register the built-in operators in their fixed order:
    Vividness, LSV, Adapthisteq, Retinex.
    """
    registry.register(
        name=LABEL_VIVIDNESS,
        executor=execute_vividness,
        description="Replace lightness with the norm of the CIELAB triple",
        supports_grayscale=False,
        tags=["lightness", "color"],
    )

    registry.register(
        name=LABEL_LSV,
        executor=execute_lsv,
        description="Blend inverted lightness with the saturation/value difference",
        supports_grayscale=False,
        tags=["lightness", "color", "hsv"],
    )

    registry.register(
        name=LABEL_ADAPTHISTEQ,
        executor=execute_adapthisteq,
        description="Adaptive histogram equalization toward a Rayleigh distribution",
        supports_grayscale=True,
        tags=["lightness", "contrast"],
    )

    registry.register(
        name=LABEL_RETINEX,
        executor=execute_retinex,
        description="External retinex capability, one output per selected method",
        supports_grayscale=True,
        tags=["external", "multi-method"],
    )

    logger.debug("Registered default enhancement operators")
