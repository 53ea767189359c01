"""
Compatibility wrapper to import Pillow (which provides the `PIL` namespace)
and its littleCMS binding.

This module loads the Pillow-provided modules via importlib and re-exports
the symbols used by Hierax: `Image` and `ImageCms` (when Pillow was built
with littleCMS). Code that needs color management checks `ImageCms` for
None and disables the feature for the run instead of failing.
"""
from importlib import import_module
from types import ModuleType
from typing import Optional


def _import(name: str) -> Optional[ModuleType]:
    try:
        return import_module(name)
    except ImportError:
        return None


_pil_image = _import("PIL.Image")
_pil_imagecms = _import("PIL.ImageCms")

if _pil_image is None:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'")

Image = _pil_image

# ImageCms is optional (Pillow builds without littleCMS lack it)
ImageCms = _pil_imagecms


def has_color_management() -> bool:
    """Return True when Pillow's littleCMS binding is available."""
    return ImageCms is not None
