"""
Enhancement request configuration.

Classes:
    EnhancementRequest: Immutable snapshot of the methods and options of one run
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from HX_Libs.constants import (
    LABEL_ADAPTHISTEQ,
    LABEL_LSV,
    LABEL_RETINEX,
    LABEL_VIVIDNESS,
    LIGHT_BACKGROUND,
    MASK_BACKGROUNDS,
    RETINEX_COLOR_METHODS,
)


@dataclass(frozen=True)
class EnhancementRequest:
    """Configuration snapshot for one enhancement run.

    Attributes:
        vividness: Replace lightness by the norm of the CIELAB triple
        lsv: Blend inverted lightness with the saturation/value difference
        adapthisteq: Adaptive histogram equalization with a Rayleigh target
        retinex: Run the external retinex capability
        retinex_methods: Retinex variants for color images, in run order
        negative: Add the negative-polarity variant of each method
        blue: Add the negative-polarity, negated-chroma variant (color only)
        mask: Segment the background and keep it undisturbed
        mask_background: "lightBackground" or "darkBackground"
        deshadow: Remove shadows before segmentation (color only)
        red_channel_only: Reduce color images to their red channel
    """
    vividness: bool = True
    lsv: bool = True
    adapthisteq: bool = False
    retinex: bool = False
    retinex_methods: Tuple[str, ...] = field(default_factory=tuple)
    negative: bool = True
    blue: bool = True
    mask: bool = False
    mask_background: str = LIGHT_BACKGROUND
    deshadow: bool = False
    red_channel_only: bool = False

    def __post_init__(self):
        # accept lists from callers and keep the snapshot hashable
        object.__setattr__(self, "retinex_methods", tuple(self.retinex_methods))

    def operator_enabled(self, operator: str) -> bool:
        """Return True if the base operator named ``operator`` is enabled."""
        enabled = {
            LABEL_VIVIDNESS: self.vividness,
            LABEL_LSV: self.lsv,
            LABEL_ADAPTHISTEQ: self.adapthisteq,
            LABEL_RETINEX: self.retinex,
        }
        return enabled.get(operator, False)

    @property
    def has_processing(self) -> bool:
        return self.vividness or self.lsv or self.adapthisteq or self.retinex

    @property
    def postprocessing_count(self) -> int:
        """Number of enabled postprocessing axes (0, 1 or 2)."""
        return int(self.negative) + int(self.blue)

    @property
    def mask_runs(self) -> int:
        """Passes per image: masked and unmasked when masking, else one."""
        return 2 if self.mask else 1

    def validate(self) -> None:
        """
        Check the request before any image is touched.

        Raises:
            ValueError: If no base operator is enabled, the retinex method
                list is empty or unknown, or the mask polarity is invalid
        """
        if not self.has_processing:
            raise ValueError(
                "Please select at least one enhancement method "
                "(vividness, lsv, adapthisteq or retinex)."
            )

        if self.retinex:
            if not self.retinex_methods:
                raise ValueError("Retinex is enabled but no retinex method is selected.")
            unknown = [m for m in self.retinex_methods if m not in RETINEX_COLOR_METHODS]
            if unknown:
                raise ValueError(
                    f"Unknown retinex method(s): {', '.join(unknown)}. "
                    f"Available methods: {', '.join(RETINEX_COLOR_METHODS)}"
                )
            if len(set(self.retinex_methods)) != len(self.retinex_methods):
                raise ValueError("Retinex methods must not repeat.")

        if self.mask_background not in MASK_BACKGROUNDS:
            raise ValueError(
                f"Unknown mask background '{self.mask_background}'. "
                f"Use one of: {', '.join(MASK_BACKGROUNDS)}"
            )

    def enabled_operators(self) -> List[str]:
        """Names of enabled base operators in declaration order."""
        return [
            name
            for name in (LABEL_VIVIDNESS, LABEL_LSV, LABEL_ADAPTHISTEQ, LABEL_RETINEX)
            if self.operator_enabled(name)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["retinex_methods"] = list(self.retinex_methods)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnhancementRequest":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)
