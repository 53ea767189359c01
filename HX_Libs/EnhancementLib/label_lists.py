"""
Canonical orderings of the method label universe.

A method label joins three axes: the processing method ("Vividness",
"Retinex MSR-V", ...), the postprocessing suffix ("", "Negative", "Blue
Negative") and the auxiliary suffix ("", "Masked"). Two total orders of
all combinations are offered for display:

- interleaved: each method is followed by its postprocessing variants, and
  each of those by its auxiliary variants
  (Vividness, Vividness Masked, Vividness Negative, ...)
- sequential: all methods first, repeated for each postprocessing suffix,
  and the whole block repeated for each auxiliary suffix
  (Vividness, LSV, ..., Vividness Negative, LSV Negative, ...)

Both are prefixed with the input label "Original". The labels of one run
are re-projected onto either order by membership filtering.

Classes:
    LabelAxes: The three label axes of one image class
    MethodLists: Both orders for color and grayscale images

Functions:
    join_label: Join label parts, dropping empty ones
    interleaved_labels: Interleaved order of a label universe
    sequential_labels: Sequential order of a label universe
    build_method_lists: Universes for the built-in label axes
    limit_to_round: Keep the labels of a universe that a run produced
    reorder_output_set: Reorder an OutputSet to follow a universe
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from HX_Libs.constants import (
    COLOR_AUXILIARY_LABELS,
    COLOR_POSTPROCESSING_LABELS,
    COLOR_PROCESSING_LABELS,
    GRAYSCALE_AUXILIARY_LABELS,
    GRAYSCALE_POSTPROCESSING_LABELS,
    GRAYSCALE_PROCESSING_LABELS,
    INPUT_LABELS,
)
from HX_Libs.ImagingLib.image_models import OutputSet


@dataclass(frozen=True)
class LabelAxes:
    """Label axes of one image class; the suffix axes include the empty suffix."""
    processing: Tuple[str, ...]
    postprocessing: Tuple[str, ...]
    auxiliaries: Tuple[str, ...]
    inputs: Tuple[str, ...] = INPUT_LABELS

    @property
    def size(self) -> int:
        """Number of labels in either order, inputs included."""
        return len(self.inputs) + (
            len(self.processing) * len(self.postprocessing) * len(self.auxiliaries)
        )


COLOR_AXES = LabelAxes(
    processing=COLOR_PROCESSING_LABELS,
    postprocessing=COLOR_POSTPROCESSING_LABELS,
    auxiliaries=COLOR_AUXILIARY_LABELS,
)

GRAYSCALE_AXES = LabelAxes(
    processing=GRAYSCALE_PROCESSING_LABELS,
    postprocessing=GRAYSCALE_POSTPROCESSING_LABELS,
    auxiliaries=GRAYSCALE_AUXILIARY_LABELS,
)


def join_label(*parts: str) -> str:
    return " ".join(part.strip() for part in parts if part and part.strip())


def interleaved_labels(axes: LabelAxes) -> List[str]:
    """Method outermost, then postprocessing, auxiliary innermost."""
    labels = list(axes.inputs)
    for method in axes.processing:
        for post in axes.postprocessing:
            for auxiliary in axes.auxiliaries:
                labels.append(join_label(method, post, auxiliary))
    return labels


def sequential_labels(axes: LabelAxes) -> List[str]:
    """Auxiliary outermost, then postprocessing, method innermost."""
    labels = list(axes.inputs)
    for auxiliary in axes.auxiliaries:
        for post in axes.postprocessing:
            for method in axes.processing:
                labels.append(join_label(method, post, auxiliary))
    return labels


@dataclass(frozen=True)
class MethodLists:
    """Label universes in both orders for both image classes."""
    color_interleaved: Tuple[str, ...]
    color_sequential: Tuple[str, ...]
    grayscale_interleaved: Tuple[str, ...]
    grayscale_sequential: Tuple[str, ...]

    def universe(self, order: str, grayscale: bool = False) -> Tuple[str, ...]:
        """
        Args:
            order: "interleaved" or "sequential"
            grayscale: Pick the grayscale universe

        Raises:
            ValueError: If order is unknown
        """
        if order not in ("interleaved", "sequential"):
            raise ValueError(f"Unknown label order '{order}'. Use 'interleaved' or 'sequential'")
        prefix = "grayscale" if grayscale else "color"
        return getattr(self, f"{prefix}_{order}")


def build_method_lists(
    color_axes: LabelAxes = COLOR_AXES,
    grayscale_axes: LabelAxes = GRAYSCALE_AXES,
) -> MethodLists:
    return MethodLists(
        color_interleaved=tuple(interleaved_labels(color_axes)),
        color_sequential=tuple(sequential_labels(color_axes)),
        grayscale_interleaved=tuple(interleaved_labels(grayscale_axes)),
        grayscale_sequential=tuple(sequential_labels(grayscale_axes)),
    )


def limit_to_round(universe: Sequence[str], active_labels: Iterable[str]) -> List[str]:
    """Labels of ``universe`` present in ``active_labels``, in universe order."""
    active = set(active_labels)
    return [label for label in universe if label in active]


def reorder_output_set(output_set: OutputSet, universe: Sequence[str]) -> OutputSet:
    """
    Reorder an OutputSet to follow ``universe``.

    Bitmaps and generation indices move with their labels. Labels missing
    from the universe are dropped.
    """
    positions = {label: i for i, label in enumerate(output_set.labels)}
    order = [positions[label] for label in limit_to_round(universe, output_set.labels)]
    return output_set.take(order)
