"""
Unit tests for the method label universes.

Tests both canonical orders, membership filtering and OutputSet reordering.
"""

from collections import Counter

import numpy as np
import pytest

from HX_Libs.EnhancementLib.label_lists import (
    COLOR_AXES,
    GRAYSCALE_AXES,
    LabelAxes,
    build_method_lists,
    interleaved_labels,
    join_label,
    limit_to_round,
    reorder_output_set,
    sequential_labels,
)
from HX_Libs.ImagingLib.image_models import OutputSet


SMALL_AXES = LabelAxes(
    processing=("Vividness", "LSV"),
    postprocessing=("", "Negative"),
    auxiliaries=("", "Masked"),
)


class TestJoinLabel:
    """Tests for join_label."""

    def test_drops_empty_parts(self):
        assert join_label("LSV", "", "Masked") == "LSV Masked"
        assert join_label("LSV", "", "") == "LSV"


class TestOrders:
    """Tests for interleaved and sequential orders."""

    def test_interleaved_small(self):
        assert interleaved_labels(SMALL_AXES) == [
            "Original",
            "Vividness", "Vividness Masked",
            "Vividness Negative", "Vividness Negative Masked",
            "LSV", "LSV Masked",
            "LSV Negative", "LSV Negative Masked",
        ]

    def test_sequential_small(self):
        assert sequential_labels(SMALL_AXES) == [
            "Original",
            "Vividness", "LSV",
            "Vividness Negative", "LSV Negative",
            "Vividness Masked", "LSV Masked",
            "Vividness Negative Masked", "LSV Negative Masked",
        ]

    @pytest.mark.parametrize("axes", [COLOR_AXES, GRAYSCALE_AXES, SMALL_AXES])
    def test_orders_are_permutations(self, axes):
        interleaved = interleaved_labels(axes)
        sequential = sequential_labels(axes)

        assert Counter(interleaved) == Counter(sequential)
        assert len(interleaved) == axes.size
        assert len(set(interleaved)) == len(interleaved)

    def test_original_first(self):
        lists = build_method_lists()
        for order in ("interleaved", "sequential"):
            for grayscale in (False, True):
                assert lists.universe(order, grayscale)[0] == "Original"

    def test_color_universe_size(self):
        lists = build_method_lists()
        assert len(lists.color_interleaved) == 1 + 11 * 3 * 2
        assert len(lists.grayscale_sequential) == 1 + 2 * 2 * 2

    def test_color_interleaved_head(self):
        lists = build_method_lists()
        assert list(lists.color_interleaved[:7]) == [
            "Original",
            "Vividness", "Vividness Masked",
            "Vividness Negative", "Vividness Negative Masked",
            "Vividness Blue Negative", "Vividness Blue Negative Masked",
        ]

    def test_color_sequential_second_block(self):
        lists = build_method_lists()
        assert lists.color_sequential[12] == "Vividness Negative"

    def test_unknown_order(self):
        with pytest.raises(ValueError):
            build_method_lists().universe("random")


class TestLimitToRound:
    """Tests for limit_to_round."""

    def test_keeps_universe_order(self):
        universe = sequential_labels(SMALL_AXES)
        active = ["LSV Negative", "Original", "Vividness", "LSV"]

        assert limit_to_round(universe, active) == ["Original", "Vividness", "LSV", "LSV Negative"]

    def test_matches_generation_order_without_masking(self):
        lists = build_method_lists()
        generated = [
            "Vividness", "Vividness Negative", "Vividness Blue Negative",
            "LSV", "LSV Negative", "LSV Blue Negative",
        ]

        assert limit_to_round(lists.color_interleaved, generated) == generated


class TestReorderOutputSet:
    """Tests for reorder_output_set."""

    def test_carries_bitmaps_and_indices(self):
        labels = ("Original", "Vividness", "Vividness Negative", "LSV", "LSV Negative")
        bitmaps = tuple(np.full((2, 2), i, dtype=np.uint8) for i in range(len(labels)))
        output_set = OutputSet(bitmaps=bitmaps, labels=labels, indices=(0, 1, 2, 3, 4))

        reordered = reorder_output_set(output_set, sequential_labels(SMALL_AXES))

        assert reordered.labels == ("Original", "Vividness", "LSV", "Vividness Negative", "LSV Negative")
        assert reordered.indices == (0, 1, 3, 2, 4)
        assert reordered.bitmap_for("LSV")[0, 0] == 3

    def test_round_trip(self):
        labels = ("Original", "Vividness", "Vividness Negative", "LSV", "LSV Negative")
        output_set = OutputSet(bitmaps=(None,) * 5, labels=labels, indices=(0, 1, 2, 3, 4))

        there = reorder_output_set(output_set, sequential_labels(SMALL_AXES))
        back = reorder_output_set(there, interleaved_labels(SMALL_AXES))

        assert back.labels == labels
        assert back.indices == (0, 1, 2, 3, 4)
