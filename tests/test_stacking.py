import pytest

from masterpack_core.geometry import Dimensions3D, Footprint
from masterpack_core.models import PalletConfig
from masterpack_core.stacking import (
    LayerOrientation,
    LayerPattern,
    best_pallet_pattern,
    check_interlock,
    compute_num_layers,
    compute_stack_height,
    layout_layer,
    pattern_support,
    plan_orientation,
    stack,
)

FOOTPRINT = Footprint(48, 40)


def _pallet(max_overhang=0.0, patterns=("column",), target_height=60.0):
    return PalletConfig(
        FOOTPRINT,
        base_height=6.0,
        target_height=target_height,
        max_overhang=max_overhang,
        patterns=patterns,
    )


def test_interlocking_layers_for_20x15_case():
    fit = check_interlock(Dimensions3D(20, 15, 14), FOOTPRINT)

    assert fit.layer1.count == 4
    assert (fit.layer1.count_length, fit.layer1.count_width) == (2, 2)
    assert fit.layer2.count == 6
    assert (fit.layer2.count_length, fit.layer2.count_width) == (3, 2)
    assert fit.feasible
    assert fit.layer1.coverage == pytest.approx(1200 / 1920)
    assert fit.layer2.coverage == pytest.approx(1800 / 1920)
    assert fit.avg_coverage == pytest.approx((1200 + 1800) / 2 / 1920)


def test_interlock_infeasible_when_rotated_layer_is_empty():
    fit = check_interlock(Dimensions3D(45, 10, 10), FOOTPRINT)

    assert fit.layer1.count > 0
    assert fit.layer2.count == 0
    assert not fit.feasible


def test_overhang_is_the_unused_remainder():
    plan = plan_orientation(
        Dimensions3D(20, 15, 14), FOOTPRINT, LayerOrientation.UNROTATED, max_overhang=8
    )
    assert plan.overhang_length == pytest.approx(8)
    assert plan.overhang_width == pytest.approx(10)
    assert plan.exceeds_overhang


def test_layout_layer_degrades_instead_of_failing():
    plan = layout_layer(Dimensions3D(20, 15, 14), FOOTPRINT, max_overhang=0)

    assert plan.exceeds_overhang
    assert plan.orientation is LayerOrientation.ROTATED
    assert plan.count == 6


def test_layout_layer_prefers_valid_orientation():
    # unrotated 12x10 leaves no remainder, rotated leaves 8 and 4
    plan = layout_layer(Dimensions3D(12, 10, 10), FOOTPRINT, max_overhang=0)

    assert not plan.exceeds_overhang
    assert plan.orientation is LayerOrientation.UNROTATED
    assert plan.count == 16


@pytest.mark.parametrize("dims", [(12, 10, 10), (20, 15, 14), (11, 7, 5), (30, 25, 10)])
def test_larger_overhang_never_lowers_count_among_plans_within_limit(dims):
    container = Dimensions3D(*dims)
    previous = None
    for overhang in [0, 2, 4, 8, 16, 48]:
        plan = layout_layer(container, FOOTPRINT, max_overhang=overhang)
        if plan.exceeds_overhang:
            continue
        if previous is not None:
            assert plan.count >= previous
        previous = plan.count


def test_degraded_plan_can_outnumber_a_later_plan_within_limit():
    container = Dimensions3D(7, 5, 5)

    degraded = layout_layer(container, FOOTPRINT, max_overhang=4)
    within = layout_layer(container, FOOTPRINT, max_overhang=5)

    assert degraded.exceeds_overhang
    assert degraded.orientation is LayerOrientation.UNROTATED
    assert degraded.count == 48
    assert not within.exceeds_overhang
    assert within.orientation is LayerOrientation.ROTATED
    assert within.count == 45


def test_stack_never_exceeds_target_height():
    layout = stack(Dimensions3D(20, 15, 14), _pallet())

    assert layout.layers == 3
    assert layout.height == pytest.approx(6 + 3 * 14)
    assert layout.height <= 60
    assert layout.per_layer == 6
    assert layout.total == 18
    assert 0 < layout.coverage <= 1


def test_stack_with_no_room_has_zero_layers():
    layout = stack(Dimensions3D(20, 15, 14), _pallet(target_height=10))

    assert layout.layers == 0
    assert layout.total == 0
    assert layout.height == pytest.approx(6)


def test_alternating_pattern_mixes_both_orientations():
    layout = stack(Dimensions3D(20, 15, 14), _pallet(), LayerPattern.ALTERNATING)

    assert layout.pattern is LayerPattern.ALTERNATING
    assert not layout.fell_back
    assert [plan.count for plan in layout.layer_plans] == [4, 6]
    assert layout.total == 4 + 6 + 4


@pytest.mark.parametrize("name", ["brick", "pinwheel"])
def test_unimplemented_patterns_report_fallback(name):
    support = pattern_support(name)
    assert not support.supported
    assert support.effective is LayerPattern.COLUMN

    layout = stack(Dimensions3D(20, 15, 14), _pallet(), name)
    assert layout.requested_pattern is LayerPattern(name)
    assert layout.pattern is LayerPattern.COLUMN
    assert layout.fell_back


def test_best_pattern_maximizes_total_then_coverage():
    pallet = _pallet(patterns=("alternating", "column", "brick"))
    best = best_pallet_pattern(Dimensions3D(20, 15, 14), pallet)

    assert best.pattern is LayerPattern.COLUMN
    assert best.total == 18


def test_best_pattern_ties_keep_first_listed():
    best = best_pallet_pattern(
        Dimensions3D(20, 15, 14), _pallet(), patterns=["brick", "column"]
    )

    assert best.requested_pattern is LayerPattern.BRICK
    assert best.total == 18


def test_best_pattern_with_empty_list_uses_column():
    best = best_pallet_pattern(Dimensions3D(20, 15, 14), _pallet(), patterns=[])

    assert best.pattern is LayerPattern.COLUMN


def test_swap_pattern_name_is_alternating():
    assert LayerPattern("swap-40-48") is LayerPattern.ALTERNATING
    layout = stack(Dimensions3D(20, 15, 14), _pallet(), "swap-40-48")

    assert layout.pattern is LayerPattern.ALTERNATING
    assert not layout.fell_back


def test_layer_helpers():
    assert compute_num_layers(54, 14) == 3
    assert compute_num_layers(-1, 14) == 0
    assert compute_stack_height(3, 14, 6) == pytest.approx(48)
    assert compute_stack_height(0, 14, 6) == pytest.approx(6)
