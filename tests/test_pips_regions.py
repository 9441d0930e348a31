"""
Unit tests for region partitioning and clue synthesis.
"""

import random
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from difficulty_config import MAX_NEUTRAL_CELLS, get_difficulty_config
from generate_pips import generate_puzzle, grow_tiling
from pips_models import PALETTE, Constraint, Region, SolutionPlacement
from pips_regions import (
    build_regions,
    build_value_grid,
    candidate_constraints,
    choose_color,
    filter_constraints,
    grow_region,
    label_position,
    neighbor_colors,
    synthesize_constraint,
)
from validate_pips import constraint_satisfied

DIFFICULTIES = ["easy", "medium", "hard"]


def _types(constraints):
    return [c.type for c in constraints]


# ============================================================================
# Board-level properties over many seeds
# ============================================================================

@pytest.mark.parametrize("difficulty", DIFFICULTIES)
@pytest.mark.parametrize("seed", range(30))
def test_regions_partition_playable_cells(difficulty, seed):
    board = generate_puzzle(difficulty, seed=seed)
    playable = set(board.playable_cells())

    all_cells = [cell for region in board.regions for cell in region.cells]
    assert len(all_cells) == len(set(all_cells))
    assert set(all_cells) == playable
    assert all(region.cells for region in board.regions)


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
@pytest.mark.parametrize("seed", range(30))
def test_neutral_regions_are_small_and_capped(difficulty, seed):
    board = generate_puzzle(difficulty, seed=seed)
    neutral = [region for region in board.regions if region.is_neutral]

    assert sum(len(region.cells) for region in neutral) <= MAX_NEUTRAL_CELLS
    for region in neutral:
        assert len(region.cells) <= 2
        assert region.constraint.type == "none"


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
@pytest.mark.parametrize("seed", range(30))
def test_clues_hold_for_construction_solution(difficulty, seed):
    config = get_difficulty_config(difficulty)
    rng = random.Random(seed)
    tiling = grow_tiling(config, rng)
    regions = build_regions(
        tiling.rows, tiling.cols, tiling.grid_shape, tiling.solution, config.complexity, rng
    )
    values = build_value_grid(tiling.rows, tiling.cols, tiling.solution)

    for region in regions:
        if region.is_neutral:
            continue
        region_values = [values[r][c] for r, c in region.cells]
        assert constraint_satisfied(region.constraint, region_values), region


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
def test_region_shape_rules(difficulty):
    config = get_difficulty_config(difficulty)
    for seed in range(20):
        board = generate_puzzle(difficulty, seed=seed)
        for index, region in enumerate(board.regions):
            assert region.id == f"region-{index}"
            assert len(region.cells) <= 4 + config.complexity
            assert region.label_position in region.cells
            assert sum(region.label_position) == max(r + c for r, c in region.cells)
            if not region.is_neutral:
                assert region.color_theme in PALETTE
                assert region.constraint.type != "none"


# ============================================================================
# Tests for value grid and growth
# ============================================================================

def test_build_value_grid_reads_both_halves():
    solution = [
        SolutionPlacement("d-1", 0, 0, 0, v1=3, v2=4),
        SolutionPlacement("d-2", 1, 0, 90, v1=5, v2=6),
    ]
    grid = build_value_grid(3, 2, solution)
    assert grid[0][0] == 3
    assert grid[0][1] == 4
    assert grid[1][0] == 5
    assert grid[2][0] == 6
    assert grid[1][1] is None


def test_grow_region_stops_at_target_and_skips_claimed_cells():
    shape = [[True] * 3 for _ in range(3)]
    cell_to_region = {(0, 1): 0, (1, 0): 0}
    cells = grow_region((0, 0), 4, 3, 3, shape, cell_to_region, 1, random.Random(0))

    # (0,0) is boxed in by region 0, so growth fails out after the failure limit
    assert cells == [(0, 0)]
    assert cell_to_region[(0, 0)] == 1


def test_grow_region_claims_cells():
    shape = [[True] * 4 for _ in range(4)]
    cell_to_region = {}
    cells = grow_region((1, 1), 5, 4, 4, shape, cell_to_region, 0, random.Random(4))
    assert len(cells) == 5
    assert len(set(cells)) == 5
    assert all(cell_to_region[cell] == 0 for cell in cells)


def test_grow_region_respects_void_cells():
    shape = [
        [True, False, True],
        [False, False, False],
    ]
    cells = grow_region((0, 0), 3, 2, 3, shape, {}, 0, random.Random(1))
    assert cells == [(0, 0)]


# ============================================================================
# Tests for coloring
# ============================================================================

def test_choose_color_avoids_taken():
    rng = random.Random(0)
    taken = set(PALETTE[:5])
    for _ in range(10):
        assert choose_color(taken, rng) == PALETTE[5]


def test_choose_color_falls_back_to_full_palette():
    rng = random.Random(0)
    picks = {choose_color(set(PALETTE), rng) for _ in range(200)}
    assert picks <= set(PALETTE)
    assert len(picks) > 1


def test_neighbor_colors_skips_own_and_unclaimed_cells():
    shape = [[True] * 4]
    finished = Region("region-0", ((0, 0),), "teal", Constraint("sum", 3), (0, 0))
    # (0,2) is the current region's own cell, (0,3) is still unclaimed
    cell_to_region = {(0, 0): 0, (0, 1): 1, (0, 2): 1}
    colors = neighbor_colors([(0, 1), (0, 2)], 1, 1, 4, shape, cell_to_region, [finished])
    assert colors == {"teal"}


# ============================================================================
# Tests for clue synthesis
# ============================================================================

def test_candidates_for_equal_values():
    types = _types(candidate_constraints([3, 3], diff=1))
    assert types[0] == "none"
    assert "eq" in types
    assert "neq" not in types


def test_candidates_for_distinct_values():
    cands = candidate_constraints([1, 2, 4], diff=2)
    types = _types(cands)
    assert "neq" in types
    assert "eq" not in types
    assert Constraint("sum", 7) in cands
    assert Constraint("gt", 5) in cands
    assert Constraint("lt", 9) in cands


def test_single_cell_has_no_eq_or_neq():
    types = _types(candidate_constraints([4], diff=1))
    assert "eq" not in types
    assert "neq" not in types


def test_filter_drops_negative_gt():
    kept = filter_constraints(candidate_constraints([0, 1], diff=3), region_size=2)
    assert Constraint("gt", -2) not in kept
    assert Constraint("lt", 4) in kept


def test_filter_drops_trivial_single_cell_lt():
    kept = filter_constraints(candidate_constraints([5], diff=2), region_size=1)
    assert Constraint("lt", 7) not in kept
    assert Constraint("gt", 3) in kept

    kept = filter_constraints(candidate_constraints([5], diff=1), region_size=1)
    assert Constraint("lt", 6) in kept


@pytest.mark.parametrize("values", [[0], [6], [2, 2], [0, 0, 0], [1, 5, 6, 0]])
def test_synthesized_clue_is_never_none_and_holds(values):
    rng = random.Random(9)
    for _ in range(50):
        cons = synthesize_constraint(values, rng)
        assert cons.type != "none"
        assert constraint_satisfied(cons, values)


def test_label_position_prefers_later_cell_on_ties():
    assert label_position([(0, 0), (1, 2), (2, 1)]) == (2, 1)
    assert label_position([(2, 1), (1, 2)]) == (1, 2)
    assert label_position([(3, 3)]) == (3, 3)
