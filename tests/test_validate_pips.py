"""
Unit tests for placement validation.

Uses small hand-built boards so every outcome can be worked out by hand.
"""

import copy
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pips_models import Board, Constraint, Domino, Placement, Region
from validate_pips import (
    constraint_satisfied,
    fill_value_grid,
    normalize_rotation,
    placement_cells,
    validate_placements,
)


# ============================================================================
# Fixtures
# ============================================================================

def make_square_board(constraint, d1=(3, 4), d2=(3, 4)):
    """2x2 board, one region over all four cells, dominoes d-1 and d-2."""
    cells = ((0, 0), (0, 1), (1, 0), (1, 1))
    region = Region("region-0", cells, "pink", constraint, (1, 1))
    return Board(
        rows=2,
        cols=2,
        grid_shape=((True, True), (True, True)),
        regions=(region,),
        initial_dominoes=(Domino("d-1", d1[0], d1[1]), Domino("d-2", d2[0], d2[1])),
    )


@pytest.fixture
def sum_board():
    return make_square_board(Constraint("sum", 14))


@pytest.fixture
def split_board():
    """2x3 board with a void corner and two regions."""
    return Board(
        rows=2,
        cols=3,
        grid_shape=((True, True, False), (True, True, True)),
        regions=(
            Region("region-0", ((0, 0), (0, 1)), "teal", Constraint("eq"), (0, 1)),
            Region("region-1", ((1, 0), (1, 1), (1, 2)), "navy", Constraint("gt", 5), (1, 2)),
        ),
        initial_dominoes=(Domino("d-1", 2, 2), Domino("d-2", 1, 5), Domino("d-3", 0, 6)),
    )


HORIZONTAL_PAIR = [
    Placement("d-1", 0, 0, 0),
    Placement("d-2", 1, 0, 0),
]


# ============================================================================
# Concrete scenarios
# ============================================================================

def test_correct_sum_is_complete(sum_board):
    result = validate_placements(sum_board, HORIZONTAL_PAIR)
    assert result.is_complete is True
    assert result.invalid_region_ids == ()
    assert result.grid_errors == ()


def test_wrong_sum_reports_region():
    board = make_square_board(Constraint("sum", 14), d2=(1, 1))
    result = validate_placements(board, HORIZONTAL_PAIR)
    assert result.is_complete is False
    assert result.invalid_region_ids == ("region-0",)
    assert result.grid_errors == ()


def test_unplaced_domino_leaves_region_invalid(sum_board):
    result = validate_placements(sum_board, HORIZONTAL_PAIR[:1])
    assert result.is_complete is False
    assert "region-0" in result.invalid_region_ids


def test_empty_placements(sum_board):
    result = validate_placements(sum_board, [])
    assert result.is_complete is False
    assert result.invalid_region_ids == ("region-0",)


def test_same_domino_twice_is_not_complete():
    board = make_square_board(Constraint("none"), d1=(3, 5), d2=(0, 0))
    placements = [Placement("d-1", 0, 0, 0), Placement("d-1", 1, 0, 0)]
    result = validate_placements(board, placements)
    assert result.is_complete is False
    assert [err.reason for err in result.grid_errors] == ["duplicate_domino"]


def test_overlap_is_grid_error(sum_board):
    placements = [Placement("d-1", 0, 0, 0), Placement("d-2", 0, 1, 90)]
    result = validate_placements(sum_board, placements)
    assert result.is_complete is False
    assert [err.reason for err in result.grid_errors] == ["overlap"]
    assert result.grid_errors[0].cell == (0, 1)


def test_overlap_overwrites_with_later_value():
    board = make_square_board(Constraint("sum", 14), d2=(6, 1))
    grid, errors = fill_value_grid(board, [Placement("d-1", 0, 0, 0), Placement("d-2", 0, 1, 90)])
    assert grid[0][0] == 3
    assert grid[0][1] == 6
    assert grid[1][1] == 1
    assert len(errors) == 1


def test_out_of_bounds_cell_is_not_written(sum_board):
    grid, errors = fill_value_grid(sum_board, [Placement("d-1", 0, 1, 0)])
    assert grid[0][1] == 3
    assert [(err.reason, err.cell) for err in errors] == [("out_of_bounds", (0, 2))]


def test_off_shape_cell_is_grid_error(split_board):
    result = validate_placements(split_board, [Placement("d-1", 0, 1, 0)])
    assert ("off_shape", (0, 2)) in [(err.reason, err.cell) for err in result.grid_errors]
    assert result.is_complete is False


def test_unknown_domino_is_skipped(sum_board):
    placements = HORIZONTAL_PAIR + [Placement("d-99", 0, 0, 0)]
    result = validate_placements(sum_board, placements)
    # region values come only from the known dominoes
    assert result.invalid_region_ids == ()
    assert [err.reason for err in result.grid_errors] == ["unknown_domino"]
    assert result.is_complete is False


def test_bad_rotation_is_grid_error(sum_board):
    result = validate_placements(sum_board, [Placement("d-1", 0, 0, 45)])
    assert [err.reason for err in result.grid_errors] == ["bad_rotation"]


# ============================================================================
# Rotation handling
# ============================================================================

@pytest.mark.parametrize("rotation,second", [
    (0, (2, 3)),
    (90, (3, 2)),
    (180, (2, 1)),
    (270, (1, 2)),
    (-90, (1, 2)),
    (450, (3, 2)),
])
def test_placement_cells(rotation, second):
    assert placement_cells(Placement("d-1", 2, 2, rotation)) == ((2, 2), second)


def test_normalize_rotation():
    assert normalize_rotation(360) == 0
    assert normalize_rotation(-180) == 180


def test_rotated_placements_solve_split_board(split_board):
    placements = [
        Placement("d-1", 0, 1, 180),  # 2 at (0,1), 2 at (0,0)
        Placement("d-2", 1, 1, 180),  # 1 at (1,1), 5 at (1,0)
    ]
    result = validate_placements(split_board, placements)
    assert result.invalid_region_ids == ("region-1",)  # (1,2) still empty

    d3 = Placement("d-3", 1, 2, 270)  # 0 at (1,2), 6 at (0,2) which is void
    result = validate_placements(split_board, placements + [d3])
    assert result.invalid_region_ids == ()
    assert [err.reason for err in result.grid_errors] == ["off_shape"]
    assert result.is_complete is False


# ============================================================================
# Constraint checks
# ============================================================================

@pytest.mark.parametrize("constraint,values,expected", [
    (Constraint("none"), [1, 6], True),
    (Constraint("eq"), [4, 4, 4], True),
    (Constraint("eq"), [4, 3], False),
    (Constraint("neq"), [0, 1, 2], True),
    (Constraint("neq"), [0, 1, 0], False),
    (Constraint("sum", 9), [4, 5], True),
    (Constraint("sum", 9), [4, 4], False),
    (Constraint("gt", 7), [4, 4], True),
    (Constraint("gt", 8), [4, 4], False),
    (Constraint("lt", 9), [4, 4], True),
    (Constraint("lt", 8), [4, 4], False),
])
def test_constraint_satisfied(constraint, values, expected):
    assert constraint_satisfied(constraint, values) is expected


def test_constraint_requires_value_for_sum():
    with pytest.raises(ValueError):
        Constraint("sum")
    with pytest.raises(ValueError):
        Constraint("between", 3)


# ============================================================================
# Purity
# ============================================================================

def test_validate_is_pure_and_repeatable(sum_board):
    placements = list(HORIZONTAL_PAIR) + [Placement("d-2", 0, 0, 90)]
    before = copy.deepcopy(placements)
    board_before = copy.deepcopy(sum_board)

    first = validate_placements(sum_board, placements)
    second = validate_placements(sum_board, placements)

    assert first == second
    assert placements == before
    assert sum_board == board_before
