"""
Placement validation for generated Pips boards.

validate_placements() is pure: it rebuilds a value grid from scratch on
every call and never mutates the board or the placement list. Structural
problems (overlaps, pieces off the board, unknown or reused dominoes) are
reported as data, never raised.
"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from pips_models import (
    ROTATION_OFFSETS,
    Board,
    Cell,
    Constraint,
    GridError,
    Placement,
    ValidationResult,
)

logger = logging.getLogger(__name__)


def normalize_rotation(rotation: int) -> int:
    return ((rotation % 360) + 360) % 360


def placement_cells(placement: Placement) -> Optional[Tuple[Cell, Cell]]:
    """
    Cells covered by a placement; the first always holds v1.

    Returns:
        ((r, c), second_cell), or None for a rotation that is not a
        multiple of 90 degrees
    """
    offset = ROTATION_OFFSETS.get(normalize_rotation(placement.rotation))
    if offset is None:
        return None
    dr, dc = offset
    return (placement.r, placement.c), (placement.r + dr, placement.c + dc)


def constraint_satisfied(constraint: Constraint, values: Sequence[int]) -> bool:
    """Check a fully filled region's values against its clue."""
    total = sum(values)
    if constraint.type == "eq":
        return all(v == values[0] for v in values)
    if constraint.type == "neq":
        return len(set(values)) == len(values)
    if constraint.type == "sum":
        return total == constraint.value
    if constraint.type == "gt":
        return total > constraint.value
    if constraint.type == "lt":
        return total < constraint.value
    return True


def fill_value_grid(
    board: Board,
    placements: Sequence[Placement],
) -> Tuple[List[List[Optional[int]]], List[GridError]]:
    """
    Write every placement's pip values into a fresh grid.

    Overlapping cells are overwritten by the later placement and reported.
    Cells off the board or off the shape are reported and not written.
    """
    grid: List[List[Optional[int]]] = [[None] * board.cols for _ in range(board.rows)]
    errors: List[GridError] = []
    dominoes = {dom.id: dom for dom in board.initial_dominoes}
    used: Set[str] = set()

    for index, placement in enumerate(placements):
        dom = dominoes.get(placement.domino_id)
        if dom is None:
            errors.append(GridError(index, placement.domino_id, "unknown_domino"))
            continue
        if placement.domino_id in used:
            errors.append(GridError(index, placement.domino_id, "duplicate_domino"))
            continue
        used.add(placement.domino_id)

        cells = placement_cells(placement)
        if cells is None:
            errors.append(GridError(index, placement.domino_id, "bad_rotation"))
            continue

        for (r, c), value in zip(cells, (dom.v1, dom.v2)):
            if r < 0 or c < 0 or r >= board.rows or c >= board.cols:
                errors.append(GridError(index, placement.domino_id, "out_of_bounds", (r, c)))
                continue
            if not board.grid_shape[r][c]:
                errors.append(GridError(index, placement.domino_id, "off_shape", (r, c)))
                continue
            if grid[r][c] is not None:
                errors.append(GridError(index, placement.domino_id, "overlap", (r, c)))
            grid[r][c] = value

    return grid, errors


def invalid_regions(board: Board, grid: List[List[Optional[int]]]) -> List[str]:
    """Ids of regions that are unfilled or break their clue, in board order."""
    invalid = []
    for region in board.regions:
        values = [grid[r][c] for r, c in region.cells]
        if any(v is None for v in values):
            invalid.append(region.id)
        elif not constraint_satisfied(region.constraint, values):
            invalid.append(region.id)
    return invalid


def validate_placements(board: Board, placements: Sequence[Placement]) -> ValidationResult:
    """
    Validate a candidate set of placements against a board.

    Safe on partial, overlapping or malformed input. An unfilled region is
    always reported invalid, even if nothing placed in it is wrong yet.

    Args:
        board: The generated board
        placements: Caller-owned placement list (read only)

    Returns:
        ValidationResult; is_complete needs no grid errors and no invalid regions
    """
    grid, errors = fill_value_grid(board, placements)
    invalid = invalid_regions(board, grid)

    for err in errors:
        logger.debug(f"Grid error: placement #{err.placement_index} ({err.domino_id}) {err.reason} at {err.cell}")

    return ValidationResult(
        is_complete=not errors and not invalid,
        invalid_region_ids=tuple(invalid),
        grid_errors=tuple(errors),
    )

