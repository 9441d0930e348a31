"""
Region partitioning and clue synthesis.

Turns a known tiling into puzzle regions:
- random growth partitions the playable cells into small clusters
- small clusters may become neutral (no clue), capped board-wide
- other clusters get a color not used by an earlier neighbouring region
- each clue is derived from the construction solution's pip values

Coloring is a greedy, order-dependent heuristic: once all six colors are
taken by neighbours, two adjacent regions can share a color. Regions are
usually but not always connected.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Set, Tuple

from difficulty_config import (
    CONSTRAINT_DIFF_RANGE,
    MAX_NEUTRAL_CELLS,
    MAX_NEUTRAL_REGION_SIZE,
    MAX_REGION_GROWTH_FAILURES,
    NEUTRAL_CHANCE,
    PIP_MAX,
    REGION_BASE_SIZE_RANGE,
)
from pips_models import (
    NEUTRAL_THEME,
    NO_CONSTRAINT,
    PALETTE,
    Cell,
    Constraint,
    Region,
    SolutionPlacement,
)

logger = logging.getLogger(__name__)

Grid = Sequence[Sequence[bool]]


def neighbors(cell: Cell) -> List[Cell]:
    r, c = cell
    return [(r + 1, c), (r - 1, c), (r, c + 1), (r, c - 1)]


def is_valid_pos(cell: Cell, rows: int, cols: int, grid_shape: Grid) -> bool:
    r, c = cell
    if r < 0 or c < 0 or r >= rows or c >= cols:
        return False
    return bool(grid_shape[r][c])


def build_value_grid(rows: int, cols: int, solution: Sequence[SolutionPlacement]) -> List[List[Optional[int]]]:
    """Pip value of every tiled cell in the construction solution."""
    values: List[List[Optional[int]]] = [[None] * cols for _ in range(rows)]
    for p in solution:
        (r1, c1), (r2, c2) = p.cells()
        values[r1][c1] = p.v1
        values[r2][c2] = p.v2
    return values


def grow_region(
    seed: Cell,
    target_size: int,
    rows: int,
    cols: int,
    grid_shape: Grid,
    cell_to_region: Dict[Cell, int],
    region_index: int,
    rng: random.Random,
) -> List[Cell]:
    """
    Grow one region from a seed cell by random neighbour accretion.

    Claims cells in cell_to_region as it goes. Stops at target_size or after
    MAX_REGION_GROWTH_FAILURES failed picks in a row.
    """
    region_cells = [seed]
    cell_to_region[seed] = region_index

    failures = 0
    while len(region_cells) < target_size and failures < MAX_REGION_GROWTH_FAILURES:
        base = rng.choice(region_cells)
        free = [
            n for n in neighbors(base)
            if is_valid_pos(n, rows, cols, grid_shape) and n not in cell_to_region
        ]
        if free:
            pick = rng.choice(free)
            cell_to_region[pick] = region_index
            region_cells.append(pick)
            failures = 0
        else:
            failures += 1

    return region_cells


def neighbor_colors(
    region_cells: Sequence[Cell],
    region_index: int,
    rows: int,
    cols: int,
    grid_shape: Grid,
    cell_to_region: Dict[Cell, int],
    regions: Sequence[Region],
) -> Set[str]:
    """Colors of already finished regions touching this one."""
    colors: Set[str] = set()
    for cell in region_cells:
        for n in neighbors(cell):
            if not is_valid_pos(n, rows, cols, grid_shape):
                continue
            other = cell_to_region.get(n)
            if other is None or other == region_index:
                continue
            colors.add(regions[other].color_theme)
    return colors


def choose_color(taken: Set[str], rng: random.Random) -> str:
    available = [color for color in PALETTE if color not in taken]
    return rng.choice(available if available else list(PALETTE))


def candidate_constraints(values: Sequence[int], diff: int) -> List[Constraint]:
    """
    All clues the given solution values satisfy, before filtering.

    Args:
        values: Solution pip values of the region's cells
        diff: Slack used for the gt/lt thresholds

    Returns:
        Candidate constraints; "none" is always first
    """
    total = sum(values)
    candidates = [NO_CONSTRAINT, Constraint(type="sum", value=total)]

    if len(values) > 1:
        if all(v == values[0] for v in values):
            candidates.append(Constraint(type="eq"))
        if len(set(values)) == len(values):
            candidates.append(Constraint(type="neq"))

    candidates.append(Constraint(type="gt", value=total - diff))
    candidates.append(Constraint(type="lt", value=total + diff))
    return candidates


def filter_constraints(candidates: Sequence[Constraint], region_size: int) -> List[Constraint]:
    """Drop impossible or trivially true clues."""
    kept = []
    for cons in candidates:
        if cons.type == "gt" and cons.value < 0:
            continue
        # a single cell never exceeds PIP_MAX, so "< 7" or more says nothing
        if region_size == 1 and cons.type == "lt" and cons.value > PIP_MAX:
            continue
        kept.append(cons)
    return kept


def synthesize_constraint(values: Sequence[int], rng: random.Random) -> Constraint:
    diff = rng.randint(*CONSTRAINT_DIFF_RANGE)
    valid = filter_constraints(candidate_constraints(values, diff), len(values))

    if len(valid) == 1:
        return valid[0]
    interesting = [cons for cons in valid if cons.type != "none"]
    return rng.choice(interesting)


def label_position(cells: Sequence[Cell]) -> Cell:
    """Cell with the largest row + col; ties go to the later cell."""
    return sorted(cells, key=lambda cell: cell[0] + cell[1])[-1]


def build_regions(
    rows: int,
    cols: int,
    grid_shape: Grid,
    solution: Sequence[SolutionPlacement],
    complexity: int,
    rng: random.Random,
) -> Tuple[Region, ...]:
    """
    Partition the tiled cells into clued regions.

    Args:
        rows: Board height
        cols: Board width
        grid_shape: Playable-cell mask, exactly the tiled cells
        solution: Construction placements, used for pip values
        complexity: Added to the base region size
        rng: Random source shared with the tiling step

    Returns:
        Regions in creation order; every playable cell is in exactly one
    """
    value_grid = build_value_grid(rows, cols, solution)

    valid_cells: List[Cell] = [
        (r, c) for r in range(rows) for c in range(cols) if grid_shape[r][c]
    ]
    rng.shuffle(valid_cells)

    regions: List[Region] = []
    cell_to_region: Dict[Cell, int] = {}
    total_neutral_cells = 0

    for cell in valid_cells:
        if cell in cell_to_region:
            continue

        region_index = len(regions)
        low, high = REGION_BASE_SIZE_RANGE
        target_size = rng.randint(low, high) + complexity
        region_cells = grow_region(
            cell, target_size, rows, cols, grid_shape, cell_to_region, region_index, rng
        )

        is_neutral = False
        if (
            len(region_cells) <= MAX_NEUTRAL_REGION_SIZE
            and total_neutral_cells + len(region_cells) <= MAX_NEUTRAL_CELLS
        ):
            if rng.random() < NEUTRAL_CHANCE:
                is_neutral = True
                total_neutral_cells += len(region_cells)

        color = NEUTRAL_THEME
        constraint = NO_CONSTRAINT
        if not is_neutral:
            taken = neighbor_colors(
                region_cells, region_index, rows, cols, grid_shape, cell_to_region, regions
            )
            color = choose_color(taken, rng)
            values = [value_grid[r][c] for r, c in region_cells]
            constraint = synthesize_constraint(values, rng)

        ordered = sorted(region_cells, key=lambda cell: cell[0] + cell[1])
        region = Region(
            id=f"region-{region_index}",
            cells=tuple(ordered),
            color_theme=color,
            constraint=constraint,
            label_position=label_position(ordered),
        )
        regions.append(region)
        logger.debug(
            f"{region.id}: {len(ordered)} cells, color={color}, "
            f"constraint={constraint.type}{'' if constraint.value is None else constraint.value}"
        )

    return tuple(regions)
