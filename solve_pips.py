# solve_pips.py
from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from difficulty_config import PIP_MAX, PIP_MIN
from pips_models import ROTATION_OFFSETS, Board, Cell, Constraint, Placement
from puzzle_yaml import load_board
from validate_pips import fill_value_grid

logger = logging.getLogger(__name__)

OFFSET_ROTATIONS = {offset: rot for rot, offset in ROTATION_OFFSETS.items()}


def build_adjacency(cells: Set[Cell]) -> Dict[Cell, List[Cell]]:
    adj: Dict[Cell, List[Cell]] = {cell: [] for cell in cells}
    for (r, c) in cells:
        for nr, nc in [(r-1, c), (r+1, c), (r, c-1), (r, c+1)]:
            if (nr, nc) in cells:
                adj[(r, c)].append((nr, nc))
    return adj


def check_constraint_partial(
    coords: Sequence[Cell],
    values: Dict[Cell, Optional[int]],
    cons: Constraint,
    pip_min: int,
    pip_max: int,
    remaining: Optional[Sequence[int]] = None,
) -> bool:
    """
    Conservative partial checking: prune only when impossible.

    Args:
        coords: Cells of the region
        values: Current pip value per cell, None when empty
        cons: The region's clue
        pip_min: Smallest pip value
        pip_max: Largest pip value
        remaining: Sorted pip halves of the unused dominoes; when given,
            the bounds come from these instead of the pip range
    """
    filled = [values[c] for c in coords if values[c] is not None]
    unfilled_count = sum(1 for c in coords if values[c] is None)

    if cons.type == "none":
        return True
    if cons.type == "eq":
        if filled and any(v != filled[0] for v in filled):
            return False
        if remaining is not None and filled and unfilled_count:
            return remaining.count(filled[0]) >= unfilled_count
        return True
    if cons.type == "neq":
        if len(set(filled)) != len(filled):
            return False
        if remaining is not None and unfilled_count:
            return len(set(remaining) - set(filled)) >= unfilled_count
        return True

    s = sum(filled)
    target = cons.value

    if remaining is not None and unfilled_count:
        if unfilled_count > len(remaining):
            return False
        min_possible = s + sum(remaining[:unfilled_count])
        max_possible = s + sum(remaining[-unfilled_count:])
    else:
        min_possible = s + unfilled_count * pip_min
        max_possible = s + unfilled_count * pip_max

    if cons.type == "sum":
        return min_possible <= target <= max_possible
    if cons.type == "lt":
        # must end strictly below target
        return min_possible < target
    if cons.type == "gt":
        return max_possible > target

    raise ValueError(f"Unknown constraint type: {cons.type}")


def region_summary(cons: Constraint, filled: List[int]):
    """The part of a region's filled values that decides its clue."""
    if cons.type == "none":
        return None
    if cons.type == "eq":
        return filled[0] if filled else None
    if cons.type == "neq":
        return frozenset(filled)
    return sum(filled)


def pick_next_cell(cells: List[Cell], values: Dict[Cell, Optional[int]], adj: Dict[Cell, List[Cell]]) -> Optional[Cell]:
    """MRV-ish: pick an unfilled cell with fewest unfilled neighbors."""
    unfilled = [c for c in cells if values[c] is None]
    if not unfilled:
        return None
    def score(c: Cell) -> int:
        return sum(1 for n in adj[c] if values[n] is None)
    return min(unfilled, key=score)


def to_placement(domino_id: str, first: Cell, second: Cell) -> Placement:
    """Placement with v1 on `first` and v2 on the adjacent `second` cell."""
    offset = (second[0] - first[0], second[1] - first[1])
    return Placement(domino_id=domino_id, r=first[0], c=first[1], rotation=OFFSET_ROTATIONS[offset])


def solve_board(
    board: Board,
    pip_min: int = PIP_MIN,
    pip_max: int = PIP_MAX,
    max_nodes: Optional[int] = None,
) -> Optional[List[Placement]]:
    """
    Find one placement of the board's dominoes satisfying every region.

    Regions are bounded by the pip halves still in the tray, and states
    already shown to fail are remembered by filled cells, per-region
    summary and remaining tray.

    Args:
        board: Board to solve
        pip_min: Smallest pip value
        pip_max: Largest pip value
        max_nodes: Give up after this many placements tried (None: no limit)

    Returns:
        Placements covering every playable cell, or None if none exist or
        the node limit ran out
    """
    cells = board.playable_cells()
    adj = build_adjacency(set(cells))
    dominoes = board.initial_dominoes
    clued = [region for region in board.regions if region.constraint.type != "none"]

    # state
    values: Dict[Cell, Optional[int]] = {c: None for c in cells}
    used: List[bool] = [False] * len(dominoes)
    placed: List[Placement] = []
    failed: Set[tuple] = set()
    nodes = 0
    exhausted = False

    if len(cells) != 2 * len(dominoes):
        logger.debug(f"{len(cells)} cells cannot hold {len(dominoes)} dominoes")
        return None

    def remaining_halves() -> List[int]:
        return sorted(v for i, dom in enumerate(dominoes) if not used[i] for v in (dom.v1, dom.v2))

    def regions_ok(remaining: List[int]) -> bool:
        for region in clued:
            if not check_constraint_partial(region.cells, values, region.constraint, pip_min, pip_max, remaining):
                return False
        return True

    def state_key() -> tuple:
        filled = tuple(values[c] is not None for c in cells)
        summaries = tuple(
            region_summary(region.constraint, [values[c] for c in region.cells if values[c] is not None])
            for region in clued
        )
        tray = tuple(sorted(
            (min(dom.v1, dom.v2), max(dom.v1, dom.v2)) for i, dom in enumerate(dominoes) if not used[i]
        ))
        return filled, summaries, tray

    def backtrack() -> bool:
        nonlocal nodes, exhausted
        cell = pick_next_cell(cells, values, adj)
        if cell is None:
            return True  # solved

        key = state_key()
        if key in failed:
            return False

        # choose a neighbor to pair with
        for nb in adj[cell]:
            if values[nb] is not None:
                continue

            # try each remaining domino, both orientations
            tried: Set[Tuple[int, int]] = set()
            for i, dom in enumerate(dominoes):
                pair = (min(dom.v1, dom.v2), max(dom.v1, dom.v2))
                if used[i] or pair in tried:
                    continue
                tried.add(pair)

                orientations = [(cell, nb), (nb, cell)] if dom.v1 != dom.v2 else [(cell, nb)]
                for first, second in orientations:
                    nodes += 1
                    if max_nodes is not None and nodes > max_nodes:
                        exhausted = True
                        return False

                    # place
                    values[first] = dom.v1
                    values[second] = dom.v2
                    used[i] = True
                    placed.append(to_placement(dom.id, first, second))

                    if regions_ok(remaining_halves()) and backtrack():
                        return True

                    # undo
                    values[first] = None
                    values[second] = None
                    used[i] = False
                    placed.pop()

                    if exhausted:
                        return False

            # If pairing with this neighbor fails, try a different neighbor
        failed.add(key)
        return False

    if not backtrack():
        if exhausted:
            logger.warning(f"Solver gave up after {max_nodes} nodes")
        else:
            logger.debug(f"No solution after {nodes} nodes")
        return None
    logger.debug(f"Solved in {nodes} nodes")
    return list(placed)


def render_values(board: Board, placements: Sequence[Placement]) -> str:
    grid, _ = fill_value_grid(board, placements)
    out_lines = []
    for r in range(board.rows):
        row_chars = []
        for c in range(board.cols):
            if board.grid_shape[r][c]:
                v = grid[r][c]
                row_chars.append(str(v) if v is not None else "?")
            else:
                row_chars.append("#")
        out_lines.append(" ".join(row_chars))
    return "\n".join(out_lines)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("yaml_file", help="Path to a puzzle YAML written by pips-generate")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging output")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    board = load_board(args.yaml_file)
    placements = solve_board(board)

    if placements is None:
        print("NO SOLUTION with current YAML (most likely a region label mismatch or domino list mismatch).")
        print("Filled grid (unknowns as '?'):\n")
        print(render_values(board, []))
        return

    print("SOLVED.\n")
    print("Pip grid:\n")
    print(render_values(board, placements))


if __name__ == "__main__":
    main()
