# generate_pips.py
"""
Constructive Pips puzzle generator.

Grows a domino tiling over an initially empty rectangle, one domino per
step, then hands the tiling to the region partitioner which turns the known
pip values into region clues. The construction solution therefore always
satisfies every clue.
"""

from __future__ import annotations

import argparse
import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from difficulty_config import (
    MAX_GROWTH_ATTEMPTS,
    PIP_MAX,
    PIP_MIN,
    DifficultyConfig,
    get_all_difficulties,
    get_difficulty_config,
)
from pips_models import Board, Cell, Domino, SolutionPlacement
from pips_regions import build_regions
from puzzle_yaml import board_to_yaml, region_labels

logger = logging.getLogger(__name__)

Move = Tuple[int, int, int]  # (row, col, rotation) with rotation 0 or 90


@dataclass(frozen=True)
class Tiling:
    """Board shape plus the dominoes grown over it."""
    rows: int
    cols: int
    grid_shape: Tuple[Tuple[bool, ...], ...]
    dominoes: Tuple[Domino, ...]
    solution: Tuple[SolutionPlacement, ...]


def move_cells(move: Move) -> Tuple[Cell, Cell]:
    r, c, rot = move
    if rot == 90:
        return (r, c), (r + 1, c)
    return (r, c), (r, c + 1)


def can_place_domino(move: Move, rows: int, cols: int, grid_shape: List[List[bool]]) -> bool:
    for r, c in move_cells(move):
        if r < 0 or c < 0 or r >= rows or c >= cols:
            return False
        if grid_shape[r][c]:
            return False
    return True


def is_touching_existing(move: Move, rows: int, cols: int, grid_shape: List[List[bool]]) -> bool:
    for r, c in move_cells(move):
        for nr, nc in [(r + 1, c), (r - 1, c), (r, c + 1), (r, c - 1)]:
            if 0 <= nr < rows and 0 <= nc < cols and grid_shape[nr][nc]:
                return True
    return False


def is_interior(move: Move, rows: int, cols: int) -> bool:
    """True when neither cell of the move touches the board edge."""
    return all(0 < r < rows - 1 and 0 < c < cols - 1 for r, c in move_cells(move))


def candidate_moves(rows: int, cols: int, grid_shape: List[List[bool]]) -> Tuple[List[Move], List[Move]]:
    """
    Enumerate legal moves over void cells.

    Returns:
        (possible, connecting) where connecting is the subset of possible
        moves adjacent to an already tiled cell
    """
    possible: List[Move] = []
    connecting: List[Move] = []
    for r in range(rows):
        for c in range(cols):
            for rot in (0, 90):
                move = (r, c, rot)
                if not can_place_domino(move, rows, cols, grid_shape):
                    continue
                possible.append(move)
                if is_touching_existing(move, rows, cols, grid_shape):
                    connecting.append(move)
    return possible, connecting


def choose_move(
    possible: List[Move],
    connecting: List[Move],
    placed: int,
    config: DifficultyConfig,
    rng: random.Random,
) -> Move:
    if placed == 0:
        central = [m for m in possible if is_interior(m, config.rows, config.cols)]
        return rng.choice(central) if central else rng.choice(possible)

    want_disconnect = rng.random() < config.disconnect_chance
    if not want_disconnect and connecting:
        return rng.choice(connecting)
    return rng.choice(possible)


def grow_tiling(config: DifficultyConfig, rng: random.Random) -> Tiling:
    """
    Grow a domino tiling for one difficulty tier.

    Stops at target_dominoes, when no legal move is left, or when the
    attempt budget runs out. A short board is still a valid board.

    Args:
        config: Difficulty tier settings
        rng: Random source for every draw

    Returns:
        Tiling whose grid_shape is exactly the union of the domino cells
    """
    rows, cols = config.rows, config.cols
    grid_shape = [[False] * cols for _ in range(rows)]
    dominoes: List[Domino] = []
    solution: List[SolutionPlacement] = []

    attempts = 0
    while len(solution) < config.target_dominoes and attempts < MAX_GROWTH_ATTEMPTS:
        attempts += 1

        possible, connecting = candidate_moves(rows, cols, grid_shape)
        if not possible:
            break  # no space left

        move = choose_move(possible, connecting, len(solution), config, rng)
        for r, c in move_cells(move):
            grid_shape[r][c] = True

        v1 = rng.randint(PIP_MIN, PIP_MAX)
        v2 = rng.randint(PIP_MIN, PIP_MAX)
        dom = Domino(id=f"d-{len(dominoes) + 1}", v1=v1, v2=v2)
        dominoes.append(dom)
        r, c, rot = move
        solution.append(SolutionPlacement(domino_id=dom.id, r=r, c=c, rotation=rot, v1=v1, v2=v2))
        logger.debug(f"Placed {dom.id} ({v1}|{v2}) at ({r},{c}) rot={rot}, {len(possible)} candidates")

    if len(solution) < config.target_dominoes:
        logger.warning(
            f"Tiling growth stalled at {len(solution)}/{config.target_dominoes} dominoes "
            f"after {attempts} attempts"
        )

    return Tiling(
        rows=rows,
        cols=cols,
        grid_shape=tuple(tuple(row) for row in grid_shape),
        dominoes=tuple(dominoes),
        solution=tuple(solution),
    )


def build_board(tiling: Tiling, config: DifficultyConfig, rng: random.Random) -> Board:
    regions = build_regions(
        tiling.rows,
        tiling.cols,
        tiling.grid_shape,
        tiling.solution,
        complexity=config.complexity,
        rng=rng,
    )
    return Board(
        rows=tiling.rows,
        cols=tiling.cols,
        grid_shape=tiling.grid_shape,
        regions=regions,
        initial_dominoes=tiling.dominoes,
    )


def generate_puzzle(
    difficulty: str = "easy",
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
) -> Board:
    """
    Generate a complete puzzle board.

    Args:
        difficulty: "easy", "medium" or "hard"
        rng: Random source; takes precedence over seed
        seed: Seed for a fresh random.Random when rng is not given

    Returns:
        Immutable Board with shape, regions and the domino inventory

    Raises:
        ValueError: If the difficulty is unknown
    """
    config = get_difficulty_config(difficulty)
    if rng is None:
        rng = random.Random(seed)

    tiling = grow_tiling(config, rng)
    board = build_board(tiling, config, rng)
    logger.info(
        f"Generated {difficulty} board {board.rows}x{board.cols}: "
        f"{len(board.initial_dominoes)} dominoes, {len(board.regions)} regions"
    )
    return board


def render_board(board: Board) -> str:
    """Region labels as an ASCII map; '#' marks void cells."""
    labels = region_labels(board)
    lines = []
    for r in range(board.rows):
        row_chars = []
        for c in range(board.cols):
            row_chars.append(labels.get((r, c), "#"))
        lines.append(" ".join(row_chars))
    return "\n".join(lines)


def main():
    ap = argparse.ArgumentParser(description="Generate a Pips puzzle and print it as YAML")
    ap.add_argument("--difficulty", "-d", choices=get_all_difficulties(), default="easy")
    ap.add_argument("--seed", type=int, default=None, help="Seed for reproducible boards")
    ap.add_argument("--output", "-o", default=None, help="Write YAML here instead of stdout")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging output")
    args = ap.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    board = generate_puzzle(args.difficulty, seed=args.seed)
    yaml_str = board_to_yaml(board)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(yaml_str)
        logger.info(f"Wrote puzzle to {args.output}")
    else:
        print(render_board(board))
        print()
        print(yaml_str)


if __name__ == "__main__":
    main()
