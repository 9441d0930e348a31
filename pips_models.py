"""
Value types for generated Pips puzzles.

A Board is built once by the generator and never mutated afterwards. Game
state lives outside the engine as a list of Placement values which the
validator reads but never changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

Cell = Tuple[int, int]  # (row, col)


# Order matters: color picks are uniform draws from this sequence.
PALETTE: Tuple[str, ...] = ("pink", "purple", "orange", "navy", "teal", "green")
NEUTRAL_THEME = "neutral"

CONSTRAINT_TYPES: Tuple[str, ...] = ("none", "eq", "neq", "sum", "gt", "lt")
VALUED_CONSTRAINT_TYPES: Tuple[str, ...] = ("sum", "gt", "lt")

# Rotation (degrees clockwise) -> offset of the second cell from the first.
ROTATION_OFFSETS = {
    0: (0, 1),
    90: (1, 0),
    180: (0, -1),
    270: (-1, 0),
}


@dataclass(frozen=True)
class Domino:
    id: str
    v1: int
    v2: int


@dataclass(frozen=True)
class SolutionPlacement:
    """Where the generator grew a domino. Rotation is 0 or 90 only."""
    domino_id: str
    r: int
    c: int
    rotation: int
    v1: int
    v2: int

    def cells(self) -> Tuple[Cell, Cell]:
        dr, dc = ROTATION_OFFSETS[self.rotation]
        return (self.r, self.c), (self.r + dr, self.c + dc)


@dataclass(frozen=True)
class Constraint:
    type: str  # one of CONSTRAINT_TYPES
    value: Optional[int] = None  # sum target or gt/lt threshold

    def __post_init__(self):
        if self.type not in CONSTRAINT_TYPES:
            raise ValueError(f"Unknown constraint type: {self.type}")
        if self.type in VALUED_CONSTRAINT_TYPES and self.value is None:
            raise ValueError(f"Constraint '{self.type}' needs a value")


NO_CONSTRAINT = Constraint(type="none")


@dataclass(frozen=True)
class Region:
    id: str
    cells: Tuple[Cell, ...]
    color_theme: str
    constraint: Constraint
    label_position: Cell

    @property
    def is_neutral(self) -> bool:
        return self.color_theme == NEUTRAL_THEME


@dataclass(frozen=True)
class Board:
    rows: int
    cols: int
    grid_shape: Tuple[Tuple[bool, ...], ...]
    regions: Tuple[Region, ...]
    initial_dominoes: Tuple[Domino, ...]

    def is_playable(self, r: int, c: int) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols and self.grid_shape[r][c]

    def playable_cells(self) -> list:
        return [
            (r, c)
            for r in range(self.rows)
            for c in range(self.cols)
            if self.grid_shape[r][c]
        ]


@dataclass(frozen=True)
class Placement:
    """A caller-supplied position for a domino; v1 sits on (r, c)."""
    domino_id: str
    r: int
    c: int
    rotation: int = 0


@dataclass(frozen=True)
class GridError:
    placement_index: int
    domino_id: str
    reason: str  # unknown_domino, duplicate_domino, bad_rotation, out_of_bounds, off_shape, overlap
    cell: Optional[Cell] = None


@dataclass(frozen=True)
class ValidationResult:
    is_complete: bool
    invalid_region_ids: Tuple[str, ...] = ()
    grid_errors: Tuple[GridError, ...] = field(default_factory=tuple)
