"""
Difficulty tiers and generator tuning constants.

The tier table is fixed: callers pick a tier by name and cannot override
individual settings.

Tier meanings:
- rows/cols: bounding rectangle of the board
- target_dominoes: how many dominoes the growth loop tries to place
- complexity: added to the base region size (2-4 cells)
- disconnect_chance: probability a growth step may start a separate island
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class DifficultyConfig:
    name: str
    rows: int
    cols: int
    target_dominoes: int
    complexity: int
    disconnect_chance: float


DIFFICULTY_SETTINGS: Dict[str, DifficultyConfig] = {
    "easy": DifficultyConfig("easy", rows=6, cols=6, target_dominoes=6, complexity=1, disconnect_chance=0.0),
    "medium": DifficultyConfig("medium", rows=7, cols=7, target_dominoes=9, complexity=2, disconnect_chance=0.1),
    "hard": DifficultyConfig("hard", rows=8, cols=7, target_dominoes=12, complexity=3, disconnect_chance=0.2),
}

# Tiling growth
MAX_GROWTH_ATTEMPTS = 500
PIP_MIN = 0
PIP_MAX = 6

# Region partitioning
REGION_BASE_SIZE_RANGE: Tuple[int, int] = (2, 4)  # inclusive, before complexity
MAX_REGION_GROWTH_FAILURES = 10
MAX_NEUTRAL_REGION_SIZE = 2
MAX_NEUTRAL_CELLS = 5
NEUTRAL_CHANCE = 0.25
CONSTRAINT_DIFF_RANGE: Tuple[int, int] = (1, 3)  # inclusive, gt/lt slack

# Solver
SOLVE_NODE_LIMIT = 200_000  # default /solve budget, PIPS_SOLVE_NODE_LIMIT overrides


def get_difficulty_config(difficulty: str) -> DifficultyConfig:
    """
    Look up the settings for a difficulty tier.

    Args:
        difficulty: Tier name ("easy", "medium" or "hard")

    Returns:
        The frozen DifficultyConfig for that tier

    Raises:
        ValueError: If the tier name is unknown
    """
    try:
        return DIFFICULTY_SETTINGS[difficulty]
    except KeyError:
        valid = ", ".join(DIFFICULTY_SETTINGS)
        raise ValueError(f"Unknown difficulty: {difficulty!r} (valid: {valid})") from None


def get_all_difficulties() -> list:
    return list(DIFFICULTY_SETTINGS.keys())
