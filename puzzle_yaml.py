"""
YAML Puzzle Specification

Converts generated boards to and from the YAML puzzle layout used by the
solver CLI: ASCII shape and region maps plus per-region clues.
"""

import string
from typing import Dict, List, Set, Tuple

import yaml

from difficulty_config import PIP_MAX, PIP_MIN
from pips_models import (
    NEUTRAL_THEME,
    Board,
    Cell,
    Constraint,
    Domino,
    Region,
)
from pips_regions import label_position

LABEL_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits


class _PuzzleDumper(yaml.SafeDumper):
    pass


def _str_presenter(dumper, data):
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_PuzzleDumper.add_representer(str, _str_presenter)


def region_labels(board: Board) -> Dict[Cell, str]:
    """
    Assign one label character per region, in region order.

    Raises:
        ValueError: If the board has more regions than label characters
    """
    if len(board.regions) > len(LABEL_CHARS):
        raise ValueError(f"Too many regions to label: {len(board.regions)} > {len(LABEL_CHARS)}")
    labels: Dict[Cell, str] = {}
    for region, label in zip(board.regions, LABEL_CHARS):
        for cell in region.cells:
            labels[cell] = label
    return labels


def generate_ascii_shape(board: Board) -> str:
    lines = [
        "".join("." if board.grid_shape[r][c] else "#" for c in range(board.cols))
        for r in range(board.rows)
    ]
    return "\n".join(lines)


def generate_ascii_regions(board: Board) -> str:
    labels = region_labels(board)
    lines = [
        "".join(labels.get((r, c), "#") for c in range(board.cols))
        for r in range(board.rows)
    ]
    return "\n".join(lines)


def board_to_yaml(board: Board) -> str:
    """
    Create the YAML puzzle specification for a board.

    Args:
        board: Generated board

    Returns:
        YAML string
    """
    constraints = {}
    for region, label in zip(board.regions, LABEL_CHARS):
        entry = {
            "id": region.id,
            "color": region.color_theme,
            "type": region.constraint.type,
            "label": list(region.label_position),
        }
        if region.constraint.value is not None:
            entry["value"] = region.constraint.value
        constraints[label] = entry

    puzzle_spec = {
        "pips": {
            "pip_min": PIP_MIN,
            "pip_max": PIP_MAX
        },
        "dominoes": {
            "unique": False,
            "tiles": [[dom.v1, dom.v2] for dom in board.initial_dominoes]
        },
        "board": {
            "rows": board.rows,
            "cols": board.cols,
            "shape": generate_ascii_shape(board),
            "regions": generate_ascii_regions(board)
        },
        "region_constraints": constraints
    }

    return yaml.dump(puzzle_spec, Dumper=_PuzzleDumper, default_flow_style=None, sort_keys=False)


def parse_ascii_maps(shape_str: str, regions_str: str) -> Tuple[Set[Cell], Dict[Cell, str]]:
    shape_lines = [line.rstrip("\n") for line in shape_str.splitlines() if line.strip() != ""]
    region_lines = [line.rstrip("\n") for line in regions_str.splitlines() if line.strip() != ""]
    if len(shape_lines) != len(region_lines):
        raise ValueError("shape and regions must have same number of lines")

    cells: Set[Cell] = set()
    cell_region: Dict[Cell, str] = {}

    for r, (sline, rline) in enumerate(zip(shape_lines, region_lines)):
        if len(sline) != len(rline):
            raise ValueError(f"Line length mismatch at row {r}: shape vs regions")
        for c, (ch_s, ch_r) in enumerate(zip(sline, rline)):
            if ch_s == ".":
                if ch_r == "#" or ch_r == "." or ch_r == " ":
                    raise ValueError(f"Region label missing at ({r},{c}); got '{ch_r}'")
                cells.add((r, c))
                cell_region[(r, c)] = ch_r
            elif ch_s == "#":
                # no cell; region map should match
                continue
            else:
                raise ValueError(f"Invalid char in shape at ({r},{c}): '{ch_s}' (use '.' or '#')")

    return cells, cell_region


def board_from_yaml(yaml_str: str) -> Board:
    """
    Rebuild a Board from its YAML specification.

    Domino ids are positional (d-1, d-2, ...). Region cells are ordered by
    row + col; the label position comes from the entry's "label" when
    present and is otherwise recomputed from the cells.

    Raises:
        ValueError: If the YAML is malformed or inconsistent
    """
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise ValueError(f"YAML syntax error: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Puzzle YAML must be a mapping")

    for field in ["dominoes", "board", "region_constraints"]:
        if field not in data:
            raise ValueError(f"Missing required field: {field}")

    try:
        tiles = [(int(x), int(y)) for x, y in data["dominoes"]["tiles"]]
        shape = data["board"]["shape"]
        regions_map = data["board"]["regions"]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed puzzle YAML: {e}") from e

    cells, cell_region = parse_ascii_maps(shape, regions_map)
    shape_lines = [line for line in shape.splitlines() if line.strip() != ""]
    rows = int(data["board"].get("rows", len(shape_lines)))
    cols = int(data["board"].get("cols", max((len(line) for line in shape_lines), default=0)))

    grid_shape = tuple(tuple((r, c) in cells for c in range(cols)) for r in range(rows))

    by_label: Dict[str, List[Cell]] = {}
    for cell in sorted(cells):
        by_label.setdefault(cell_region[cell], []).append(cell)

    constraints_raw = data["region_constraints"] or {}
    regions = []
    for label, obj in constraints_raw.items():
        label = str(label)
        if not isinstance(obj, dict):
            raise ValueError(f"Constraint for region '{label}' must be a mapping")
        if label not in by_label:
            raise ValueError(f"Region '{label}' has a constraint but no cells")
        ordered = sorted(by_label[label], key=lambda cell: cell[0] + cell[1])
        anchor = label_position(ordered)
        if "label" in obj:
            anchor = tuple(int(v) for v in obj["label"])
            if anchor not in ordered:
                raise ValueError(f"Label position {anchor} of region '{label}' is outside its cells")
        regions.append(Region(
            id=str(obj.get("id", f"region-{len(regions)}")),
            cells=tuple(ordered),
            color_theme=str(obj.get("color", NEUTRAL_THEME)),
            constraint=Constraint(type=obj.get("type", "none"), value=obj.get("value")),
            label_position=anchor,
        ))

    for label in by_label:
        if label not in constraints_raw:
            raise ValueError(f"Region '{label}' appears in board but missing from region_constraints")

    dominoes = tuple(Domino(id=f"d-{i}", v1=v1, v2=v2) for i, (v1, v2) in enumerate(tiles, start=1))
    return Board(rows=rows, cols=cols, grid_shape=grid_shape, regions=tuple(regions), initial_dominoes=dominoes)


def load_board(path: str) -> Board:
    with open(path, "r", encoding="utf-8") as f:
        return board_from_yaml(f.read())
