"""
FastAPI server for Pips puzzle generation and validation.

Exposes the generator, validator and solver over HTTP so a game frontend
can request new boards and check the player's placements after each move.
Field names are camelCase on the wire.
"""

import logging
import os
from typing import List, Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from difficulty_config import SOLVE_NODE_LIMIT
from generate_pips import generate_puzzle
from pips_models import Board, Constraint, Domino, GridError, Placement, Region, ValidationResult
from solve_pips import solve_board
from validate_pips import validate_placements

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Boards and Placements
# =============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CellModel(CamelModel):
    r: int
    c: int


class DominoModel(CamelModel):
    """A domino tile in the player's tray."""
    id: str
    v1: int = Field(ge=0, le=6)
    v2: int = Field(ge=0, le=6)


class ConstraintModel(CamelModel):
    """A region clue."""
    type: Literal["none", "eq", "neq", "sum", "gt", "lt"] = Field(description="Constraint type")
    value: Optional[int] = Field(default=None, description="Sum target or gt/lt threshold")


class RegionModel(CamelModel):
    id: str
    cells: List[CellModel]
    color_theme: str
    constraint: ConstraintModel
    label_position: CellModel


class BoardModel(CamelModel):
    """Complete generated board."""
    rows: int = Field(ge=1)
    cols: int = Field(ge=1)
    grid_shape: List[List[bool]]
    regions: List[RegionModel]
    initial_dominoes: List[DominoModel]


class PlacementModel(CamelModel):
    domino_id: str
    r: int
    c: int
    rotation: int = Field(default=0, description="Degrees clockwise: 0, 90, 180 or 270")


class GridErrorModel(CamelModel):
    placement_index: int
    domino_id: str
    reason: str
    cell: Optional[CellModel] = None


# =============================================================================
# Pydantic Models for Requests/Responses
# =============================================================================

class GenerateRequest(CamelModel):
    difficulty: Literal["easy", "medium", "hard"] = "easy"
    seed: Optional[int] = Field(default=None, description="Seed for a reproducible board")


class GenerateResponse(CamelModel):
    success: bool
    board: Optional[BoardModel] = None
    error: Optional[str] = None


class ValidateRequest(CamelModel):
    board: BoardModel
    placements: List[PlacementModel] = []


class ValidateResponse(CamelModel):
    is_complete: bool
    invalid_region_ids: List[str]
    grid_errors: List[GridErrorModel] = []


class SolveRequest(CamelModel):
    board: BoardModel


class SolveResponse(CamelModel):
    success: bool
    placements: Optional[List[PlacementModel]] = None
    error: Optional[str] = None


# =============================================================================
# Conversions between wire models and engine values
# =============================================================================

def board_to_model(board: Board) -> BoardModel:
    return BoardModel(
        rows=board.rows,
        cols=board.cols,
        grid_shape=[list(row) for row in board.grid_shape],
        regions=[
            RegionModel(
                id=region.id,
                cells=[CellModel(r=r, c=c) for r, c in region.cells],
                color_theme=region.color_theme,
                constraint=ConstraintModel(type=region.constraint.type, value=region.constraint.value),
                label_position=CellModel(r=region.label_position[0], c=region.label_position[1]),
            )
            for region in board.regions
        ],
        initial_dominoes=[DominoModel(id=d.id, v1=d.v1, v2=d.v2) for d in board.initial_dominoes],
    )


def board_from_model(model: BoardModel) -> Board:
    """
    Convert a request board to the engine's immutable Board.

    Raises:
        ValueError: If grid_shape does not match rows x cols, a region
            covers a void cell or a clue is missing its value
    """
    if len(model.grid_shape) != model.rows or any(len(row) != model.cols for row in model.grid_shape):
        raise ValueError(f"gridShape does not match {model.rows}x{model.cols}")

    board = Board(
        rows=model.rows,
        cols=model.cols,
        grid_shape=tuple(tuple(row) for row in model.grid_shape),
        regions=tuple(
            Region(
                id=region.id,
                cells=tuple((cell.r, cell.c) for cell in region.cells),
                color_theme=region.color_theme,
                constraint=Constraint(type=region.constraint.type, value=region.constraint.value),
                label_position=(region.label_position.r, region.label_position.c),
            )
            for region in model.regions
        ),
        initial_dominoes=tuple(Domino(id=d.id, v1=d.v1, v2=d.v2) for d in model.initial_dominoes),
    )

    for region in board.regions:
        for r, c in region.cells:
            if not board.is_playable(r, c):
                raise ValueError(f"{region.id} covers ({r},{c}) which is not a playable cell")
    return board


def _error_to_model(err: GridError) -> GridErrorModel:
    cell = CellModel(r=err.cell[0], c=err.cell[1]) if err.cell is not None else None
    return GridErrorModel(
        placement_index=err.placement_index,
        domino_id=err.domino_id,
        reason=err.reason,
        cell=cell,
    )


def result_to_response(result: ValidationResult) -> ValidateResponse:
    return ValidateResponse(
        is_complete=result.is_complete,
        invalid_region_ids=list(result.invalid_region_ids),
        grid_errors=[_error_to_model(err) for err in result.grid_errors],
    )


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Pips Generator API",
    description="Generate Pips domino puzzles and validate placements",
    version="1.0.0",
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint for service monitoring."""
    return {"status": "healthy", "service": "pips-generator"}


@app.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest) -> GenerateResponse:
    """Generate a new board for the requested difficulty tier."""
    try:
        board = generate_puzzle(request.difficulty, seed=request.seed)
        return GenerateResponse(success=True, board=board_to_model(board))
    except ValueError as e:
        return GenerateResponse(success=False, error=str(e))


@app.post("/validate", response_model=ValidateResponse)
async def validate(request: ValidateRequest) -> ValidateResponse:
    """
    Validate the player's current placements.

    Structural problems never fail the request; they come back as
    gridErrors with isComplete false.
    """
    try:
        board = board_from_model(request.board)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    placements = [
        Placement(domino_id=p.domino_id, r=p.r, c=p.c, rotation=p.rotation)
        for p in request.placements
    ]
    return result_to_response(validate_placements(board, placements))


@app.post("/solve", response_model=SolveResponse)
def solve(request: SolveRequest) -> SolveResponse:
    """Find one solution for a board (not necessarily the generator's)."""
    try:
        board = board_from_model(request.board)
    except ValueError as e:
        return SolveResponse(success=False, error=str(e))

    max_nodes = int(os.getenv("PIPS_SOLVE_NODE_LIMIT", SOLVE_NODE_LIMIT))
    placements = solve_board(board, max_nodes=max_nodes)
    if placements is None:
        return SolveResponse(success=False, error="No solution found")

    return SolveResponse(
        success=True,
        placements=[
            PlacementModel(domino_id=p.domino_id, r=p.r, c=p.c, rotation=p.rotation)
            for p in placements
        ],
    )


def main():
    import uvicorn

    # Load environment variables
    load_dotenv()

    host = os.getenv("PIPS_API_HOST", "0.0.0.0")
    port = int(os.getenv("PIPS_API_PORT", "8080"))
    log_level = os.getenv("PIPS_LOG_LEVEL", "INFO").upper()

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f"Starting Pips Generator API on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
