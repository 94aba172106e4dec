import logging
from typing import Optional

from rules.rules import BOX_SIZE, CELL_COUNT, DIAGONAL_BOX_ORIGINS, EMPTY, GRID_SIZE, MAX_VALUE, MIN_VALUE

from .random_source import resolve_random, shuffled
from .search import complete_grid
from .types import Difficulty, Grid, RandomSource, TraceLog
from .utils import copy_grid, empty_grid, trace
from .validation import validate_difficulty


logger = logging.getLogger(__name__)


def fill_box(grid: Grid, row: int, col: int, rng: RandomSource) -> None:
    numbers = shuffled(list(range(MIN_VALUE, MAX_VALUE + 1)), rng)
    index = 0
    for i in range(BOX_SIZE):
        for j in range(BOX_SIZE):
            grid[row + i][col + j] = numbers[index]
            index += 1


def fill_diagonal_boxes(grid: Grid, rng: RandomSource) -> None:
    # the diagonal boxes share no row, column, or box with each other
    for row, col in DIAGONAL_BOX_ORIGINS:
        fill_box(grid, row, col, rng)


def generate_solution(
    rng: Optional[RandomSource] = None,
    trace_enabled: bool = False,
    trace_log: Optional[TraceLog] = None,
) -> Grid:
    rng = resolve_random(rng)
    grid = empty_grid()
    fill_diagonal_boxes(grid, rng)
    trace(trace_enabled, trace_log, "Seeded diagonal boxes (0, 0), (3, 3), (6, 6)")

    if not complete_grid(grid, rng, trace_enabled=trace_enabled, trace_log=trace_log):
        raise RuntimeError("backtracking exhausted every candidate while completing the grid")

    return grid


def dig_cells(solution: Grid, cells_to_remove: int, rng: Optional[RandomSource] = None) -> Grid:
    """Blank ``cells_to_remove`` cells of a copy of ``solution`` in shuffled order.

    The result is not checked for a unique solution.
    """
    if cells_to_remove < 0 or cells_to_remove > CELL_COUNT:
        raise ValueError(f"cells_to_remove must be between 0 and {CELL_COUNT}")

    rng = resolve_random(rng)
    puzzle = copy_grid(solution)
    positions = [(r, c) for r in range(GRID_SIZE) for c in range(GRID_SIZE)]
    for r, c in shuffled(positions, rng)[:cells_to_remove]:
        puzzle[r][c] = EMPTY
    return puzzle


def generate_puzzle(
    difficulty: Difficulty,
    rng: Optional[RandomSource] = None,
    trace_enabled: bool = False,
    trace_log: Optional[TraceLog] = None,
) -> tuple[Grid, Grid]:
    cells_to_remove = validate_difficulty(difficulty)
    rng = resolve_random(rng)

    solution = generate_solution(rng, trace_enabled=trace_enabled, trace_log=trace_log)
    puzzle = dig_cells(solution, cells_to_remove, rng)
    trace(trace_enabled, trace_log, f"Removed {cells_to_remove} cells for difficulty {difficulty}")
    logger.debug("generated %s puzzle with %d clues", difficulty, CELL_COUNT - cells_to_remove)
    return solution, puzzle


def given_mask(puzzle: Grid) -> list[list[bool]]:
    return [[value != EMPTY for value in row] for row in puzzle]
