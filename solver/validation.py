from typing import Optional

from rules.rules import DIFFICULTY_LEVELS, EMPTY, GRID_SIZE, MAX_VALUE, MIN_VALUE

from .types import Difficulty, Grid, InputGrid
from .utils import box_origin


def is_valid_placement(grid: Grid, row: int, col: int, digit: int) -> bool:
    """Return False when ``digit`` already sits elsewhere in the row, column or box of (row, col).

    The target cell itself is not inspected, so the check works whether or not the
    cell currently holds a value. Indices and digit are assumed to be in range.
    """
    for c in range(GRID_SIZE):
        if c != col and grid[row][c] == digit:
            return False

    for r in range(GRID_SIZE):
        if r != row and grid[r][col] == digit:
            return False

    start_row, start_col = box_origin(row, col)
    for r in range(start_row, start_row + 3):
        for c in range(start_col, start_col + 3):
            if (r, c) != (row, col) and grid[r][c] == digit:
                return False

    return True


def validate_position(row: int, col: int) -> None:
    if not isinstance(row, int) or not isinstance(col, int):
        raise ValueError("row and col must be integers")
    if not (0 <= row < GRID_SIZE) or not (0 <= col < GRID_SIZE):
        raise ValueError(f"row and col must be between 0 and {GRID_SIZE - 1}")


def validate_digit(digit: int, allow_empty: bool = False) -> None:
    if not isinstance(digit, int):
        raise ValueError("digit must be an integer")
    low = EMPTY if allow_empty else MIN_VALUE
    if digit < low or digit > MAX_VALUE:
        raise ValueError(f"digit must be between {low} and {MAX_VALUE}")


def validate_difficulty(difficulty: Difficulty) -> int:
    if difficulty not in DIFFICULTY_LEVELS:
        raise ValueError("difficulty must be one of: " + ", ".join(DIFFICULTY_LEVELS))
    return DIFFICULTY_LEVELS[difficulty]


def validate_and_normalize_grid(grid: Optional[InputGrid]) -> Grid:
    if not isinstance(grid, list) or len(grid) != GRID_SIZE:
        raise ValueError(f"grid must be a list of {GRID_SIZE} rows")

    normalized_grid: Grid = []
    for row in grid:
        if not isinstance(row, list) or len(row) != GRID_SIZE:
            raise ValueError(f"grid rows must contain exactly {GRID_SIZE} cells")

        normalized_row = []
        for value in row:
            if value is None:
                normalized_row.append(EMPTY)
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError("grid entries must be integers or None")
            if value < EMPTY or value > MAX_VALUE:
                raise ValueError(f"grid integers must be between {EMPTY} and {MAX_VALUE}")
            normalized_row.append(value)

        normalized_grid.append(normalized_row)

    return normalized_grid


def validate_givens(grid: Grid) -> None:
    for r in range(GRID_SIZE):
        for c in range(GRID_SIZE):
            value = grid[r][c]
            if value != EMPTY and not is_valid_placement(grid, r, c, value):
                raise ValueError(f"given value {value} at ({r}, {c}) conflicts with its row, column, or box")


def validate_count_options(
    mode: str,
    max_seconds: Optional[float],
    limit: Optional[int],
    sample_paths: int,
    progress_interval: int,
) -> None:
    if mode not in {"auto", "exact", "estimate"}:
        raise ValueError("mode must be one of: auto, exact, estimate")
    if max_seconds is not None and max_seconds < 0:
        raise ValueError("max_seconds must be >= 0")
    if limit is not None and limit < 1:
        raise ValueError("limit must be >= 1")
    if sample_paths < 1:
        raise ValueError("sample_paths must be >= 1")
    if progress_interval < 1:
        raise ValueError("progress_interval must be >= 1")
