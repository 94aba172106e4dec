from typing import Optional

from rules.rules import EMPTY, GRID_SIZE, MAX_VALUE, MIN_VALUE

from .types import Grid, InputGrid
from .utils import box_index
from .validation import validate_and_normalize_grid


InitialState = tuple[
    Grid,
    list[set[int]],
    list[set[int]],
    list[set[int]],
    list[tuple[int, int]],
]


def build_initial_state(known_grid: Optional[InputGrid]) -> InitialState:
    grid = validate_and_normalize_grid(known_grid)

    row_used: list[set[int]] = [set() for _ in range(GRID_SIZE)]
    col_used: list[set[int]] = [set() for _ in range(GRID_SIZE)]
    box_used: list[set[int]] = [set() for _ in range(GRID_SIZE)]
    unknown_positions: list[tuple[int, int]] = []

    for r in range(GRID_SIZE):
        for c in range(GRID_SIZE):
            value = grid[r][c]
            if value == EMPTY:
                unknown_positions.append((r, c))
                continue
            b = box_index(r, c)
            if value in row_used[r]:
                raise ValueError(f"row {r} contains duplicate value {value}")
            if value in col_used[c]:
                raise ValueError(f"column {c} contains duplicate value {value}")
            if value in box_used[b]:
                raise ValueError(f"box {b} contains duplicate value {value}")
            row_used[r].add(value)
            col_used[c].add(value)
            box_used[b].add(value)

    return grid, row_used, col_used, box_used, unknown_positions


def apply_value(
    value: int,
    r: int,
    c: int,
    grid: Grid,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
) -> None:
    grid[r][c] = value
    row_used[r].add(value)
    col_used[c].add(value)
    box_used[box_index(r, c)].add(value)


def revert_value(
    value: int,
    r: int,
    c: int,
    grid: Grid,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
) -> None:
    grid[r][c] = EMPTY
    row_used[r].discard(value)
    col_used[c].discard(value)
    box_used[box_index(r, c)].discard(value)


def final_constraints_met(grid: Grid) -> bool:
    digits = set(range(MIN_VALUE, MAX_VALUE + 1))
    for index in range(GRID_SIZE):
        if set(grid[index]) != digits:
            return False
        if {grid[r][index] for r in range(GRID_SIZE)} != digits:
            return False
        start_row, start_col = (index // 3) * 3, (index % 3) * 3
        box = {grid[r][c] for r in range(start_row, start_row + 3) for c in range(start_col, start_col + 3)}
        if box != digits:
            return False
    return True
