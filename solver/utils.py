from typing import Optional

from rules.rules import BOX_SIZE, EMPTY, GRID_SIZE

from .types import Grid, TraceLog, TraceStep


def box_origin(r: int, c: int) -> tuple[int, int]:
    return (r // BOX_SIZE) * BOX_SIZE, (c // BOX_SIZE) * BOX_SIZE


def box_index(r: int, c: int) -> int:
    return (r // BOX_SIZE) * BOX_SIZE + (c // BOX_SIZE)


def empty_grid() -> Grid:
    return [[EMPTY for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)]


def copy_grid(grid: Grid) -> Grid:
    return [row[:] for row in grid]


def empty_positions(grid: Grid) -> list[tuple[int, int]]:
    return [(r, c) for r in range(GRID_SIZE) for c in range(GRID_SIZE) if grid[r][c] == EMPTY]


def count_filled(grid: Grid) -> int:
    return sum(1 for row in grid for value in row if value != EMPTY)


def format_grid_rows(grid: Grid) -> list[str]:
    return [" ".join(str(value) if value != EMPTY else "." for value in row) for row in grid]


def trace(enabled: bool, trace_log: Optional[TraceLog], message: str) -> None:
    if not enabled:
        return
    if trace_log is not None:
        trace_log.append(message)
    else:
        print(message)


def record_step(
    trace_steps: Optional[list[TraceStep]],
    trace_meta: Optional[dict[str, bool]],
    trace_max_steps: int,
    grid: Grid,
    depth: int,
    event: str,
    message: str,
    row: Optional[int] = None,
    col: Optional[int] = None,
    value: Optional[int] = None,
    candidates: Optional[list[int]] = None,
) -> None:
    if trace_steps is None:
        return
    if len(trace_steps) >= trace_max_steps:
        if trace_meta is not None:
            trace_meta["truncated"] = True
        return
    trace_steps.append(
        {
            "event": event,
            "message": message,
            "depth": depth,
            "row": row,
            "col": col,
            "value": value,
            "candidates": candidates,
            "grid": copy_grid(grid),
        }
    )


def indent(depth: int) -> str:
    return "  " * depth
