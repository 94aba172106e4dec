import time
from typing import Callable, Optional

from rules.rules import CELL_COUNT, EMPTY, GRID_SIZE, MAX_VALUE, MIN_VALUE

from .constraints import select_next_cell_with_candidates
from .random_source import shuffled
from .state import apply_value, final_constraints_met, revert_value
from .types import Grid, ProgressState, RandomSource, TraceLog, TraceStep
from .utils import indent, record_step, trace
from .validation import is_valid_placement


DIGITS = list(range(MIN_VALUE, MAX_VALUE + 1))


def next_empty_cell(grid: Grid, start: int = 0) -> Optional[tuple[int, int]]:
    for index in range(start, CELL_COUNT):
        r, c = divmod(index, GRID_SIZE)
        if grid[r][c] == EMPTY:
            return r, c
    return None


def complete_grid(
    grid: Grid,
    rng: RandomSource,
    trace_enabled: bool = False,
    trace_log: Optional[TraceLog] = None,
    start: int = 0,
    depth: int = 0,
) -> bool:
    """Fill every empty cell of ``grid`` in row-major order, trying digits in shuffled order.

    The grid is mutated in place. A cell whose digits are all rejected is reset to
    empty before returning False, so the caller sees the grid exactly as it was.
    """
    cell = next_empty_cell(grid, start)
    if cell is None:
        trace(trace_enabled, trace_log, f"{indent(depth)}Grid complete")
        return True

    r, c = cell
    for value in shuffled(DIGITS, rng):
        if not is_valid_placement(grid, r, c, value):
            continue

        grid[r][c] = value
        trace(trace_enabled, trace_log, f"{indent(depth)}Place {value} at ({r}, {c})")
        if complete_grid(grid, rng, trace_enabled, trace_log, r * GRID_SIZE + c + 1, depth + 1):
            return True
        grid[r][c] = EMPTY

    trace(trace_enabled, trace_log, f"{indent(depth)}Backtrack from ({r}, {c})")
    return False


def search_first_solution(
    grid: Grid,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
    unknown_positions: list[tuple[int, int]],
    trace_enabled: bool,
    trace_log: Optional[TraceLog],
    trace_steps: Optional[list[TraceStep]],
    trace_meta: Optional[dict[str, bool]],
    trace_max_steps: int,
    depth: int,
) -> bool:
    def step(event: str, message: str, **fields) -> None:
        trace(trace_enabled, trace_log, message)
        record_step(trace_steps, trace_meta, trace_max_steps, grid, depth, event, message, **fields)

    choice = select_next_cell_with_candidates(row_used, col_used, box_used, unknown_positions, grid)
    if choice is None:
        step("validate_complete", f"{indent(depth)}All cells assigned; validating rows, columns, and boxes")
        return final_constraints_met(grid)

    r, c, candidates = choice
    step("select_cell", f"{indent(depth)}Select cell ({r}, {c}) with {len(candidates)} candidates", row=r, col=c, candidates=candidates)

    for value in candidates:
        step("try_value", f"{indent(depth)}Try value {value} at ({r}, {c})", row=r, col=c, value=value)
        apply_value(value, r, c, grid, row_used, col_used, box_used)

        if search_first_solution(
            grid=grid,
            row_used=row_used,
            col_used=col_used,
            box_used=box_used,
            unknown_positions=unknown_positions,
            trace_enabled=trace_enabled,
            trace_log=trace_log,
            trace_steps=trace_steps,
            trace_meta=trace_meta,
            trace_max_steps=trace_max_steps,
            depth=depth + 1,
        ):
            step("accept_value", f"{indent(depth)}Accept value {value} at ({r}, {c})", row=r, col=c, value=value)
            return True

        step("backtrack", f"{indent(depth)}Backtrack on ({r}, {c}) value {value}", row=r, col=c, value=value)
        revert_value(value, r, c, grid, row_used, col_used, box_used)

    step("prune_branch", f"{indent(depth)}No valid values remain for ({r}, {c})", row=r, col=c)
    return False


def count_all_solutions(
    grid: Grid,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
    unknown_positions: list[tuple[int, int]],
    limit: Optional[int],
    deadline: Optional[float],
    stop_requested: Optional[Callable[[], bool]],
    progress_callback: Optional[Callable[[ProgressState], None]],
    progress_interval: int,
    progress_state: ProgressState,
) -> tuple[int, bool]:
    """Count completions of ``grid``; the flag is True when the search stopped early.

    Stops early on deadline, on ``stop_requested`` or once ``limit`` solutions are found.
    """
    progress_state["nodes_visited"] += 1
    if progress_callback is not None and progress_state["nodes_visited"] % progress_interval == 0:
        progress_callback(dict(progress_state))

    if stop_requested is not None and stop_requested():
        return 0, True
    if deadline is not None and time.monotonic() >= deadline:
        return 0, True

    choice = select_next_cell_with_candidates(row_used, col_used, box_used, unknown_positions, grid)
    if choice is None:
        if final_constraints_met(grid):
            progress_state["solutions_found"] += 1
            if progress_callback is not None:
                progress_callback(dict(progress_state))
            return 1, False
        return 0, False

    r, c, candidates = choice
    if not candidates:
        return 0, False

    total = 0
    for value in candidates:
        apply_value(value, r, c, grid, row_used, col_used, box_used)

        count, stopped = count_all_solutions(
            grid=grid,
            row_used=row_used,
            col_used=col_used,
            box_used=box_used,
            unknown_positions=unknown_positions,
            limit=None if limit is None else limit - total,
            deadline=deadline,
            stop_requested=stop_requested,
            progress_callback=progress_callback,
            progress_interval=progress_interval,
            progress_state=progress_state,
        )
        total += count

        revert_value(value, r, c, grid, row_used, col_used, box_used)

        if stopped:
            return total, True
        if limit is not None and total >= limit:
            return total, True

    return total, False
