import time
from typing import Callable, Optional

from .counting import estimate_solution_count
from .generator import generate_puzzle, given_mask
from .random_source import seeded_random
from .search import count_all_solutions, search_first_solution
from .state import build_initial_state
from .types import CountResult, Difficulty, Grid, InputGrid, ProgressState, RandomSource, TraceLog, TraceStep
from .utils import trace as _trace
from .validation import is_valid_placement, validate_count_options

__all__ = [
    "count_solutions",
    "create_puzzle",
    "is_valid_placement",
    "solve_puzzle",
]


def create_puzzle(
    difficulty: Difficulty,
    seed: Optional[str] = None,
    rng: Optional[RandomSource] = None,
    trace: bool = False,
    trace_log: Optional[TraceLog] = None,
) -> dict[str, object]:
    """Generate a solution and its dug puzzle; a ``seed`` makes the result reproducible."""
    if seed is not None:
        rng = seeded_random(seed)
    solution, puzzle = generate_puzzle(difficulty, rng=rng, trace_enabled=trace, trace_log=trace_log)
    return {
        "difficulty": difficulty,
        "solution": solution,
        "puzzle": puzzle,
        "given_mask": given_mask(puzzle),
    }


def solve_puzzle(
    grid: Optional[InputGrid],
    trace: bool = False,
    trace_log: Optional[TraceLog] = None,
    trace_steps: Optional[list[TraceStep]] = None,
    trace_meta: Optional[dict[str, bool]] = None,
    trace_max_steps: int = 1000,
) -> Grid:
    if trace_max_steps < 1:
        raise ValueError("trace_max_steps must be >= 1")

    working, row_used, col_used, box_used, unknown_positions = build_initial_state(grid)

    _trace(trace, trace_log, f"Initialized search: unknown_cells={len(unknown_positions)}")

    if not search_first_solution(
        grid=working,
        row_used=row_used,
        col_used=col_used,
        box_used=box_used,
        unknown_positions=unknown_positions,
        trace_enabled=trace,
        trace_log=trace_log,
        trace_steps=trace_steps,
        trace_meta=trace_meta,
        trace_max_steps=trace_max_steps,
        depth=0,
    ):
        raise ValueError("No valid solution for the provided grid")

    return working


def count_solutions(
    grid: Optional[InputGrid],
    mode: str = "exact",
    max_seconds: Optional[float] = 2.0,
    limit: Optional[int] = 2,
    sample_paths: int = 300,
    stop_requested: Optional[Callable[[], bool]] = None,
    progress_callback: Optional[Callable[[ProgressState], None]] = None,
    progress_interval: int = 200,
) -> CountResult:
    """Count the solutions of ``grid``.

    ``exact`` searches exhaustively until ``limit`` solutions are found (``None`` means no
    limit) or ``max_seconds`` runs out. ``estimate`` samples random search paths.
    ``auto`` tries the exact search first and falls back to an estimate on timeout.
    """
    validate_count_options(mode, max_seconds, limit, sample_paths, progress_interval)

    working, row_used, col_used, box_used, unknown_positions = build_initial_state(grid)

    exact_count = 0
    if mode in {"auto", "exact"}:
        deadline = None if max_seconds is None else time.monotonic() + max_seconds
        progress_state: ProgressState = {"solutions_found": 0, "nodes_visited": 0}
        exact_count, stopped = count_all_solutions(
            grid=working,
            row_used=row_used,
            col_used=col_used,
            box_used=box_used,
            unknown_positions=unknown_positions,
            limit=limit,
            deadline=deadline,
            stop_requested=stop_requested,
            progress_callback=progress_callback,
            progress_interval=progress_interval,
            progress_state=progress_state,
        )

        if not stopped:
            return {
                "mode_used": "exact",
                "exact": True,
                "count": exact_count,
                "unique": exact_count == 1,
                "message": "Exact count completed.",
            }

        if limit is not None and exact_count >= limit:
            return {
                "mode_used": "exact",
                "exact": False,
                "lower_bound": exact_count,
                "unique": False if exact_count > 1 else None,
                "message": f"Stopped after finding {exact_count} solutions.",
            }

        if mode == "exact":
            return {
                "mode_used": "exact",
                "exact": False,
                "lower_bound": exact_count,
                "unique": False if exact_count > 1 else None,
                "message": "Exact count timed out before completion.",
            }

    estimate, relative_error = estimate_solution_count(
        grid=working,
        row_used=row_used,
        col_used=col_used,
        box_used=box_used,
        unknown_positions=unknown_positions,
        sample_paths=sample_paths,
    )

    if mode == "estimate":
        return {
            "mode_used": "estimate",
            "exact": False,
            "estimated_count": estimate,
            "relative_error": relative_error,
            "unique": None,
            "message": "Estimated count using randomized search-tree sampling.",
        }

    return {
        "mode_used": "auto",
        "exact": False,
        "lower_bound": exact_count,
        "estimated_count": estimate,
        "relative_error": relative_error,
        "unique": False if exact_count > 1 else None,
        "message": "Exact count timed out; returning lower bound plus estimate.",
    }
