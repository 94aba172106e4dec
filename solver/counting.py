import math
import random
from typing import Optional

from .constraints import select_next_cell_with_candidates
from .state import apply_value, final_constraints_met
from .types import Grid


def estimate_solution_count(
    grid: Grid,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
    unknown_positions: list[tuple[int, int]],
    sample_paths: int,
    rng: Optional[random.Random] = None,
) -> tuple[float, Optional[float]]:
    """Estimate the number of completions by sampling random root-to-leaf paths.

    Each path multiplies the branching factors it meets; the mean over paths is an
    unbiased estimate of the search-tree leaf count that are solutions.
    """
    rng = rng or random.Random()
    estimates: list[float] = []

    for _ in range(sample_paths):
        sim_grid = [row[:] for row in grid]
        sim_row_used = [set(values) for values in row_used]
        sim_col_used = [set(values) for values in col_used]
        sim_box_used = [set(values) for values in box_used]

        weight = 1.0

        while True:
            choice = select_next_cell_with_candidates(
                sim_row_used,
                sim_col_used,
                sim_box_used,
                unknown_positions,
                sim_grid,
            )
            if choice is None:
                estimates.append(weight if final_constraints_met(sim_grid) else 0.0)
                break

            r, c, candidates = choice
            if not candidates:
                estimates.append(0.0)
                break

            weight *= len(candidates)
            value = rng.choice(candidates)
            apply_value(value, r, c, sim_grid, sim_row_used, sim_col_used, sim_box_used)

    mean_estimate = sum(estimates) / len(estimates)
    if len(estimates) < 2 or mean_estimate == 0:
        return mean_estimate, None

    variance = sum((value - mean_estimate) ** 2 for value in estimates) / (len(estimates) - 1)
    std_error = math.sqrt(variance / len(estimates))
    relative_error = std_error / mean_estimate
    return mean_estimate, relative_error
