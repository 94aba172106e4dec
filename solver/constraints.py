from rules.rules import EMPTY, MAX_VALUE, MIN_VALUE

from .types import Grid
from .utils import box_index


ALL_DIGITS = frozenset(range(MIN_VALUE, MAX_VALUE + 1))


def select_next_cell_with_candidates(
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
    unknown_positions: list[tuple[int, int]],
    grid: Grid,
) -> tuple[int, int, list[int]] | None:
    best_choice: tuple[int, int, list[int]] | None = None
    best_domain_size: int | None = None

    for r, c in unknown_positions:
        if grid[r][c] != EMPTY:
            continue

        candidates = valid_candidates_for_cell(r, c, row_used, col_used, box_used)
        if not candidates:
            return r, c, []

        domain_size = len(candidates)
        if best_domain_size is None or domain_size < best_domain_size:
            best_domain_size = domain_size
            best_choice = (r, c, candidates)
            if domain_size == 1:
                break

    return best_choice


def valid_candidates_for_cell(
    r: int,
    c: int,
    row_used: list[set[int]],
    col_used: list[set[int]],
    box_used: list[set[int]],
) -> list[int]:
    taken = row_used[r] | col_used[c] | box_used[box_index(r, c)]
    return sorted(ALL_DIGITS - taken)
