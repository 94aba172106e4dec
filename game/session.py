import math
import time
import uuid
from typing import Optional

from rules.rules import DAILY_BONUS_MULTIPLIER, EMPTY

from solver.random_source import random_index, resolve_random, seeded_random
from solver.solver import create_puzzle
from solver.types import RandomSource
from solver.utils import copy_grid, empty_positions
from solver.validation import is_valid_placement, validate_digit, validate_position

from .daily import daily_difficulty
from .scoring import calculate_score
from .state import GameNotActiveError, GameState


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def new_game(
    difficulty: str,
    player: str = "Guest",
    rng: Optional[RandomSource] = None,
    now: Optional[float] = None,
    daily_key: Optional[str] = None,
) -> GameState:
    if daily_key is not None:
        rng = seeded_random(daily_key)
    puzzle = create_puzzle(difficulty, rng=rng)
    return GameState(
        game_id=str(uuid.uuid4()),
        player=(player or "").strip() or "Guest",
        difficulty=difficulty,
        solution=puzzle["solution"],
        original=copy_grid(puzzle["puzzle"]),
        grid=copy_grid(puzzle["puzzle"]),
        started_at=_now(now),
        is_daily=daily_key is not None,
        daily_key=daily_key,
    )


def new_daily_game(day_key: str, player: str = "Guest", now: Optional[float] = None) -> GameState:
    return new_game(daily_difficulty(day_key), player=player, now=now, daily_key=day_key)


def ensure_active(state: GameState) -> None:
    if state.is_complete:
        raise GameNotActiveError("game is already complete")
    if state.is_paused:
        raise GameNotActiveError("game is paused")
    if state.is_revealing:
        raise GameNotActiveError("game is being revealed")


def elapsed_seconds(state: GameState, now: Optional[float] = None) -> int:
    end = state.finished_at if state.finished_at is not None else _now(now)
    paused = state.paused_seconds
    if state.paused_at is not None:
        paused += end - state.paused_at
    return max(0, math.floor(end - state.started_at - paused))


def current_score(state: GameState, now: Optional[float] = None) -> int:
    return calculate_score(
        state.difficulty,
        elapsed_seconds(state, now),
        state.mistakes,
        state.hints_used,
        first_try=not state.has_auto_solved,
    )


def is_puzzle_complete(state: GameState) -> bool:
    return all(value != EMPTY for row in state.grid for value in row)


def complete_game(state: GameState, now: Optional[float] = None) -> int:
    state.finished_at = _now(now)
    state.is_complete = True
    score = current_score(state, state.finished_at)
    if state.is_daily:
        score = math.floor(score * DAILY_BONUS_MULTIPLIER)
    state.final_score = score
    return score


def input_number(state: GameState, row: int, col: int, digit: int, now: Optional[float] = None) -> dict[str, object]:
    """Apply a player entry; digit 0 clears the cell.

    Entries that break a row, column, or box constraint are not placed and count as a mistake.
    """
    ensure_active(state)
    validate_position(row, col)
    validate_digit(digit, allow_empty=True)
    if state.original[row][col] != EMPTY:
        raise ValueError(f"cell ({row}, {col}) is a given clue and cannot be edited")

    if digit == EMPTY:
        state.grid[row][col] = EMPTY
        return {"accepted": True, "cleared": True, "completed": False}

    if not is_valid_placement(state.grid, row, col, digit):
        state.mistakes += 1
        return {"accepted": False, "cleared": False, "completed": False}

    state.grid[row][col] = digit
    completed = is_puzzle_complete(state)
    if completed:
        complete_game(state, now)
    return {"accepted": True, "cleared": False, "completed": completed}


def provide_hint(state: GameState, rng: Optional[RandomSource] = None, now: Optional[float] = None) -> Optional[tuple[int, int]]:
    ensure_active(state)
    cells = empty_positions(state.grid)
    if not cells:
        return None

    row, col = cells[random_index(resolve_random(rng), len(cells))]
    state.grid[row][col] = state.solution[row][col]
    state.hints_used += 1
    if is_puzzle_complete(state):
        complete_game(state, now)
    return row, col


def reset_puzzle(state: GameState, now: Optional[float] = None) -> None:
    ensure_active(state)
    state.grid = copy_grid(state.original)
    state.mistakes = 0
    state.hints_used = 0
    state.started_at = _now(now)
    state.paused_seconds = 0.0


def pause(state: GameState, now: Optional[float] = None) -> None:
    ensure_active(state)
    state.is_paused = True
    state.paused_at = _now(now)


def resume(state: GameState, now: Optional[float] = None) -> None:
    if not state.is_paused:
        return
    state.paused_seconds += _now(now) - state.paused_at
    state.paused_at = None
    state.is_paused = False


def begin_reveal(state: GameState) -> list[tuple[int, int]]:
    """Mark the game as revealing and return the empty cells in reading order."""
    ensure_active(state)
    state.is_revealing = True
    state.has_auto_solved = True
    return empty_positions(state.grid)


def apply_reveal_step(state: GameState, row: int, col: int) -> None:
    state.grid[row][col] = state.solution[row][col]


def finish_reveal(state: GameState, now: Optional[float] = None) -> int:
    state.grid = copy_grid(state.solution)
    state.is_revealing = False
    return complete_game(state, now)


def cancel_reveal(state: GameState) -> None:
    state.is_revealing = False


def snapshot(state: GameState, now: Optional[float] = None) -> dict[str, object]:
    return {
        "game_id": state.game_id,
        "player": state.player,
        "difficulty": state.difficulty,
        "grid": copy_grid(state.grid),
        "original": copy_grid(state.original),
        "given_mask": [[value != EMPTY for value in row] for row in state.original],
        "mistakes": state.mistakes,
        "hints_used": state.hints_used,
        "elapsed_seconds": elapsed_seconds(state, now),
        "score": state.final_score if state.final_score is not None else current_score(state, now),
        "is_complete": state.is_complete,
        "is_paused": state.is_paused,
        "is_revealing": state.is_revealing,
        "has_auto_solved": state.has_auto_solved,
        "is_daily": state.is_daily,
        "daily_key": state.daily_key,
    }
