from typing import Optional

from rules.rules import DIFFICULTIES, LEADERBOARD_SIZE

from solver.validation import validate_difficulty

Leaderboard = dict[str, list[dict[str, object]]]


def normalize_leaderboard(raw: Optional[dict]) -> Leaderboard:
    raw = raw or {}
    return {difficulty: list(raw.get(difficulty) or []) for difficulty in DIFFICULTIES}


def record_entry(board: Leaderboard, difficulty: str, name: str, elapsed_seconds: int, date: str) -> list[dict[str, object]]:
    validate_difficulty(difficulty)
    entries = board.get(difficulty, [])
    entries.append({"name": name, "time": elapsed_seconds, "date": date})
    # sorted() is stable, so earlier entries win ties
    board[difficulty] = sorted(entries, key=lambda entry: entry["time"])[:LEADERBOARD_SIZE]
    return board[difficulty]
