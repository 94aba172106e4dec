from typing import Optional

ACHIEVEMENT_CATALOG = [
    {"id": "first_win", "title": "First Victory", "desc": "Complete your first puzzle."},
    {"id": "no_mistakes", "title": "Flawless", "desc": "Win with 0 mistakes."},
    {"id": "no_hints", "title": "Pure Logic", "desc": "Win without using hints."},
    {"id": "fast_5", "title": "Speedster", "desc": "Win in under 5 minutes."},
    {"id": "fast_10", "title": "Quick Thinker", "desc": "Win in under 10 minutes."},
    {"id": "hard_win", "title": "Challenger", "desc": "Win on Hard difficulty."},
    {"id": "expert_win", "title": "Sudoku Sage", "desc": "Win on Expert difficulty."},
]


def earned_achievements(difficulty: str, elapsed_seconds: int, mistakes: int, hints: int) -> list[str]:
    earned = ["first_win"]
    if mistakes == 0:
        earned.append("no_mistakes")
    if hints == 0:
        earned.append("no_hints")
    if elapsed_seconds <= 5 * 60:
        earned.append("fast_5")
    if elapsed_seconds <= 10 * 60:
        earned.append("fast_10")
    if difficulty == "hard":
        earned.append("hard_win")
    if difficulty == "expert":
        earned.append("expert_win")
    return earned


def unlock_achievements(
    unlocked: dict[str, dict[str, float]],
    difficulty: str,
    elapsed_seconds: int,
    mistakes: int,
    hints: int,
    has_auto_solved: bool,
    now: float,
) -> list[str]:
    """Record first-time unlocks in ``unlocked`` and return the ids that were new."""
    if has_auto_solved:
        return []

    newly_unlocked: list[str] = []
    for achievement_id in earned_achievements(difficulty, elapsed_seconds, mistakes, hints):
        if achievement_id not in unlocked:
            unlocked[achievement_id] = {"unlocked_at": now}
            newly_unlocked.append(achievement_id)
    return newly_unlocked


def describe_achievements(unlocked: Optional[dict[str, dict[str, float]]]) -> list[dict[str, object]]:
    unlocked = unlocked or {}
    return [
        {
            **achievement,
            "unlocked": achievement["id"] in unlocked,
            "unlocked_at": unlocked.get(achievement["id"], {}).get("unlocked_at"),
        }
        for achievement in ACHIEVEMENT_CATALOG
    ]
