import math

from rules.rules import (
    AUTO_SOLVE_SCORE_RATIO,
    BASE_SCORE,
    DIFFICULTY_MULTIPLIERS,
    HINT_PENALTY,
    MAX_TIME_BONUS,
    MISTAKE_PENALTY,
    TIME_TARGETS,
)

from solver.validation import validate_difficulty


def time_bonus(difficulty: str, elapsed_seconds: int) -> int:
    target = TIME_TARGETS[difficulty]
    if elapsed_seconds >= target:
        return 0
    return math.floor((target - elapsed_seconds) / target * MAX_TIME_BONUS)


def calculate_score(difficulty: str, elapsed_seconds: int, mistakes: int, hints: int, first_try: bool) -> int:
    validate_difficulty(difficulty)

    score = BASE_SCORE + time_bonus(difficulty, elapsed_seconds)
    score -= mistakes * MISTAKE_PENALTY
    score -= hints * HINT_PENALTY
    if not first_try:
        score = math.floor(score * AUTO_SOLVE_SCORE_RATIO)
    score = math.floor(score * DIFFICULTY_MULTIPLIERS[difficulty])
    return max(0, score)


def score_breakdown(difficulty: str, elapsed_seconds: int, mistakes: int, hints: int, first_try: bool) -> list[dict[str, object]]:
    validate_difficulty(difficulty)

    items: list[dict[str, object]] = [{"label": "Base Score", "kind": "base", "value": BASE_SCORE}]
    bonus = time_bonus(difficulty, elapsed_seconds)
    if bonus > 0:
        items.append({"label": "Time Bonus", "kind": "positive", "value": bonus})
    if mistakes > 0:
        items.append({"label": "Mistake Penalty", "kind": "negative", "value": -mistakes * MISTAKE_PENALTY})
    if hints > 0:
        items.append({"label": "Hint Penalty", "kind": "negative", "value": -hints * HINT_PENALTY})
    if not first_try:
        items.append({"label": "Auto-solve Penalty", "kind": "ratio", "value": AUTO_SOLVE_SCORE_RATIO})
    multiplier = DIFFICULTY_MULTIPLIERS[difficulty]
    if multiplier != 1.0:
        items.append({"label": f"{difficulty.capitalize()} Multiplier", "kind": "multiplier", "value": multiplier})
    return items
