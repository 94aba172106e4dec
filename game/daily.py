import datetime
from typing import Optional

from rules.rules import DAILY_STREAK_LOOKBACK_DAYS, DIFFICULTIES

DailyStats = dict[str, dict[str, object]]


def date_key(day: Optional[datetime.date] = None) -> str:
    day = day or datetime.date.today()
    return day.strftime("%Y-%m-%d")


def parse_date_key(key: str) -> datetime.date:
    try:
        return datetime.datetime.strptime(key, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"date must use the YYYY-MM-DD format: {key}") from exc


def daily_difficulty(key: str) -> str:
    """Pick the difficulty of a day from a 32-bit rolling hash of its key."""
    value = 0
    for char in key:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return DIFFICULTIES[abs(value) % len(DIFFICULTIES)]


def days_between(earlier: str, later: str) -> int:
    return (parse_date_key(later) - parse_date_key(earlier)).days


def calculate_daily_streak(stats: DailyStats, today: Optional[datetime.date] = None) -> int:
    """Count consecutive completed days ending today, or yesterday while today is still open."""
    today = today or datetime.date.today()
    streak = 0
    for offset in range(DAILY_STREAK_LOOKBACK_DAYS):
        key = date_key(today - datetime.timedelta(days=offset))
        if (stats.get(key) or {}).get("completed"):
            streak += 1
        elif offset > 0:
            break
    return streak


def complete_daily_challenge(stats: DailyStats, key: str, elapsed_seconds: int, score: int) -> dict[str, object]:
    day = stats.setdefault(key, {"completed": False, "best_time": None, "best_score": 0, "attempts": 0})
    day["attempts"] = int(day.get("attempts") or 0) + 1
    day["completed"] = True
    best_time = day.get("best_time")
    if best_time is None or elapsed_seconds < best_time:
        day["best_time"] = elapsed_seconds
    if score > int(day.get("best_score") or 0):
        day["best_score"] = score
    return day


def daily_summary(stats: DailyStats, key: str, today: Optional[datetime.date] = None) -> dict[str, object]:
    day = stats.get(key) or {}
    return {
        "date": key,
        "difficulty": daily_difficulty(key),
        "streak": calculate_daily_streak(stats, today or parse_date_key(key)),
        "completed": bool(day.get("completed")),
        "best_time": day.get("best_time"),
        "best_score": int(day.get("best_score") or 0),
        "attempts": int(day.get("attempts") or 0),
    }
