from typing import Optional

from rules.rules import DIFFICULTIES

from .daily import days_between

UserStats = dict[str, object]


def new_user_stats() -> UserStats:
    return {
        "wins_by_difficulty": {difficulty: 0 for difficulty in DIFFICULTIES},
        "total_score": 0,
        "daily": {"last_solved_date": None, "streak": 0},
    }


def stats_for_user(all_stats: dict[str, UserStats], username: str) -> UserStats:
    if username not in all_stats:
        all_stats[username] = new_user_stats()
    return all_stats[username]


def update_user_stats_on_win(stats: UserStats, difficulty: str, score: int, daily_key: Optional[str] = None) -> UserStats:
    wins = stats.setdefault("wins_by_difficulty", {})
    wins[difficulty] = int(wins.get(difficulty) or 0) + 1
    stats["total_score"] = int(stats.get("total_score") or 0) + score

    if daily_key is not None:
        daily = stats.setdefault("daily", {"last_solved_date": None, "streak": 0})
        last = daily.get("last_solved_date")
        if last is None or days_between(last, daily_key) == 1:
            daily["streak"] = int(daily.get("streak") or 0) + 1
        elif last != daily_key:
            daily["streak"] = 1
        daily["last_solved_date"] = daily_key

    return stats


def update_best_time(best_times: dict[str, int], player: str, elapsed_seconds: int) -> bool:
    current_best = best_times.get(player)
    if current_best is None or elapsed_seconds < current_best:
        best_times[player] = elapsed_seconds
        return True
    return False


def dashboard(username: str, stats: UserStats, best_time: Optional[int]) -> dict[str, object]:
    wins = stats.get("wins_by_difficulty") or {}
    total_games = sum(int(wins.get(difficulty) or 0) for difficulty in DIFFICULTIES)
    total_score = int(stats.get("total_score") or 0)
    # total score is not tracked per difficulty, so score per game is the overall average
    score_per_game = total_score // total_games if total_games else 0

    by_difficulty = []
    for difficulty in DIFFICULTIES:
        count = int(wins.get(difficulty) or 0)
        by_difficulty.append(
            {
                "difficulty": difficulty,
                "games_won": count,
                "win_rate": round(count / total_games * 100) if total_games else 0,
                "score_per_game": score_per_game if count else 0,
            }
        )

    return {
        "player": username,
        "streak": int((stats.get("daily") or {}).get("streak") or 0),
        "total_score": total_score,
        "total_games": total_games,
        "best_time": best_time if total_games else None,
        "by_difficulty": by_difficulty,
    }
