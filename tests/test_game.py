import datetime
import random
import unittest

from game import session
from game.achievements import describe_achievements, unlock_achievements
from game.daily import calculate_daily_streak, complete_daily_challenge, daily_difficulty, daily_summary, days_between
from game.leaderboard import normalize_leaderboard, record_entry
from game.records import dashboard, new_user_stats, update_best_time, update_user_stats_on_win
from game.scoring import calculate_score, score_breakdown
from game.state import GameNotActiveError, GameState
from sudoku_fixtures import CLASSIC_PUZZLE, CLASSIC_SOLUTION


def make_state(**overrides) -> GameState:
    fields = {
        "game_id": "game-1",
        "player": "ada",
        "difficulty": "easy",
        "solution": [row[:] for row in CLASSIC_SOLUTION],
        "original": [row[:] for row in CLASSIC_PUZZLE],
        "grid": [row[:] for row in CLASSIC_PUZZLE],
        "started_at": 1000.0,
    }
    fields.update(overrides)
    return GameState(**fields)


class TestScoring(unittest.TestCase):
    def test_perfect_fast_easy_game(self) -> None:
        # 1000 + floor(300 / 600 * 500) = 1250
        self.assertEqual(calculate_score("easy", 300, 0, 0, first_try=True), 1250)

    def test_penalties_and_multiplier(self) -> None:
        # (1000 + 0 - 2 * 50 - 1 * 100) * 1.5 = 1200
        self.assertEqual(calculate_score("medium", 900, 2, 1, first_try=True), 1200)

    def test_auto_solve_keeps_a_fifth(self) -> None:
        # floor(1000 * 0.2) * 3.0 = 600
        self.assertEqual(calculate_score("expert", 4000, 0, 0, first_try=False), 600)

    def test_score_never_negative(self) -> None:
        self.assertEqual(calculate_score("hard", 5000, 30, 10, first_try=True), 0)

    def test_breakdown_lists_applied_items(self) -> None:
        items = score_breakdown("hard", 100, 1, 1, first_try=False)
        labels = [item["label"] for item in items]
        self.assertEqual(
            labels,
            ["Base Score", "Time Bonus", "Mistake Penalty", "Hint Penalty", "Auto-solve Penalty", "Hard Multiplier"],
        )

    def test_rejects_unknown_difficulty(self) -> None:
        with self.assertRaises(ValueError):
            calculate_score("nightmare", 10, 0, 0, first_try=True)


class TestAchievements(unittest.TestCase):
    def test_first_win_unlocks_matching_achievements(self) -> None:
        unlocked: dict = {}
        new = unlock_achievements(unlocked, "expert", 200, 0, 0, False, now=5.0)
        self.assertEqual(new, ["first_win", "no_mistakes", "no_hints", "fast_5", "fast_10", "expert_win"])
        self.assertEqual(unlocked["first_win"], {"unlocked_at": 5.0})

    def test_unlock_time_is_kept_from_first_unlock(self) -> None:
        unlocked: dict = {}
        unlock_achievements(unlocked, "easy", 900, 1, 1, False, now=5.0)
        new = unlock_achievements(unlocked, "easy", 900, 1, 1, False, now=9.0)
        self.assertEqual(new, [])
        self.assertEqual(unlocked["first_win"]["unlocked_at"], 5.0)

    def test_auto_solved_games_unlock_nothing(self) -> None:
        unlocked: dict = {}
        self.assertEqual(unlock_achievements(unlocked, "hard", 10, 0, 0, True, now=1.0), [])
        self.assertEqual(unlocked, {})

    def test_describe_marks_locked_and_unlocked(self) -> None:
        described = describe_achievements({"hard_win": {"unlocked_at": 3.0}})
        by_id = {item["id"]: item for item in described}
        self.assertTrue(by_id["hard_win"]["unlocked"])
        self.assertFalse(by_id["first_win"]["unlocked"])
        self.assertEqual(len(described), 7)


class TestLeaderboard(unittest.TestCase):
    def test_entries_sorted_and_trimmed_to_twenty(self) -> None:
        board = normalize_leaderboard(None)
        for seconds in range(30, 0, -1):
            record_entry(board, "medium", f"p{seconds}", seconds, "2024-05-01T00:00:00")
        entries = board["medium"]
        self.assertEqual(len(entries), 20)
        self.assertEqual(entries[0]["time"], 1)
        self.assertEqual(entries[-1]["time"], 20)
        self.assertEqual(board["easy"], [])

    def test_normalize_fills_missing_difficulties(self) -> None:
        board = normalize_leaderboard({"hard": [{"name": "x", "time": 5, "date": "d"}]})
        self.assertEqual(set(board), {"easy", "medium", "hard", "expert"})
        self.assertEqual(len(board["hard"]), 1)


class TestDaily(unittest.TestCase):
    def test_daily_difficulty_is_stable_and_valid(self) -> None:
        first = daily_difficulty("2024-05-01")
        self.assertEqual(first, daily_difficulty("2024-05-01"))
        self.assertIn(first, {"easy", "medium", "hard", "expert"})

    def test_daily_difficulty_covers_several_levels(self) -> None:
        start = datetime.date(2024, 1, 1)
        levels = {daily_difficulty((start + datetime.timedelta(days=i)).isoformat()) for i in range(60)}
        self.assertGreater(len(levels), 1)

    def test_streak_counts_consecutive_days(self) -> None:
        stats = {
            "2024-05-01": {"completed": True},
            "2024-05-02": {"completed": True},
            "2024-05-03": {"completed": True},
        }
        self.assertEqual(calculate_daily_streak(stats, datetime.date(2024, 5, 3)), 3)
        # today still open keeps yesterday's streak
        self.assertEqual(calculate_daily_streak(stats, datetime.date(2024, 5, 4)), 3)
        self.assertEqual(calculate_daily_streak(stats, datetime.date(2024, 5, 5)), 0)

    def test_complete_daily_keeps_bests(self) -> None:
        stats: dict = {}
        complete_daily_challenge(stats, "2024-05-01", 300, 900)
        day = complete_daily_challenge(stats, "2024-05-01", 400, 1200)
        self.assertEqual(day["attempts"], 2)
        self.assertEqual(day["best_time"], 300)
        self.assertEqual(day["best_score"], 1200)
        self.assertTrue(day["completed"])

    def test_summary_reports_today(self) -> None:
        stats = {"2024-05-01": {"completed": True, "best_time": 100, "best_score": 50, "attempts": 1}}
        summary = daily_summary(stats, "2024-05-01")
        self.assertTrue(summary["completed"])
        self.assertEqual(summary["streak"], 1)
        self.assertEqual(summary["best_time"], 100)

    def test_days_between(self) -> None:
        self.assertEqual(days_between("2024-02-28", "2024-03-01"), 2)
        with self.assertRaises(ValueError):
            days_between("yesterday", "2024-03-01")


class TestRecords(unittest.TestCase):
    def test_user_stats_track_wins_and_daily_streak(self) -> None:
        stats = new_user_stats()
        update_user_stats_on_win(stats, "hard", 800, daily_key="2024-05-01")
        update_user_stats_on_win(stats, "easy", 200, daily_key="2024-05-02")
        self.assertEqual(stats["wins_by_difficulty"]["hard"], 1)
        self.assertEqual(stats["total_score"], 1000)
        self.assertEqual(stats["daily"]["streak"], 2)
        update_user_stats_on_win(stats, "easy", 0, daily_key="2024-05-09")
        self.assertEqual(stats["daily"]["streak"], 1)

    def test_best_time_only_improves(self) -> None:
        best: dict = {}
        self.assertTrue(update_best_time(best, "ada", 300))
        self.assertFalse(update_best_time(best, "ada", 400))
        self.assertTrue(update_best_time(best, "ada", 200))
        self.assertEqual(best["ada"], 200)

    def test_dashboard_summary(self) -> None:
        stats = new_user_stats()
        update_user_stats_on_win(stats, "easy", 600)
        update_user_stats_on_win(stats, "hard", 1400)
        summary = dashboard("ada", stats, 250)
        self.assertEqual(summary["total_games"], 2)
        self.assertEqual(summary["total_score"], 2000)
        self.assertEqual(summary["best_time"], 250)
        easy = summary["by_difficulty"][0]
        self.assertEqual(easy, {"difficulty": "easy", "games_won": 1, "win_rate": 50, "score_per_game": 1000})


class TestSession(unittest.TestCase):
    def test_new_game_matches_difficulty(self) -> None:
        state = session.new_game("hard", player="  ", now=0.0)
        self.assertEqual(state.player, "Guest")
        self.assertEqual(sum(1 for row in state.grid for value in row if value == 0), 60)
        self.assertEqual(state.grid, state.original)

    def test_daily_game_is_deterministic(self) -> None:
        first = session.new_daily_game("2024-05-01", now=0.0)
        second = session.new_daily_game("2024-05-01", now=0.0)
        self.assertEqual(first.solution, second.solution)
        self.assertEqual(first.original, second.original)
        self.assertEqual(first.difficulty, daily_difficulty("2024-05-01"))
        self.assertTrue(first.is_daily)

    def test_valid_entry_is_placed(self) -> None:
        state = make_state()
        outcome = session.input_number(state, 0, 2, 4, now=1010.0)
        self.assertTrue(outcome["accepted"])
        self.assertEqual(state.grid[0][2], 4)
        self.assertEqual(state.mistakes, 0)

    def test_conflicting_entry_counts_a_mistake(self) -> None:
        state = make_state()
        outcome = session.input_number(state, 0, 2, 5, now=1010.0)
        self.assertFalse(outcome["accepted"])
        self.assertEqual(state.grid[0][2], 0)
        self.assertEqual(state.mistakes, 1)

    def test_given_cells_cannot_be_edited(self) -> None:
        state = make_state()
        with self.assertRaises(ValueError):
            session.input_number(state, 0, 0, 1)

    def test_zero_clears_a_cell(self) -> None:
        state = make_state()
        session.input_number(state, 0, 2, 4)
        outcome = session.input_number(state, 0, 2, 0)
        self.assertTrue(outcome["cleared"])
        self.assertEqual(state.grid[0][2], 0)

    def test_filling_last_cell_completes_game(self) -> None:
        grid = [row[:] for row in CLASSIC_SOLUTION]
        grid[8][0] = 0
        state = make_state(grid=grid, original=[row[:] for row in grid])
        state.original[8][0] = 0
        outcome = session.input_number(state, 8, 0, 3, now=1300.0)
        self.assertTrue(outcome["completed"])
        self.assertTrue(state.is_complete)
        self.assertEqual(state.final_score, 1250)
        with self.assertRaises(GameNotActiveError):
            session.input_number(state, 8, 0, 3)

    def test_daily_completion_gets_bonus(self) -> None:
        grid = [row[:] for row in CLASSIC_SOLUTION]
        grid[8][0] = 0
        state = make_state(grid=grid, original=[row[:] for row in grid], is_daily=True, daily_key="2024-05-01")
        session.input_number(state, 8, 0, 3, now=1300.0)
        self.assertEqual(state.final_score, 1875)

    def test_hint_fills_a_cell_from_solution(self) -> None:
        state = make_state()
        row, col = session.provide_hint(state, rng=random.Random(7).random)
        self.assertEqual(state.grid[row][col], CLASSIC_SOLUTION[row][col])
        self.assertEqual(CLASSIC_PUZZLE[row][col], 0)
        self.assertEqual(state.hints_used, 1)

    def test_reset_restores_original_and_stats(self) -> None:
        state = make_state()
        session.input_number(state, 0, 2, 4)
        session.input_number(state, 0, 3, 5)
        session.reset_puzzle(state, now=2000.0)
        self.assertEqual(state.grid, CLASSIC_PUZZLE)
        self.assertEqual(state.mistakes, 0)
        self.assertEqual(state.started_at, 2000.0)

    def test_pause_excludes_time_and_blocks_input(self) -> None:
        state = make_state()
        session.pause(state, now=1100.0)
        with self.assertRaises(GameNotActiveError):
            session.input_number(state, 0, 2, 4)
        self.assertEqual(session.elapsed_seconds(state, now=1500.0), 100)
        session.resume(state, now=1600.0)
        self.assertEqual(session.elapsed_seconds(state, now=1650.0), 150)

    def test_reveal_guard_and_completion(self) -> None:
        state = make_state()
        cells = session.begin_reveal(state)
        self.assertEqual(len(cells), sum(1 for row in CLASSIC_PUZZLE for value in row if value == 0))
        with self.assertRaises(GameNotActiveError):
            session.begin_reveal(state)
        session.apply_reveal_step(state, *cells[0])
        score = session.finish_reveal(state, now=1300.0)
        self.assertEqual(state.grid, CLASSIC_SOLUTION)
        self.assertTrue(state.is_complete)
        self.assertTrue(state.has_auto_solved)
        # floor(1250 * 0.2) = 250
        self.assertEqual(score, 250)


if __name__ == "__main__":
    unittest.main()
