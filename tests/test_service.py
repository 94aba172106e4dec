import unittest

from game.service import GameNotFoundError, GameService
from game.state import GameNotActiveError
from solver.random_source import seeded_random
from storage.store import (
    ACHIEVEMENTS_KEY,
    BEST_TIMES_KEY,
    DAILY_STATS_KEY,
    LEADERBOARD_KEY,
    USER_STATS_KEY,
    LocalStore,
)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def finish_with_hints(service: GameService, game_id: str) -> dict:
    result: dict = {}
    for _ in range(81):
        result = service.provide_hint(game_id, rng=seeded_random("hints"))
        if "completion" in result:
            return result
    raise AssertionError("game did not complete")


class TestGameService(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LocalStore()
        self.clock = FakeClock()
        self.service = GameService(self.store, reveal_delay_seconds=0, clock=self.clock)

    def test_unknown_game(self) -> None:
        with self.assertRaises(GameNotFoundError):
            self.service.get_game("missing")

    def test_new_game_snapshot(self) -> None:
        game = self.service.new_game("medium", player="ada", rng=seeded_random("svc"))
        self.assertEqual(game["player"], "ada")
        self.assertEqual(sum(1 for row in game["grid"] for value in row if value == 0), 50)
        self.assertEqual(self.service.get_game(game["game_id"])["grid"], game["grid"])

    def test_completion_updates_records(self) -> None:
        game = self.service.new_game("easy", player="ada", rng=seeded_random("svc"))
        self.clock.now += 120
        result = finish_with_hints(self.service, game["game_id"])

        completion = result["completion"]
        self.assertEqual(completion["elapsed_seconds"], 120)
        self.assertTrue(completion["new_best_time"])
        # 40 hints cost more than the base score and bonus together
        self.assertEqual(completion["score"], 0)
        self.assertIn("first_win", completion["achievements_unlocked"])
        self.assertNotIn("no_hints", completion["achievements_unlocked"])
        self.assertTrue(result["game"]["is_complete"])

        self.assertEqual(self.store.get(BEST_TIMES_KEY), {"ada": 120})
        self.assertEqual(self.store.get(USER_STATS_KEY)["ada"]["wins_by_difficulty"]["easy"], 1)
        self.assertEqual(self.store.get(LEADERBOARD_KEY)["easy"][0]["name"], "ada")

    def test_moves_after_completion_are_rejected(self) -> None:
        game = self.service.new_game("easy", rng=seeded_random("svc"))
        finish_with_hints(self.service, game["game_id"])
        with self.assertRaises(GameNotActiveError):
            self.service.input_number(game["game_id"], 0, 0, 1)

    def test_daily_completion_records_daily_stats(self) -> None:
        game = self.service.new_daily_game(player="ada", day="2024-05-01")
        self.assertTrue(game["is_daily"])
        finish_with_hints(self.service, game["game_id"])

        daily_stats = self.store.get(DAILY_STATS_KEY)
        self.assertTrue(daily_stats["2024-05-01"]["completed"])
        self.assertEqual(daily_stats["2024-05-01"]["attempts"], 1)
        self.assertEqual(self.store.get(USER_STATS_KEY)["ada"]["daily"]["streak"], 1)

    def test_reveal_solves_the_game(self) -> None:
        game = self.service.new_game("hard", player="bob", rng=seeded_random("reveal"))
        started = self.service.start_reveal(game["game_id"])
        self.assertTrue(started["is_revealing"])

        self.service.wait_for_reveal(game["game_id"], timeout=5)
        final = self.service.get_game(game["game_id"])
        self.assertTrue(final["is_complete"])
        self.assertTrue(final["has_auto_solved"])
        self.assertFalse(final["is_revealing"])
        self.assertTrue(all(value != 0 for row in final["grid"] for value in row))

        # auto-solved games stay off the leaderboard and unlock nothing
        self.assertIsNone(self.store.get(LEADERBOARD_KEY))
        self.assertIsNone(self.store.get(ACHIEVEMENTS_KEY))
        self.assertEqual(self.store.get(BEST_TIMES_KEY), {"bob": 0})

    def test_reveal_cannot_start_twice(self) -> None:
        service = GameService(self.store, reveal_delay_seconds=30, clock=self.clock)
        game = service.new_game("easy", rng=seeded_random("twice"))
        service.start_reveal(game["game_id"])
        try:
            with self.assertRaises(GameNotActiveError):
                service.start_reveal(game["game_id"])
        finally:
            service.cancel_reveal(game["game_id"])

    def test_cancel_reveal_stops_early(self) -> None:
        service = GameService(self.store, reveal_delay_seconds=30, clock=self.clock)
        game = service.new_game("easy", rng=seeded_random("cancel"))
        service.start_reveal(game["game_id"])

        canceled = service.cancel_reveal(game["game_id"])
        self.assertFalse(canceled["is_revealing"])
        self.assertFalse(canceled["is_complete"])
        self.assertTrue(any(value == 0 for row in canceled["grid"] for value in row))

        with self.assertRaises(GameNotActiveError):
            service.cancel_reveal(game["game_id"])

    def test_pause_blocks_hints(self) -> None:
        game = self.service.new_game("easy", rng=seeded_random("pause"))
        self.service.pause(game["game_id"])
        with self.assertRaises(GameNotActiveError):
            self.service.provide_hint(game["game_id"])
        resumed = self.service.resume(game["game_id"])
        self.assertFalse(resumed["is_paused"])


if __name__ == "__main__":
    unittest.main()
