import datetime
import logging
import threading
import time
from typing import Callable, Optional

from rules.rules import REVEAL_DELAY_SECONDS

from solver.types import RandomSource
from storage.store import (
    ACHIEVEMENTS_KEY,
    BEST_TIMES_KEY,
    DAILY_STATS_KEY,
    LEADERBOARD_KEY,
    USER_STATS_KEY,
    LocalStore,
)

from . import session
from .achievements import unlock_achievements
from .daily import complete_daily_challenge, date_key
from .leaderboard import normalize_leaderboard, record_entry
from .records import stats_for_user, update_best_time, update_user_stats_on_win
from .scoring import score_breakdown
from .state import GameNotActiveError, GameState


logger = logging.getLogger(__name__)


class GameNotFoundError(KeyError):
    pass


class GameService:
    """Holds live games in memory and writes finished-game records to the local store."""

    def __init__(
        self,
        store: LocalStore,
        reveal_delay_seconds: float = REVEAL_DELAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.reveal_delay_seconds = reveal_delay_seconds
        self._clock = clock
        self._games: dict[str, GameState] = {}
        self._reveal_jobs: dict[str, dict] = {}
        self._lock = threading.Lock()

    def new_game(self, difficulty: str, player: str = "Guest", rng: Optional[RandomSource] = None) -> dict[str, object]:
        state = session.new_game(difficulty, player=player, rng=rng, now=self._clock())
        with self._lock:
            self._games[state.game_id] = state
            logger.info("started %s game %s for %s", difficulty, state.game_id, state.player)
            return session.snapshot(state, self._clock())

    def new_daily_game(self, player: str = "Guest", day: Optional[str] = None) -> dict[str, object]:
        key = day or date_key()
        state = session.new_daily_game(key, player=player, now=self._clock())
        with self._lock:
            self._games[state.game_id] = state
            logger.info("started daily challenge %s (%s) game %s", key, state.difficulty, state.game_id)
            return session.snapshot(state, self._clock())

    def get_game(self, game_id: str) -> dict[str, object]:
        with self._lock:
            return session.snapshot(self._require(game_id), self._clock())

    def input_number(self, game_id: str, row: int, col: int, digit: int) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            outcome = session.input_number(state, row, col, digit, now=self._clock())
            if outcome["completed"]:
                outcome["completion"] = self._record_completion(state)
            outcome["game"] = session.snapshot(state, self._clock())
            return outcome

    def provide_hint(self, game_id: str, rng: Optional[RandomSource] = None) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            cell = session.provide_hint(state, rng=rng, now=self._clock())
            result: dict[str, object] = {"cell": cell}
            if state.is_complete:
                result["completion"] = self._record_completion(state)
            result["game"] = session.snapshot(state, self._clock())
            return result

    def reset_puzzle(self, game_id: str) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            session.reset_puzzle(state, now=self._clock())
            return session.snapshot(state, self._clock())

    def pause(self, game_id: str) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            session.pause(state, now=self._clock())
            return session.snapshot(state, self._clock())

    def resume(self, game_id: str) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            session.resume(state, now=self._clock())
            return session.snapshot(state, self._clock())

    def start_reveal(self, game_id: str) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            # begin_reveal refuses a second reveal while the first is running
            cells = session.begin_reveal(state)
            cancel_event = threading.Event()
            thread = threading.Thread(target=self._run_reveal, args=(game_id, cells, cancel_event), daemon=True)
            self._reveal_jobs[game_id] = {"thread": thread, "cancel_event": cancel_event, "total": len(cells), "filled": 0}
            thread.start()
            logger.info("revealing %d cells of game %s", len(cells), game_id)
            return session.snapshot(state, self._clock())

    def cancel_reveal(self, game_id: str) -> dict[str, object]:
        with self._lock:
            state = self._require(game_id)
            job = self._reveal_jobs.get(game_id)
            if job is None or not state.is_revealing:
                raise GameNotActiveError("no reveal is running for this game")
            job["cancel_event"].set()
        self.wait_for_reveal(game_id)
        return self.get_game(game_id)

    def wait_for_reveal(self, game_id: str, timeout: Optional[float] = None) -> None:
        with self._lock:
            job = self._reveal_jobs.get(game_id)
        if job is not None:
            job["thread"].join(timeout)

    def _run_reveal(self, game_id: str, cells: list[tuple[int, int]], cancel_event: threading.Event) -> None:
        for row, col in cells:
            if cancel_event.is_set():
                with self._lock:
                    state = self._games.get(game_id)
                    if state is not None:
                        session.cancel_reveal(state)
                logger.info("reveal of game %s canceled", game_id)
                return
            with self._lock:
                state = self._games.get(game_id)
                if state is None:
                    return
                session.apply_reveal_step(state, row, col)
                self._reveal_jobs[game_id]["filled"] += 1
            if self.reveal_delay_seconds > 0:
                # wakes early on cancel
                cancel_event.wait(self.reveal_delay_seconds)

        with self._lock:
            state = self._games.get(game_id)
            if state is None:
                return
            session.finish_reveal(state, now=self._clock())
            self._record_completion(state)

    def _require(self, game_id: str) -> GameState:
        state = self._games.get(game_id)
        if state is None:
            raise GameNotFoundError(game_id)
        return state

    def _record_completion(self, state: GameState) -> dict[str, object]:
        now = self._clock()
        elapsed = session.elapsed_seconds(state, now)
        score = state.final_score or 0
        first_try = not state.has_auto_solved

        best_times = self.store.get(BEST_TIMES_KEY, {})
        new_best = update_best_time(best_times, state.player, elapsed)
        if new_best:
            self.store.set(BEST_TIMES_KEY, best_times)

        all_stats = self.store.get(USER_STATS_KEY, {})
        update_user_stats_on_win(
            stats_for_user(all_stats, state.player),
            state.difficulty,
            score,
            daily_key=state.daily_key if state.is_daily else None,
        )
        self.store.set(USER_STATS_KEY, all_stats)

        achievements = self.store.get(ACHIEVEMENTS_KEY, {})
        unlocked = unlock_achievements(
            achievements,
            state.difficulty,
            elapsed,
            state.mistakes,
            state.hints_used,
            state.has_auto_solved,
            now,
        )
        if unlocked:
            self.store.set(ACHIEVEMENTS_KEY, achievements)

        if first_try:
            board = normalize_leaderboard(self.store.get(LEADERBOARD_KEY))
            record_entry(
                board,
                state.difficulty,
                state.player,
                elapsed,
                datetime.datetime.fromtimestamp(now, datetime.timezone.utc).isoformat(),
            )
            self.store.set(LEADERBOARD_KEY, board)

        if state.is_daily and state.daily_key is not None:
            daily_stats = self.store.get(DAILY_STATS_KEY, {})
            complete_daily_challenge(daily_stats, state.daily_key, elapsed, score)
            self.store.set(DAILY_STATS_KEY, daily_stats)

        logger.info("game %s completed by %s in %ds with score %d", state.game_id, state.player, elapsed, score)
        return {
            "elapsed_seconds": elapsed,
            "score": score,
            "new_best_time": new_best,
            "achievements_unlocked": unlocked,
            "breakdown": score_breakdown(state.difficulty, elapsed, state.mistakes, state.hints_used, first_try),
        }
