import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from count_jobs import CountJobNotFoundError, CountJobRegistry
from game import accounts
from game.achievements import describe_achievements
from game.daily import daily_summary, date_key, parse_date_key
from game.leaderboard import normalize_leaderboard
from game.records import dashboard, stats_for_user
from game.service import GameNotFoundError, GameService
from game.state import GameNotActiveError
from logging_setup import setup_logging
from settings import settings
from solver.solver import count_solutions, create_puzzle, is_valid_placement, solve_puzzle
from solver.utils import format_grid_rows
from solver.validation import validate_and_normalize_grid, validate_difficulty, validate_digit, validate_position
from storage.store import (
    ACHIEVEMENTS_KEY,
    BEST_TIMES_KEY,
    DAILY_STATS_KEY,
    LEADERBOARD_KEY,
    SOUND_ENABLED_KEY,
    THEME_KEY,
    USER_STATS_KEY,
    LocalStore,
)

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

GridField = list[list[Optional[int]]]


class PuzzleRequest(BaseModel):
    difficulty: str = Field(default="medium", description="Difficulty: easy, medium, hard, or expert")
    seed: Optional[str] = Field(default=None, description="Seed string for a reproducible puzzle, e.g. a date key")
    trace: bool = Field(default=False, description="Include generation trace output in the response")


class PuzzleResponse(BaseModel):
    difficulty: str
    puzzle: list[list[int]]
    solution: list[list[int]]
    given_mask: list[list[bool]]
    grid_rows: list[str]
    empty_cells: int
    trace: Optional[list[str]] = None


class ValidateRequest(BaseModel):
    grid: GridField = Field(..., description="9x9 grid with 0 or null for empty cells")
    row: int
    col: int
    digit: int


class ValidateResponse(BaseModel):
    valid: bool


class SolveRequest(BaseModel):
    grid: GridField = Field(..., description="9x9 grid with 0 or null for empty cells")
    trace: bool = Field(default=False, description="Include solver trace output in the response")
    trace_steps: bool = Field(default=False, description="Include structured trace steps for walkthrough/debugging.")
    trace_max_steps: int = Field(default=1000, ge=1, le=20000, description="Maximum number of trace steps to return.")


class TraceStepResponse(BaseModel):
    event: str
    message: str
    depth: int
    row: Optional[int] = None
    col: Optional[int] = None
    value: Optional[int] = None
    candidates: Optional[list[int]] = None
    grid: list[list[int]]


class SolveResponse(BaseModel):
    solution: list[list[int]]
    grid_rows: list[str]
    grid_text: str
    trace: Optional[list[str]] = None
    trace_steps: Optional[list[TraceStepResponse]] = None
    trace_truncated: bool = False


class CountRequest(BaseModel):
    grid: GridField = Field(..., description="9x9 grid with 0 or null for empty cells")
    mode: str = Field(default="exact", description="Counting mode: auto, exact, or estimate")
    max_seconds: Optional[float] = Field(
        default_factory=lambda: settings.count_max_seconds,
        ge=0.0,
        description="Time budget for exact counting in auto/exact mode. Use null to run exact mode to completion.",
    )
    limit: Optional[int] = Field(
        default=2,
        ge=1,
        description="Stop exact counting after this many solutions. 2 answers the uniqueness question; null counts all.",
    )
    sample_paths: int = Field(default=300, ge=1, description="Number of randomized paths used in estimate mode")


class CountResponse(BaseModel):
    mode_used: str
    exact: bool
    count: Optional[int] = None
    lower_bound: Optional[int] = None
    estimated_count: Optional[float] = None
    relative_error: Optional[float] = None
    unique: Optional[bool] = None
    message: str


class CountJobStartResponse(BaseModel):
    job_id: str
    status: str


class CountJobStatusResponse(BaseModel):
    job_id: str
    status: str
    elapsed_seconds: float
    mode_requested: str
    nodes_visited: int
    exact: Optional[bool] = None
    count: Optional[int] = None
    lower_bound: Optional[int] = None
    estimated_count: Optional[float] = None
    relative_error: Optional[float] = None
    unique: Optional[bool] = None
    message: Optional[str] = None
    error: Optional[str] = None


class NewGameRequest(BaseModel):
    difficulty: str = Field(default="medium", description="Difficulty: easy, medium, hard, or expert")
    player: str = Field(default="Guest", description="Player name shown on the leaderboard")


class DailyGameRequest(BaseModel):
    player: str = Field(default="Guest", description="Player name shown on the leaderboard")
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD key; defaults to today")


class GameResponse(BaseModel):
    game_id: str
    player: str
    difficulty: str
    grid: list[list[int]]
    original: list[list[int]]
    given_mask: list[list[bool]]
    mistakes: int
    hints_used: int
    elapsed_seconds: int
    score: int
    is_complete: bool
    is_paused: bool
    is_revealing: bool
    has_auto_solved: bool
    is_daily: bool
    daily_key: Optional[str] = None


class MoveRequest(BaseModel):
    row: int
    col: int
    digit: int = Field(..., description="Digit 1-9, or 0 to clear the cell")


class CompletionResponse(BaseModel):
    elapsed_seconds: int
    score: int
    new_best_time: bool
    achievements_unlocked: list[str]
    breakdown: list[dict[str, Any]]


class MoveResponse(BaseModel):
    accepted: bool
    cleared: bool
    completed: bool
    completion: Optional[CompletionResponse] = None
    game: GameResponse


class HintResponse(BaseModel):
    cell: Optional[tuple[int, int]] = None
    completion: Optional[CompletionResponse] = None
    game: GameResponse


class CredentialsRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    username: Optional[str] = None
    password_strength: Optional[str] = None


class PreferencesModel(BaseModel):
    theme: str = Field(default="light", min_length=1, max_length=32)
    sound_enabled: bool = True


app = FastAPI(
    title="Sudoku Puzzle API",
    description="Generate, validate, solve, and play 9x9 Sudoku puzzles.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STORE = LocalStore(settings.store_path)
_GAMES = GameService(_STORE, reveal_delay_seconds=settings.reveal_delay_seconds)

_COUNT_JOBS = CountJobRegistry()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/puzzles", response_model=PuzzleResponse)
def generate(request: PuzzleRequest) -> PuzzleResponse:
    try:
        trace_log: Optional[list[str]] = [] if request.trace else None
        result = create_puzzle(request.difficulty, seed=request.seed, trace=request.trace, trace_log=trace_log)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    puzzle = result["puzzle"]
    return PuzzleResponse(
        difficulty=request.difficulty,
        puzzle=puzzle,
        solution=result["solution"],
        given_mask=result["given_mask"],
        grid_rows=format_grid_rows(puzzle),
        empty_cells=validate_difficulty(request.difficulty),
        trace=trace_log,
    )


@app.post("/validate", response_model=ValidateResponse)
def validate(request: ValidateRequest) -> ValidateResponse:
    try:
        grid = validate_and_normalize_grid(request.grid)
        validate_position(request.row, request.col)
        validate_digit(request.digit)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ValidateResponse(valid=is_valid_placement(grid, request.row, request.col, request.digit))


@app.post("/solve", response_model=SolveResponse)
def solve(request: SolveRequest) -> SolveResponse:
    try:
        if request.trace or request.trace_steps:
            trace_log: list[str] = []
            trace_steps: list[dict[str, Any]] = []
            trace_meta = {"truncated": False}
            solution = solve_puzzle(
                request.grid,
                trace=request.trace,
                trace_log=trace_log,
                trace_steps=trace_steps if request.trace_steps else None,
                trace_meta=trace_meta,
                trace_max_steps=request.trace_max_steps,
            )
            grid_rows = format_grid_rows(solution)
            return SolveResponse(
                solution=solution,
                grid_rows=grid_rows,
                grid_text="\n".join(grid_rows),
                trace=trace_log if request.trace else None,
                trace_steps=trace_steps if request.trace_steps else None,
                trace_truncated=trace_meta["truncated"],
            )

        solution = solve_puzzle(request.grid)
        grid_rows = format_grid_rows(solution)
        return SolveResponse(solution=solution, grid_rows=grid_rows, grid_text="\n".join(grid_rows))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/count", response_model=CountResponse)
def count(request: CountRequest) -> CountResponse:
    try:
        result = count_solutions(
            request.grid,
            mode=request.mode,
            max_seconds=request.max_seconds,
            limit=request.limit,
            sample_paths=request.sample_paths,
        )
        return CountResponse(**result)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/count/jobs/start", response_model=CountJobStartResponse, status_code=status.HTTP_202_ACCEPTED)
def count_start(request: CountRequest) -> CountJobStartResponse:
    return CountJobStartResponse(**_COUNT_JOBS.start(**request.model_dump()))


@app.get("/count/jobs/{job_id}", response_model=CountJobStatusResponse)
def count_status(job_id: str) -> CountJobStatusResponse:
    try:
        return CountJobStatusResponse(**_COUNT_JOBS.status(job_id))
    except CountJobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="count job not found") from exc


@app.post("/count/jobs/{job_id}/cancel", response_model=CountJobStatusResponse)
def count_cancel(job_id: str) -> CountJobStatusResponse:
    try:
        return CountJobStatusResponse(**_COUNT_JOBS.cancel(job_id))
    except CountJobNotFoundError as exc:
        raise HTTPException(status_code=404, detail="count job not found") from exc


@app.post("/games", response_model=GameResponse)
def new_game(request: NewGameRequest) -> GameResponse:
    try:
        return GameResponse(**_GAMES.new_game(request.difficulty, player=request.player))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/games/daily", response_model=GameResponse)
def new_daily_game(request: DailyGameRequest) -> GameResponse:
    try:
        if request.date is not None:
            parse_date_key(request.date)
        return GameResponse(**_GAMES.new_daily_game(player=request.player, day=request.date))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/games/{game_id}", response_model=GameResponse)
def get_game(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.get_game(game_id))


@app.post("/games/{game_id}/moves", response_model=MoveResponse)
def move(game_id: str, request: MoveRequest) -> MoveResponse:
    with _game_errors():
        return MoveResponse(**_GAMES.input_number(game_id, request.row, request.col, request.digit))


@app.post("/games/{game_id}/hint", response_model=HintResponse)
def hint(game_id: str) -> HintResponse:
    with _game_errors():
        return HintResponse(**_GAMES.provide_hint(game_id))


@app.post("/games/{game_id}/reset", response_model=GameResponse)
def reset(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.reset_puzzle(game_id))


@app.post("/games/{game_id}/pause", response_model=GameResponse)
def pause(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.pause(game_id))


@app.post("/games/{game_id}/resume", response_model=GameResponse)
def resume(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.resume(game_id))


@app.post("/games/{game_id}/reveal", response_model=GameResponse, status_code=status.HTTP_202_ACCEPTED)
def reveal(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.start_reveal(game_id))


@app.post("/games/{game_id}/reveal/cancel", response_model=GameResponse)
def reveal_cancel(game_id: str) -> GameResponse:
    with _game_errors():
        return GameResponse(**_GAMES.cancel_reveal(game_id))


@app.get("/leaderboard/{difficulty}")
def leaderboard(difficulty: str) -> list[dict[str, Any]]:
    try:
        validate_difficulty(difficulty)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return normalize_leaderboard(_STORE.get(LEADERBOARD_KEY))[difficulty]


@app.get("/achievements")
def achievements() -> list[dict[str, Any]]:
    return describe_achievements(_STORE.get(ACHIEVEMENTS_KEY, {}))


@app.get("/daily")
def daily(date: Optional[str] = None) -> dict[str, Any]:
    try:
        key = date or date_key()
        parse_date_key(key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return daily_summary(_STORE.get(DAILY_STATS_KEY, {}), key)


@app.post("/users/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(request: CredentialsRequest) -> UserResponse:
    try:
        accounts.create_user(_STORE, request.username, request.password)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("registered user %s", request.username.strip())
    return UserResponse(username=request.username.strip(), password_strength=accounts.password_strength(request.password))


@app.post("/users/login", response_model=UserResponse)
def login(request: CredentialsRequest) -> UserResponse:
    try:
        username = accounts.login(_STORE, request.username, request.password)
    except ValueError as exc:
        logger.info("failed login for %r", request.username)
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return UserResponse(username=username)


@app.post("/users/logout", response_model=UserResponse)
def logout() -> UserResponse:
    accounts.logout(_STORE)
    return UserResponse(username=None)


@app.get("/users/current", response_model=UserResponse)
def current_user() -> UserResponse:
    return UserResponse(username=accounts.current_user(_STORE))


@app.get("/users/{username}/dashboard")
def user_dashboard(username: str) -> dict[str, Any]:
    all_stats = _STORE.get(USER_STATS_KEY, {})
    best_times = _STORE.get(BEST_TIMES_KEY, {})
    return dashboard(username, stats_for_user(all_stats, username), best_times.get(username))


@app.get("/preferences", response_model=PreferencesModel)
def get_preferences() -> PreferencesModel:
    return PreferencesModel(theme=_STORE.get(THEME_KEY, "light"), sound_enabled=_STORE.get(SOUND_ENABLED_KEY, True))


@app.put("/preferences", response_model=PreferencesModel)
def put_preferences(request: PreferencesModel) -> PreferencesModel:
    _STORE.set(THEME_KEY, request.theme)
    _STORE.set(SOUND_ENABLED_KEY, request.sound_enabled)
    return request


@contextmanager
def _game_errors() -> Iterator[None]:
    try:
        yield
    except GameNotFoundError as exc:
        raise HTTPException(status_code=404, detail="game not found") from exc
    except GameNotActiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

