from typing import Optional

from pydantic import BaseModel, Field


class GameNotActiveError(ValueError):
    """Raised when an action targets a game that is finished, paused, or being revealed."""


class GameState(BaseModel):
    game_id: str
    player: str = "Guest"
    difficulty: str
    solution: list[list[int]]
    original: list[list[int]]
    grid: list[list[int]]
    mistakes: int = 0
    hints_used: int = 0
    started_at: float
    paused_at: Optional[float] = None
    paused_seconds: float = 0.0
    finished_at: Optional[float] = None
    is_complete: bool = False
    is_paused: bool = False
    is_revealing: bool = False
    has_auto_solved: bool = False
    is_daily: bool = False
    daily_key: Optional[str] = Field(default=None, description="YYYY-MM-DD key of the daily challenge")
    final_score: Optional[int] = None
