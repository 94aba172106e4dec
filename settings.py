from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from rules.rules import REVEAL_DELAY_SECONDS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    store_path: Optional[str] = None
    cors_origins: list[str] = ["http://127.0.0.1:5173", "http://localhost:5173"]
    reveal_delay_seconds: float = REVEAL_DELAY_SECONDS
    count_max_seconds: float = 2.0
    log_level: LogLevel = "INFO"
    model_config = SettingsConfigDict(env_prefix="SUDOKU_")


settings = Settings()
