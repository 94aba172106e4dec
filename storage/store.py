import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional


logger = logging.getLogger(__name__)

BEST_TIMES_KEY = "best_times"
USER_STATS_KEY = "user_stats"
ACHIEVEMENTS_KEY = "achievements"
LEADERBOARD_KEY = "leaderboard"
DAILY_STATS_KEY = "daily_stats"
USERS_KEY = "users"
CURRENT_USER_KEY = "current_user"
THEME_KEY = "theme"
SOUND_ENABLED_KEY = "sound_enabled"


class LocalStore:
    """Key-value store of JSON values, kept in one file or only in memory when no path is given."""

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            # hand out copies so callers never mutate stored values in place
            return json.loads(json.dumps(self._data[key]))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = json.loads(json.dumps(value))
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("store file %s is not valid JSON; starting empty", self._path)
            return {}
        if not isinstance(payload, dict):
            logger.warning("store file %s does not hold a JSON object; starting empty", self._path)
            return {}
        return payload

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)
