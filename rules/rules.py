MIN_VALUE = 1
MAX_VALUE = 9
EMPTY = 0

GRID_SIZE = 9
BOX_SIZE = 3
CELL_COUNT = GRID_SIZE * GRID_SIZE
DIAGONAL_BOX_ORIGINS = [(0, 0), (3, 3), (6, 6)]

DIFFICULTIES = ["easy", "medium", "hard", "expert"]

# cells removed from the solved grid
DIFFICULTY_LEVELS = {
    "easy": 40,
    "medium": 50,
    "hard": 60,
    "expert": 70,
}

DIFFICULTY_MULTIPLIERS = {
    "easy": 1.0,
    "medium": 1.5,
    "hard": 2.0,
    "expert": 3.0,
}

# seconds
TIME_TARGETS = {
    "easy": 600,
    "medium": 900,
    "hard": 1800,
    "expert": 3600,
}

BASE_SCORE = 1000
MAX_TIME_BONUS = 500
MISTAKE_PENALTY = 50
HINT_PENALTY = 100
AUTO_SOLVE_SCORE_RATIO = 0.2
DAILY_BONUS_MULTIPLIER = 1.5

LEADERBOARD_SIZE = 20
DAILY_STREAK_LOOKBACK_DAYS = 365
REVEAL_DELAY_SECONDS = 0.04
