"""Quiz configuration and constants."""
import os
import sys
from pathlib import Path


def _resource_path(relative: str) -> Path:
    """Get path to resource, works for PyInstaller bundles."""
    if getattr(sys, "frozen", False):
        base_dir = Path(sys._MEIPASS)
    else:
        base_dir = Path(__file__).resolve().parent.parent
    return base_dir / relative


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Exam and practice modes
EXAM_QUESTION_COUNT = _parse_int_env("QUIZ_EXAM_QUESTION_COUNT", 70)
EXAM_DURATION_SECONDS = _parse_int_env("QUIZ_EXAM_DURATION_SECONDS", 60 * 60)
TIME_WARNING_SECONDS = _parse_int_env("QUIZ_TIME_WARNING_SECONDS", 5 * 60)
AUTO_SAVE_INTERVAL_SECONDS = _parse_int_env("QUIZ_AUTO_SAVE_SECONDS", 30)

# Scoring
PASS_PERCENTAGE = 50
HISTORY_LIMIT = _parse_int_env("QUIZ_HISTORY_LIMIT", 10)

# Logging: level name for the console handler
LOG_LEVEL = os.environ.get("QUIZ_LOG_LEVEL", "INFO")

# Directories
DATA_DIR = Path(os.environ.get("QUIZ_DATA_DIR", Path.cwd() / "data"))
STORAGE_DIR = DATA_DIR / "storage"
STATIC_DIR = _resource_path("static")

# Question bank: local path or http(s) URL
QUESTION_BANK_SOURCE = os.environ.get(
    "QUIZ_QUESTION_BANK", str(DATA_DIR / "questions.json")
)
QUESTION_BANK_TIMEOUT_SECONDS = _parse_int_env("QUIZ_QUESTION_BANK_TIMEOUT", 30)

# Persistence: "json" | "sqlite" | "memory"
STORAGE_BACKEND = os.environ.get("QUIZ_STORAGE_BACKEND", "json")
DATABASE_URL = os.environ.get(
    "QUIZ_DATABASE_URL", f"sqlite:///{DATA_DIR / 'quiz.db'}"
)
