"""Scoring and state core of the quiz trainer."""
from quizcore.bank import load_question_bank, parse_question_bank
from quizcore.errors import LoadFailure, PersistenceFailure, QuizError
from quizcore.ledger import AnswerLedger
from quizcore.models import (
    OPTION_KEYS,
    CorrectAnswer,
    ExamSession,
    HistoryEntry,
    Question,
    Result,
    UserStats,
    WrongAnswer,
)
from quizcore.sampler import (
    sample,
    sample_excluding,
    seeded_random,
    seeded_shuffle,
    shuffle,
    shuffle_options,
)
from quizcore.scorer import analyze_wrong_answers, grade_for, predict_score, score
from quizcore.session import QuizSession, SessionMode, create_session, exam_mode, practice_mode
from quizcore.stats import record_exam_result, trend, update_stats
from quizcore.storage import JsonFileStore, MemoryStore, Storage, StorageKeys, create_store
from quizcore.timer import (
    CountdownTimer,
    ManualTickSource,
    ThreadTickSource,
    TimerState,
    format_time,
    format_time_long,
    load_timer_state,
    save_timer_state,
)

__all__ = [
    "load_question_bank",
    "parse_question_bank",
    "LoadFailure",
    "PersistenceFailure",
    "QuizError",
    "AnswerLedger",
    "OPTION_KEYS",
    "CorrectAnswer",
    "ExamSession",
    "HistoryEntry",
    "Question",
    "Result",
    "UserStats",
    "WrongAnswer",
    "sample",
    "sample_excluding",
    "seeded_random",
    "seeded_shuffle",
    "shuffle",
    "shuffle_options",
    "analyze_wrong_answers",
    "grade_for",
    "predict_score",
    "score",
    "QuizSession",
    "SessionMode",
    "create_session",
    "exam_mode",
    "practice_mode",
    "record_exam_result",
    "trend",
    "update_stats",
    "JsonFileStore",
    "MemoryStore",
    "Storage",
    "StorageKeys",
    "create_store",
    "CountdownTimer",
    "ManualTickSource",
    "ThreadTickSource",
    "TimerState",
    "format_time",
    "format_time_long",
    "load_timer_state",
    "save_timer_state",
]
