"""User statistics: folding exam results into a running history."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from quizcore.config import HISTORY_LIMIT
from quizcore.models import HistoryEntry, Result, UserStats
from quizcore.scorer import round_half_up
from quizcore.storage import Storage, StorageKeys
from quizcore.utils import utc_now

TREND_THRESHOLD = 5


def update_stats(
    stats: UserStats,
    score: float,
    passed: bool,
    date: str | None = None,
    history_limit: int = HISTORY_LIMIT,
) -> UserStats:
    """Return new stats with one more exam folded in; ``stats`` is not modified."""
    entry = HistoryEntry(date=date or utc_now(), score=score, passed=passed)
    # Average over the retained history plus the new score, before truncating.
    scores = [item.score for item in stats.exam_history] + [score]
    return UserStats(
        total_exams=stats.total_exams + 1,
        total_passed=stats.total_passed + (1 if passed else 0),
        total_failed=stats.total_failed + (0 if passed else 1),
        best_score=max(stats.best_score, score),
        average_score=sum(scores) / len(scores),
        exam_history=[entry, *stats.exam_history][:history_limit],
    )


@dataclass(frozen=True)
class Trend:
    trend: str  # improving | declining | stable | neutral
    message: str
    difference: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def _score_of(entry: HistoryEntry | dict[str, Any]) -> float:
    if isinstance(entry, dict):
        return float(entry.get("score", entry.get("percentage", 0)))
    return float(entry.score)


def trend(history: Sequence[HistoryEntry | dict[str, Any]]) -> Trend:
    """Compare the two most recent scores (history is newest first)."""
    if len(history) < 2:
        return Trend(trend="neutral", message="Not enough data to analyze")

    difference = _score_of(history[0]) - _score_of(history[1])
    if difference > TREND_THRESHOLD:
        return Trend(
            trend="improving",
            message=f"Up {round(difference)}% from last time",
            difference=difference,
        )
    if difference < -TREND_THRESHOLD:
        return Trend(
            trend="declining",
            message=f"Down {round(abs(difference))}% from last time",
            difference=difference,
        )
    return Trend(trend="stable", message="Score is stable", difference=difference)


def load_user_stats(storage: Storage) -> UserStats:
    data = storage.load(StorageKeys.USER_STATS, None)
    if not isinstance(data, dict):
        return UserStats()
    try:
        return UserStats.from_dict(data)
    except (TypeError, ValueError):
        return UserStats()


def save_user_stats(storage: Storage, stats: UserStats) -> bool:
    return storage.save(StorageKeys.USER_STATS, stats.to_dict())


def record_exam_result(
    storage: Storage, score: float, passed: bool, date: str | None = None
) -> UserStats:
    """Read, update and write back the stored stats in one step."""
    stats = update_stats(load_user_stats(storage), score, passed, date)
    save_user_stats(storage, stats)
    return stats


def calculate_average(results: Iterable[Result]) -> float:
    scores = [result.percentage for result in results]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def find_best_score(results: Iterable[Result]) -> float:
    return max((result.percentage for result in results), default=0)


def find_worst_score(results: Iterable[Result]) -> float:
    return min((result.percentage for result in results), default=0)
