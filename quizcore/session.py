"""
Session controller shared by practice and exam modes.

Practice uses the whole bank with no clock and locks each answer once given.
Exam samples a subset, runs a countdown and allows changing answers until the
exam is submitted by hand or by the clock.
"""
from __future__ import annotations

import enum
import functools
import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from quizcore import config
from quizcore.ledger import AnswerLedger
from quizcore.models import ExamSession, Question, QuestionId, Result, UserStats
from quizcore.sampler import sample
from quizcore.scorer import ScorePrediction, predict_score, score
from quizcore.stats import record_exam_result
from quizcore.storage import Storage, StorageKeys
from quizcore.timer import (
    CountdownTimer,
    ManualTickSource,
    TickHandle,
    TickSource,
    ThreadTickSource,
    load_timer_state,
    save_timer_state,
    should_warn,
)
from quizcore.utils import now_ms

log = logging.getLogger(__name__)


class QuestionSource(str, enum.Enum):
    FULL_BANK = "full_bank"
    SAMPLED_SUBSET = "sampled_subset"


@dataclass(frozen=True)
class SessionMode:
    name: str
    has_timer: bool
    allow_reanswer: bool
    question_source: QuestionSource
    answers_key: str
    question_count: int | None = None
    duration_seconds: int = 0
    records_stats: bool = False


def practice_mode() -> SessionMode:
    return SessionMode(
        name="practice",
        has_timer=False,
        allow_reanswer=False,
        question_source=QuestionSource.FULL_BANK,
        answers_key=StorageKeys.PRACTICE_PROGRESS,
    )


def exam_mode(
    question_count: int = config.EXAM_QUESTION_COUNT,
    duration_seconds: int = config.EXAM_DURATION_SECONDS,
) -> SessionMode:
    return SessionMode(
        name="exam",
        has_timer=True,
        allow_reanswer=True,
        question_source=QuestionSource.SAMPLED_SUBSET,
        answers_key=StorageKeys.EXAM_ANSWERS,
        question_count=question_count,
        duration_seconds=duration_seconds,
        records_stats=True,
    )


@dataclass(frozen=True)
class Progress:
    answered: int
    remaining: int
    total: int
    completion_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "answered": self.answered,
            "remaining": self.remaining,
            "total": self.total,
            "completionRate": self.completion_rate,
        }


class _LockedTicks:
    """Runs every callback scheduled on ``source`` while holding ``lock``."""

    def __init__(self, source: TickSource, lock: threading.RLock):
        self.source = source
        self.lock = lock

    def schedule(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        def locked() -> None:
            with self.lock:
                callback()

        return self.source.schedule(interval, locked)


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class QuizSession:
    """
    One practice or exam attempt over a question bank.

    Host calls and tick callbacks share one re-entrant lock, so a tick never
    runs halfway through ``answer`` or ``submit``.
    """

    def __init__(
        self,
        mode: SessionMode,
        bank: Sequence[Question],
        storage: Storage | None = None,
        tick_source: TickSource | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_complete: Callable[[Result], None] | None = None,
        on_warning: Callable[[int], None] | None = None,
        warning_threshold: int = config.TIME_WARNING_SECONDS,
        auto_save_interval: int = config.AUTO_SAVE_INTERVAL_SECONDS,
    ):
        self.mode = mode
        self.bank = list(bank)
        self.storage = storage or Storage()
        self.tick_source = tick_source or ThreadTickSource(f"{mode.name}_session")
        self.clock = clock
        self.rng = rng
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.on_warning = on_warning
        self.warning_threshold = warning_threshold
        self.auto_save_interval = auto_save_interval

        self.questions: list[Question] = []
        self.ledger = AnswerLedger()
        self.current_index = 0
        self.exam: ExamSession | None = None
        self.timer: CountdownTimer | None = None
        self.result: Result | None = None
        self.stats: UserStats | None = None
        self._warned = False
        self._auto_save: TickHandle | None = None
        self._lock = threading.RLock()
        self._ticks = _LockedTicks(self.tick_source, self._lock)
        self._started = False

    # ------------------------------------------------------------------ setup

    @_locked
    def start(self) -> None:
        """Pick the questions, restore saved answers and start the clock."""
        if self._started:
            log.warning("%s session already started", self.mode.name)
            return
        self._started = True
        self.ledger = AnswerLedger.restore(self.storage.load_raw(self.mode.answers_key))

        if self.mode.question_source is QuestionSource.FULL_BANK:
            self.questions = list(self.bank)
        else:
            self.questions = self._restore_or_sample_questions()

        known = {str(question.id) for question in self.questions}
        for question_id in list(self.ledger):
            if question_id not in known:
                self.ledger.remove(question_id)
        if len(self.ledger):
            log.info("Loaded %d saved answers", len(self.ledger))

        log.info(
            "%s session started with %d questions", self.mode.name, len(self.questions)
        )
        if self.auto_save_interval > 0:
            self._auto_save = self._ticks.schedule(
                self.auto_save_interval, self.auto_save
            )
        # A restored exam whose time already ran out submits right here.
        if self.mode.has_timer:
            self._start_timer()

    def _restore_or_sample_questions(self) -> list[Question]:
        saved = self.storage.load(StorageKeys.EXAM_QUESTIONS, None)
        start_time = self.storage.load(StorageKeys.EXAM_START_TIME, None)
        questions: list[Question] = []
        if isinstance(saved, list) and saved:
            try:
                questions = [Question.from_dict(item) for item in saved]
            except (KeyError, TypeError, ValueError) as exc:
                log.error("Error restoring exam questions: %s", exc)
                questions = []

        if questions and isinstance(start_time, int):
            self.exam = ExamSession(
                questions=questions,
                start_time=start_time,
                time_left_seconds=self.mode.duration_seconds,
            )
            log.info("Resuming exam started at %d", start_time)
            return questions

        # Stale answers from another subset must not leak into a new exam.
        self.storage.clear_exam_data()
        self.ledger.clear()
        count = self.mode.question_count or len(self.bank)
        questions = sample(self.bank, count, self.rng)
        self.exam = ExamSession(
            questions=questions,
            start_time=self.clock(),
            time_left_seconds=self.mode.duration_seconds,
        )
        self.storage.save(
            StorageKeys.EXAM_QUESTIONS, [question.to_dict() for question in questions]
        )
        self.storage.save(StorageKeys.EXAM_START_TIME, self.exam.start_time)
        return questions

    def _start_timer(self) -> None:
        time_left = self.mode.duration_seconds
        snapshot = load_timer_state(self.storage, StorageKeys.EXAM_TIME_LEFT, self.clock())
        if snapshot is not None:
            time_left = min(snapshot.time_left, self.mode.duration_seconds)

        self.timer = CountdownTimer(
            self.mode.duration_seconds,
            on_tick=self._handle_tick,
            on_complete=self._handle_time_up,
            tick_source=self._ticks,
        )
        self.timer.time_left = time_left
        if self.exam is not None:
            self.exam.time_left_seconds = time_left
        self._persist_time_left()
        self.timer.start()

    # ------------------------------------------------------------- answering

    @property
    def is_submitted(self) -> bool:
        return self.result is not None

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def find_question(self, question_id: QuestionId) -> Question | None:
        key = str(question_id)
        return next((q for q in self.questions if str(q.id) == key), None)

    @_locked
    def answer(self, question_id: QuestionId, option_key: str) -> bool:
        """
        Record an answer. Returns False when the answer is not accepted:
        the session is over, the question is not part of it, or the mode
        locks answers that were already given.
        """
        if self.is_submitted:
            log.warning("Answer ignored: %s session already submitted", self.mode.name)
            return False
        if self.find_question(question_id) is None:
            log.warning("Answer ignored: question %s is not in this session", question_id)
            return False
        if not self.mode.allow_reanswer and question_id in self.ledger:
            return False
        self.ledger.record(question_id, option_key)
        self.auto_save()
        return True

    def is_correct(self, question_id: QuestionId) -> bool | None:
        """Whether the recorded answer is right; None while unanswered."""
        question = self.find_question(question_id)
        chosen = self.ledger.get(question_id)
        if question is None or chosen is None:
            return None
        return chosen == question.correct_answer

    # ------------------------------------------------------------ navigation

    def go_to(self, index: int) -> bool:
        if 0 <= index < len(self.questions):
            self.current_index = index
            return True
        return False

    def next(self) -> bool:
        return self.go_to(self.current_index + 1)

    def previous(self) -> bool:
        return self.go_to(self.current_index - 1)

    # -------------------------------------------------------------- progress

    @_locked
    def progress(self) -> Progress:
        total = len(self.questions)
        answered = len(self.ledger)
        return Progress(
            answered=answered,
            remaining=total - answered,
            total=total,
            completion_rate=self.ledger.completion_rate(total),
        )

    def predict(self) -> ScorePrediction:
        return predict_score(self.ledger, self.questions)

    @property
    def time_left(self) -> int | None:
        return self.timer.time_left if self.timer else None

    @property
    def time_spent_seconds(self) -> int:
        if self.timer is None:
            return 0
        return max(0, self.mode.duration_seconds - self.timer.time_left)

    @_locked
    def auto_save(self) -> bool:
        """Write the whole ledger again; safe to call any number of times."""
        if self.is_submitted:
            return False
        return self.storage.save_raw(self.mode.answers_key, self.ledger.serialize())

    # ------------------------------------------------------------------ timer

    def _persist_time_left(self) -> None:
        if self.timer is not None:
            save_timer_state(
                self.storage, StorageKeys.EXAM_TIME_LEFT, self.timer.time_left, self.clock()
            )

    def _handle_tick(self, time_left: int) -> None:
        if self.exam is not None:
            self.exam.time_left_seconds = time_left
        if time_left > 0 and not self.is_submitted:
            self._persist_time_left()
        if not self._warned and should_warn(time_left, self.warning_threshold):
            self._warned = True
            log.warning("%d seconds left in the exam", time_left)
            if self.on_warning:
                self.on_warning(time_left)
        if self.on_tick:
            self.on_tick(time_left)

    def _handle_time_up(self) -> None:
        if self.is_submitted:
            return
        log.info("Time is up; submitting the exam")
        result = self.submit()
        if self.on_complete:
            self.on_complete(result)

    # ------------------------------------------------------------ lifecycle

    @_locked
    def submit(self) -> Result:
        """Score the session. Calling it again returns the same result."""
        if self.result is not None:
            return self.result
        self._cancel_auto_save()
        if self.timer is not None:
            self.timer.stop()

        self.result = score(self.ledger, self.questions)
        log.info(
            "%s submitted: %d/%d correct (%s%%)",
            self.mode.name,
            self.result.correct_count,
            self.result.total_questions,
            self.result.percentage,
        )
        if self.mode.records_stats:
            self.stats = record_exam_result(
                self.storage, self.result.percentage, self.result.passed
            )
        if self.mode.question_source is QuestionSource.SAMPLED_SUBSET:
            self.storage.clear_exam_data()
        return self.result

    @_locked
    def reset(self) -> None:
        """Forget all answers and persisted state for this mode and start over."""
        self.close()
        self.ledger.clear()
        self.storage.remove(self.mode.answers_key)
        if self.mode.question_source is QuestionSource.SAMPLED_SUBSET:
            self.storage.clear_exam_data()
        self.current_index = 0
        self.result = None
        self.stats = None
        self.exam = None
        self.timer = None
        self._warned = False
        self._started = False

    @_locked
    def close(self) -> None:
        """Stop background work without submitting (the page is going away)."""
        self._cancel_auto_save()
        if self.timer is not None:
            if not self.is_submitted:
                self._persist_time_left()
            self.timer.stop()

    def _cancel_auto_save(self) -> None:
        if self._auto_save is not None:
            self._auto_save.cancel()
            self._auto_save = None


def create_session(
    mode_name: str,
    bank: Sequence[Question],
    storage: Storage | None = None,
    manual_ticks: bool = False,
    **kwargs: Any,
) -> QuizSession:
    """Build a practice or exam session by name."""
    if mode_name == "practice":
        mode = practice_mode()
    elif mode_name == "exam":
        mode = exam_mode()
    else:
        raise ValueError(f"Unknown session mode: {mode_name}")
    if manual_ticks:
        kwargs.setdefault("tick_source", ManualTickSource())
    return QuizSession(mode, bank, storage, **kwargs)
