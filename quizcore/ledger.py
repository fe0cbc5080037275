"""Answer ledger: which option the user picked for each question."""
from __future__ import annotations

import json
import logging
from typing import Iterator, Mapping

from quizcore.models import OPTION_KEYS, QuestionId

log = logging.getLogger(__name__)


def _key(question_id: QuestionId) -> str:
    # Ids round-trip through JSON object keys, which are always strings.
    return str(question_id)


class AnswerLedger:
    """Mapping from question id to the chosen option key."""

    def __init__(self, answers: Mapping[QuestionId, str] | None = None):
        self._answers: dict[str, str] = {}
        for question_id, option in (answers or {}).items():
            self.record(question_id, option)

    def record(self, question_id: QuestionId, option_key: str) -> None:
        """Set the answer for a question, replacing any earlier one."""
        if option_key not in OPTION_KEYS:
            raise ValueError(f"Invalid option {option_key!r}")
        self._answers[_key(question_id)] = option_key

    def get(self, question_id: QuestionId) -> str | None:
        return self._answers.get(_key(question_id))

    def remove(self, question_id: QuestionId) -> None:
        self._answers.pop(_key(question_id), None)

    def clear(self) -> None:
        self._answers.clear()

    def __contains__(self, question_id: object) -> bool:
        return _key(question_id) in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnswerLedger):
            return NotImplemented
        return self._answers == other._answers

    def __repr__(self) -> str:
        return f"AnswerLedger({self._answers!r})"

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    def as_dict(self) -> dict[str, str]:
        return dict(self._answers)

    def completion_rate(self, total_questions: int) -> int:
        """Whole-number percentage of questions answered."""
        if total_questions <= 0:
            return 0
        return int(100 * self.answered_count / total_questions + 0.5)

    def serialize(self) -> str:
        return json.dumps(self._answers, separators=(",", ":"))

    @classmethod
    def restore(cls, blob: str | bytes | None) -> "AnswerLedger":
        """Rebuild a ledger from ``serialize`` output; bad input gives an empty one."""
        ledger = cls()
        if not blob:
            return ledger
        try:
            data = json.loads(blob)
        except (TypeError, ValueError) as exc:
            log.error("Error restoring answers: %s", exc)
            return ledger
        if not isinstance(data, dict):
            log.error("Error restoring answers: expected an object, got %s", type(data).__name__)
            return ledger
        for question_id, option in data.items():
            if option in OPTION_KEYS:
                ledger.record(question_id, option)
            else:
                log.warning("Dropping invalid answer %r for question %s", option, question_id)
        return ledger
