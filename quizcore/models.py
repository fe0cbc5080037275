from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


OPTION_KEYS: Tuple[str, ...] = ("A", "B", "C", "D")

QuestionId = int | str


@dataclass(frozen=True)
class Question:
    id: QuestionId
    question: str
    options: Dict[str, str]
    correct_answer: str  # one of OPTION_KEYS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            id=data["id"],
            question=str(data.get("question", "")),
            options={str(k): str(v) for k, v in dict(data.get("options", {})).items()},
            correct_answer=str(data["correctAnswer"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": dict(self.options),
            "correctAnswer": self.correct_answer,
        }


@dataclass(frozen=True)
class WrongAnswer:
    number: int  # 1-based position in the scored set
    question_id: QuestionId
    question: str
    user_answer: str | None  # None when unanswered
    correct_answer: str
    options: Dict[str, str]
    skipped: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "questionId": self.question_id,
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "options": dict(self.options),
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class CorrectAnswer:
    number: int
    question_id: QuestionId
    question: str
    answer: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "questionId": self.question_id,
            "question": self.question,
            "answer": self.answer,
        }


@dataclass(frozen=True)
class Result:
    correct_count: int
    wrong_count: int
    skipped_count: int
    total_questions: int
    percentage: float
    grade: str
    passed: bool
    wrong_answers: Tuple[WrongAnswer, ...] = ()
    correct_answers: Tuple[CorrectAnswer, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correctCount": self.correct_count,
            "wrongCount": self.wrong_count,
            "skippedCount": self.skipped_count,
            "totalQuestions": self.total_questions,
            "percentage": self.percentage,
            "grade": self.grade,
            "passed": self.passed,
            "wrongAnswers": [item.to_dict() for item in self.wrong_answers],
            "correctAnswers": [item.to_dict() for item in self.correct_answers],
        }


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    score: float
    passed: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            date=str(data.get("date", "")),
            score=float(data.get("score", 0)),
            passed=bool(data.get("passed", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "score": self.score, "passed": self.passed}


@dataclass
class UserStats:
    total_exams: int = 0
    total_passed: int = 0
    total_failed: int = 0
    best_score: float = 0
    average_score: float = 0
    exam_history: List[HistoryEntry] = field(default_factory=list)  # newest first

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserStats":
        history = data.get("examHistory") or []
        return cls(
            total_exams=int(data.get("totalExams", 0)),
            total_passed=int(data.get("totalPassed", 0)),
            total_failed=int(data.get("totalFailed", 0)),
            best_score=float(data.get("bestScore", 0)),
            average_score=float(data.get("averageScore", 0)),
            exam_history=[
                HistoryEntry.from_dict(item) for item in history if isinstance(item, dict)
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalExams": self.total_exams,
            "totalPassed": self.total_passed,
            "totalFailed": self.total_failed,
            "bestScore": self.best_score,
            "averageScore": self.average_score,
            "examHistory": [entry.to_dict() for entry in self.exam_history],
        }


@dataclass
class ExamSession:
    questions: List[Question]
    start_time: int  # epoch milliseconds
    time_left_seconds: int
