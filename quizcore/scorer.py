"""Service layer for scoring a ledger against a question set."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from quizcore.config import PASS_PERCENTAGE
from quizcore.ledger import AnswerLedger
from quizcore.models import (
    OPTION_KEYS,
    CorrectAnswer,
    Question,
    QuestionId,
    Result,
    WrongAnswer,
)

GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (90, "Excellent"),
    (80, "Good"),
    (70, "Fair"),
    (50, "Average"),
)
LOWEST_GRADE = "Weak"

RECOMMENDATIONS: tuple[tuple[float, str], ...] = (
    (90, "Excellent! You have mastered the material."),
    (80, "Well done! Keep practicing to push your score higher."),
    (70, "Quite good! Review the questions you missed to improve."),
    (50, "Passed. Spend more time on your weaker topics."),
)
LOWEST_RECOMMENDATION = "Keep going. Review all of the material again carefully."


def round_half_up(value: float, places: int = 2) -> float:
    """Round the way a score is shown: halves go up, not to even."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round_half_up(100 * part / total, 0))


def grade_for(percentage: float) -> str:
    """Map a percentage onto its grade band, checked from the top down."""
    for threshold, grade in GRADE_BANDS:
        if percentage >= threshold:
            return grade
    return LOWEST_GRADE


def recommendation_for(percentage: float) -> str:
    for threshold, message in RECOMMENDATIONS:
        if percentage >= threshold:
            return message
    return LOWEST_RECOMMENDATION


def _as_ledger(answers: AnswerLedger | Mapping[QuestionId, str]) -> AnswerLedger:
    if isinstance(answers, AnswerLedger):
        return answers
    return AnswerLedger(answers)


def score(
    answers: AnswerLedger | Mapping[QuestionId, str],
    questions: Sequence[Question],
) -> Result:
    """
    Score answers against questions, in question order.

    A question without an answer counts as skipped and is listed among the
    wrong answers with ``skipped=True`` so a review screen can show it.
    """
    ledger = _as_ledger(answers)
    correct_count = 0
    wrong_count = 0
    skipped_count = 0
    wrong_answers: list[WrongAnswer] = []
    correct_answers: list[CorrectAnswer] = []

    for number, question in enumerate(questions, start=1):
        user_answer = ledger.get(question.id)
        if user_answer is None:
            skipped_count += 1
        elif user_answer == question.correct_answer:
            correct_count += 1
            correct_answers.append(
                CorrectAnswer(
                    number=number,
                    question_id=question.id,
                    question=question.question,
                    answer=user_answer,
                )
            )
            continue
        else:
            wrong_count += 1
        wrong_answers.append(
            WrongAnswer(
                number=number,
                question_id=question.id,
                question=question.question,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                options=dict(question.options),
                skipped=user_answer is None,
            )
        )

    total = len(questions)
    percentage = round_half_up(100 * correct_count / total) if total else 0.0
    return Result(
        correct_count=correct_count,
        wrong_count=wrong_count,
        skipped_count=skipped_count,
        total_questions=total,
        percentage=percentage,
        grade=grade_for(percentage),
        passed=total > 0 and percentage >= PASS_PERCENTAGE,
        wrong_answers=tuple(wrong_answers),
        correct_answers=tuple(correct_answers),
    )


@dataclass(frozen=True)
class WrongAnswerAnalysis:
    total: int
    counts_by_option: dict[str, int] = field(default_factory=dict)
    skipped_count: int = 0
    most_frequent_wrong_option: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "countsByOption": dict(self.counts_by_option),
            "skippedCount": self.skipped_count,
            "mostFrequentWrongOption": self.most_frequent_wrong_option,
        }


def analyze_wrong_answers(wrong_answers: Iterable[WrongAnswer]) -> WrongAnswerAnalysis:
    """Count which options were picked wrongly; ties go to the earliest key."""
    items = list(wrong_answers)
    counts = {key: 0 for key in OPTION_KEYS}
    skipped = 0
    for item in items:
        if item.skipped or item.user_answer is None:
            skipped += 1
        elif item.user_answer in counts:
            counts[item.user_answer] += 1

    max_count = max(counts.values())
    most_frequent = None
    if max_count > 0:
        most_frequent = next(key for key in OPTION_KEYS if counts[key] == max_count)

    return WrongAnswerAnalysis(
        total=len(items),
        counts_by_option=counts,
        skipped_count=skipped,
        most_frequent_wrong_option=most_frequent,
    )


@dataclass(frozen=True)
class ScorePrediction:
    predicted: float
    confidence: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "predicted": self.predicted,
            "confidence": self.confidence,
            "message": self.message,
        }


def predict_score(
    answers: AnswerLedger | Mapping[QuestionId, str],
    questions: Sequence[Question],
) -> ScorePrediction:
    """Project the final percentage from the questions answered so far."""
    ledger = _as_ledger(answers)
    answered = 0
    correct = 0
    for question in questions:
        user_answer = ledger.get(question.id)
        if user_answer is None:
            continue
        answered += 1
        if user_answer == question.correct_answer:
            correct += 1

    if answered == 0:
        return ScorePrediction(
            predicted=0, confidence="Low", message="No data to predict yet"
        )

    if answered >= 10:
        confidence = "High"
    elif answered >= 5:
        confidence = "Medium"
    else:
        confidence = "Low"
    return ScorePrediction(
        predicted=round_half_up(100 * correct / answered),
        confidence=confidence,
        message=f"Based on {answered} answered questions",
    )


def generate_report(result: Result) -> dict[str, Any]:
    """Build a review report: summary, rates, wrong-answer analysis, advice."""
    total = result.total_questions
    return {
        "summary": {
            "totalQuestions": total,
            "correctCount": result.correct_count,
            "wrongCount": result.wrong_count,
            "skippedCount": result.skipped_count,
            "percentage": result.percentage,
            "grade": result.grade,
            "passed": result.passed,
        },
        "details": {
            "correctRate": _percent(result.correct_count, total),
            "wrongRate": _percent(result.wrong_count, total),
            "skipRate": _percent(result.skipped_count, total),
        },
        "analysis": analyze_wrong_answers(result.wrong_answers).to_dict(),
        "recommendation": recommendation_for(result.percentage),
    }


def compare_results(first: Result, second: Result) -> dict[str, Any]:
    """Compare a later attempt (``second``) against an earlier one."""
    difference = round_half_up(second.percentage - first.percentage)
    improvement = None
    if first.percentage:
        improvement = round_half_up(difference / first.percentage * 100)
    return {
        "scoreDifference": difference,
        "correctDifference": second.correct_count - first.correct_count,
        "improved": second.percentage > first.percentage,
        "improvementPercentage": improvement,
    }


def average_time_per_question(total_seconds: float, question_count: int) -> int:
    if question_count <= 0:
        return 0
    return int(round_half_up(total_seconds / question_count, 0))


def format_result(result: Result) -> str:
    return (
        f"{result.correct_count}/{result.total_questions} correct "
        f"({result.percentage:g}%) - {result.grade}"
    )
