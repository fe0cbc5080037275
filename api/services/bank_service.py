"""Service layer for the question bank served to the quiz pages."""
from fastapi import HTTPException

from quizcore import config
from quizcore.bank import load_question_bank, questions_to_document
from quizcore.errors import LoadFailure


def load_bank_payload(source: str | None = None) -> dict[str, object]:
    """Load and validate the bank; any failure becomes one 503 response."""
    try:
        questions = load_question_bank(source or config.QUESTION_BANK_SOURCE)
    except LoadFailure as exc:
        raise HTTPException(
            status_code=503, detail="Question bank could not be loaded"
        ) from exc
    payload = questions_to_document(questions)
    payload["count"] = len(questions)
    return payload
