"""Question bank response models."""
from pydantic import BaseModel


class QuestionOut(BaseModel):
    """One question as sent to the browser."""

    id: int | str
    question: str
    options: dict[str, str]
    correctAnswer: str


class QuestionBankResponse(BaseModel):
    """The bank document plus its size."""

    questions: list[QuestionOut]
    count: int
