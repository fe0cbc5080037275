import pytest

from quizcore.models import Question
from quizcore.storage import MemoryStore, Storage


def make_question(question_id: int, correct: str = "A") -> Question:
    return Question(
        id=question_id,
        question=f"Question {question_id}?",
        options={key: f"Option {key} of {question_id}" for key in "ABCD"},
        correct_answer=correct,
    )


@pytest.fixture
def bank() -> list[Question]:
    return [make_question(i, "ABCD"[i % 4]) for i in range(1, 21)]


@pytest.fixture
def storage() -> Storage:
    return Storage(MemoryStore())
