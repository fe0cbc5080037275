"""Question bank loading and validation."""
from __future__ import annotations

import logging
from pathlib import Path

import requests
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from quizcore import config
from quizcore.errors import LoadFailure
from quizcore.models import OPTION_KEYS, Question
from quizcore.utils import read_json_file, write_json_file

log = logging.getLogger(__name__)


class QuestionPayload(BaseModel):
    """One question record as it appears in the bank document."""

    id: int | str
    question: str = Field(..., min_length=1)
    options: dict[str, str]
    correctAnswer: str

    @field_validator("options")
    @classmethod
    def _known_option_keys(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(value) - set(OPTION_KEYS))
        if unknown:
            raise ValueError(f"unknown option keys: {', '.join(unknown)}")
        if not value:
            raise ValueError("options are required")
        return value

    @model_validator(mode="after")
    def _correct_answer_is_an_option(self) -> "QuestionPayload":
        if self.correctAnswer not in self.options:
            raise ValueError(f"correctAnswer {self.correctAnswer!r} is not an option")
        return self


class QuestionBankPayload(BaseModel):
    """The bank document: ``{"questions": [...]}``."""

    questions: list[QuestionPayload] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self) -> "QuestionBankPayload":
        seen: set[str] = set()
        for item in self.questions:
            key = str(item.id)
            if key in seen:
                raise ValueError(f"duplicate question id {item.id!r}")
            seen.add(key)
        return self


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _fetch_document(source: str, timeout: float) -> object:
    if _is_url(source):
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
            return response.json()
        # requests' JSONDecodeError is both a ValueError and a RequestException
        except ValueError as exc:
            raise LoadFailure(source, f"invalid JSON: {exc}") from exc
        except requests.RequestException as exc:
            raise LoadFailure(source, str(exc)) from exc

    try:
        document = read_json_file(Path(source), None)
    except OSError as exc:
        raise LoadFailure(source, str(exc)) from exc
    except ValueError as exc:
        raise LoadFailure(source, f"invalid JSON: {exc}") from exc
    if document is None:
        raise LoadFailure(source, "file not found")
    return document


def parse_question_bank(document: object, source: str = "<memory>") -> list[Question]:
    """Validate a decoded bank document and turn it into questions."""
    try:
        payload = QuestionBankPayload.model_validate(document)
    except ValidationError as exc:
        raise LoadFailure(source, f"malformed question bank: {exc.error_count()} errors") from exc
    return [Question.from_dict(item.model_dump()) for item in payload.questions]


def load_question_bank(
    source: str | Path | None = None,
    timeout: float | None = None,
) -> list[Question]:
    """
    Read the question bank from a local path or an http(s) URL.
    One attempt only; any problem surfaces as a single LoadFailure.
    """
    source = str(source or config.QUESTION_BANK_SOURCE)
    timeout = config.QUESTION_BANK_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        questions = parse_question_bank(_fetch_document(source, timeout), source)
    except LoadFailure as exc:
        log.error("Error loading questions: %s", exc.reason)
        raise
    log.info("Loaded %d questions from %s", len(questions), source)
    return questions


def questions_to_document(questions: list[Question]) -> dict[str, object]:
    return {"questions": [question.to_dict() for question in questions]}


def save_question_bank(path: Path, questions: list[Question]) -> None:
    """Write questions as a bank document that ``load_question_bank`` accepts."""
    write_json_file(Path(path), questions_to_document(questions))
