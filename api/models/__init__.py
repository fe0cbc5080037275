"""Pydantic models."""
from api.models.questions import QuestionBankResponse, QuestionOut

__all__ = ["QuestionBankResponse", "QuestionOut"]
