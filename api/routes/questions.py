"""Question bank endpoint."""
from fastapi import APIRouter

from api.models import QuestionBankResponse
from api.services.bank_service import load_bank_payload

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.get("", response_model=QuestionBankResponse)
def get_questions() -> dict[str, object]:
    """Return the whole question bank for practice and exam pages."""
    return load_bank_payload()
