"""
Report Routes (보호됨).

- POST /api/reports → 201 {report}
- POST /api/reports/score-quiz → MCQ 채점 + summary markdown
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from src.app.deps import CurrentUser, get_account_service, get_current_user
from src.app.errors import raise_api_error
from src.app.services.accounts import AccountService
from src.core.scoring import build_quiz_summary, score_quiz
from src.domain.schemas import CamelModel, MCQResult, Report

api_router = APIRouter()


class SaveReportRequest(CamelModel):
    report: Report


class ScoreQuizRequest(CamelModel):
    role: str = ""
    results: list[MCQResult] = []


@api_router.post("", status_code=status.HTTP_201_CREATED)
async def save_report(
    body: SaveReportRequest,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    try:
        report = await accounts.save_report(current_user.id, body.report)
    except Exception as e:
        raise_api_error(e, "Failed to save report.")
    return {"report": report.to_json()}


@api_router.post("/score-quiz")
async def score_quiz_results(
    body: ScoreQuizRequest,
    current_user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    """채점만 수행 (저장은 클라이언트가 summary로 POST /api/reports)."""
    score = score_quiz(body.results)
    return {
        "score": score.to_dict(),
        "summary": build_quiz_summary(body.role, score),
    }
