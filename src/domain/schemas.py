"""
Data schemas for the interview backend.

규칙:
- JSON(클라이언트)은 camelCase, DB 컬럼은 snake_case
- 입력은 alias(camelCase)/필드명(snake_case) 둘 다 허용, 출력은 항상 alias
- Report는 정확히 한 User에 속함 (reports.user_id)
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .constants import (
    MCQ_OPTION_COUNT,
    DsaDifficulty,
    DsaTopic,
    ExperienceLevel,
    InterviewMode,
    InterviewRound,
    PracticeDrillType,
)


class CamelModel(BaseModel):
    """camelCase alias 공통 베이스."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self, **kwargs: Any) -> dict[str, Any]:
        """응답/DB 저장용 dict (camelCase, JSON 호환 타입)."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)


# =============================================================================
# Interview Configuration / Conversation
# =============================================================================

class ChatMessage(CamelModel):
    """대화 한 턴. role은 "user" 또는 "model"."""
    role: str = "user"
    content: str = ""


class InterviewConfig(CamelModel):
    """
    세션 설정.

    mode에 따라 사용하는 필드가 다름:
    - Full Interview: level, round, resume_content, company_style
    - Practice Drill: drill_type
    - Coding Challenge: language, dsa_topic, dsa_difficulty
    """
    mode: InterviewMode
    role: str = ""

    # Full Interview
    level: ExperienceLevel | None = None
    round: InterviewRound | None = None
    resume_content: str | None = None
    company_style: str | None = None

    # Practice Drill
    drill_type: PracticeDrillType | None = None

    # Coding Challenge
    language: str | None = None
    dsa_topic: DsaTopic | None = None
    dsa_difficulty: DsaDifficulty | None = None


# =============================================================================
# Quiz / Coding Challenge
# =============================================================================

class MCQQuestion(CamelModel):
    """객관식 문제. 선택지는 정확히 MCQ_OPTION_COUNT개, 정답은 선택지 중 하나."""
    question: str
    options: list[str] = Field(min_length=MCQ_OPTION_COUNT, max_length=MCQ_OPTION_COUNT)
    correct_answer: str

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "MCQQuestion":
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class MCQResult(CamelModel):
    question: MCQQuestion
    user_answer: str = ""


class DSATestCase(CamelModel):
    input: str
    expected_output: str


class DSAQuestion(CamelModel):
    """DSA 문제. test_cases가 실행/채점 기준, examples는 표시용."""
    title: str
    description: str
    examples: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    test_cases: list[DSATestCase] = Field(default_factory=list)


class TestCaseResult(CamelModel):
    __test__ = False  # pytest 수집 대상 아님

    input: str
    expected: str
    actual: str
    passed: bool


class CodingResult(CamelModel):
    question: str
    code: str
    feedback: str


# =============================================================================
# Analysis Results
# =============================================================================

class DeliveryAnalysis(CamelModel):
    """말하기 분석: 분당 단어 수 + filler word 카운트."""
    words_per_minute: int = 0
    filler_words: dict[str, int] = Field(default_factory=dict)


class AtsResult(CamelModel):
    """이력서 ATS 분석 결과. score는 0-100으로 clamp."""
    score: float
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return max(0.0, min(100.0, value))


# =============================================================================
# Persisted Entities
# =============================================================================

class Report(CamelModel):
    """인터뷰/퀴즈/코딩 세션 결과 리포트."""
    id: str | int | None = None
    config: InterviewConfig
    summary: str = ""
    delivery_analysis: DeliveryAnalysis = Field(default_factory=DeliveryAnalysis)
    timestamp: str | None = None
    coding_results: list[CodingResult] | None = None
    mcq_results: list[MCQResult] | None = None
    history: list[ChatMessage] | None = None


class User(CamelModel):
    id: str
    email: str
    full_name: str = ""
    target_role: str | None = None
    reports: list[Report] = Field(default_factory=list)


class ProfileUpdate(CamelModel):
    """PUT /api/me 결과 (profiles 행의 camelCase 표현)."""
    full_name: str | None = None
    target_role: str | None = None


# =============================================================================
# Row Mapping (snake_case DB ↔ camelCase DTO)
# =============================================================================

def report_from_row(row: dict[str, Any]) -> Report:
    """reports 테이블 행 → Report."""
    return Report(
        id=row.get("id"),
        config=row.get("config") or {},
        summary=row.get("summary") or "",
        delivery_analysis=row.get("delivery_analysis") or DeliveryAnalysis(),
        timestamp=row.get("created_at"),
        coding_results=row.get("coding_results"),
        mcq_results=row.get("mcq_results"),
        history=row.get("history"),
    )


def report_to_row(user_id: str, report: Report) -> dict[str, Any]:
    """
    Report → reports 테이블 insert 행.

    JSONB 컬럼(config, delivery_analysis, ...)은 클라이언트 형식(camelCase) 그대로 저장.
    id/timestamp는 DB가 발급하므로 제외.
    """
    def _dump_list(items: list[CamelModel] | None) -> list[dict[str, Any]] | None:
        if items is None:
            return None
        return [item.to_json(exclude_none=True) for item in items]

    return {
        "user_id": user_id,
        "config": report.config.to_json(exclude_none=True),
        "summary": report.summary,
        "delivery_analysis": report.delivery_analysis.to_json(),
        "coding_results": _dump_list(report.coding_results),
        "mcq_results": _dump_list(report.mcq_results),
        "history": _dump_list(report.history),
    }


def profile_from_row(row: dict[str, Any]) -> ProfileUpdate:
    """profiles 행 → ProfileUpdate."""
    return ProfileUpdate(
        full_name=row.get("full_name"),
        target_role=row.get("target_role"),
    )


def user_from_rows(
    user_id: str,
    email: str,
    profile_row: dict[str, Any],
    report_rows: list[dict[str, Any]],
) -> User:
    """
    auth 사용자 + profiles 행 + reports 행들 → User.

    email은 auth 스키마가 SSOT (profiles에는 email 컬럼 없음).
    """
    return User(
        id=user_id,
        email=email,
        full_name=profile_row.get("full_name") or "",
        target_role=profile_row.get("target_role"),
        reports=[report_from_row(row) for row in report_rows],
    )
