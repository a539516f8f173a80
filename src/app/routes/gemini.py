"""
Gemini Proxy Routes (보호됨): POST /api/gemini/<endpoint>

- chat: 인터뷰/드릴 대화
- analyze-resume: ATS 분석 (텍스트 또는 base64 파일)
- generate-mcq / generate-dsa / generate-tech-question: 문제 생성
- run-dsa / review-dsa / get-dsa-solution / review-solution: 코드 실행/리뷰/풀이
- translate-code: 언어 변환
- analyze-delivery: filler word + WPM

모든 LLM 출력은 domain.schemas 모델로 검증 후 camelCase로 응답.
"""

import base64
import binascii
import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ValidationError

from src.app.deps import get_current_user, get_llm
from src.app.errors import raise_api_error
from src.app.providers.base import GenerationError, InlineData, LLMProvider
from src.app.services import prompts
from src.app.services.response_schemas import (
    ATS_SCHEMA,
    DELIVERY_SCHEMA,
    DSA_QUESTION_SCHEMA,
    MCQ_SCHEMA,
    TEST_RESULTS_SCHEMA,
)
from src.core.delivery import count_filler_words, words_per_minute
from src.core.text import fold_filler_words, strip_code_fences
from src.domain.errors import ErrorCodes
from src.domain.schemas import (
    AtsResult,
    CamelModel,
    ChatMessage,
    DSAQuestion,
    InterviewConfig,
    MCQQuestion,
    TestCaseResult,
)

logger = logging.getLogger(__name__)

api_router = APIRouter(dependencies=[Depends(get_current_user)])

ModelT = TypeVar("ModelT", bound=BaseModel)


# =============================================================================
# Request Bodies
# =============================================================================

class ChatRequest(CamelModel):
    config: InterviewConfig
    history: list[ChatMessage] = []
    new_message: str | None = None


class ResumeFile(CamelModel):
    mime_type: str
    data: str  # base64


class ResumeData(CamelModel):
    text: str | None = None
    file: ResumeFile | None = None


class AnalyzeResumeRequest(CamelModel):
    resume_data: ResumeData
    job_role: str = ""


class RoleRequest(CamelModel):
    role: str


class GenerateDSARequest(CamelModel):
    config: InterviewConfig


class CodeReviewRequest(CamelModel):
    question: DSAQuestion
    code: str
    language: str


class SolutionRequest(CamelModel):
    question: DSAQuestion
    language: str


class TranslateCodeRequest(CamelModel):
    code: str = ""
    from_language: str
    to_language: str


class SpokenResponse(CamelModel):
    transcript: str = ""
    start_time: float
    end_time: float


class AnalyzeDeliveryRequest(CamelModel):
    transcript: str = ""
    responses: list[SpokenResponse] = []


class TechQuestionRequest(CamelModel):
    role: str
    language: str


class ReviewSolutionRequest(CamelModel):
    question: str
    code: str
    language: str


# =============================================================================
# Helpers
# =============================================================================

def _validate(model: type[ModelT], data: Any) -> ModelT:
    """LLM JSON → 모델. 스키마 불일치는 GenerationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GenerationError(
            ErrorCodes.INVALID_JSON_RESPONSE,
            "The AI response did not match the expected format. Please try again.",
            model=model.__name__,
            errors=e.error_count(),
        ) from e


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _default_message(endpoint: str) -> str:
    return f"Error in /api/gemini/{endpoint}"


# =============================================================================
# Interview Conversation
# =============================================================================

@api_router.post("/chat")
async def chat(
    body: ChatRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    """시스템 instruction(인터뷰 설정) + 대화 이력 → 다음 면접관 응답."""
    contents = prompts.build_chat_contents(body.history, body.new_message)
    if not contents:
        raise _bad_request("A message or conversation history is required.")

    try:
        result = await llm.generate_text(
            contents,
            system_instruction=prompts.get_system_instruction(body.config),
        )
    except Exception as e:
        raise_api_error(e, _default_message("chat"))
    return {"responseText": result.text}


# =============================================================================
# Resume
# =============================================================================

@api_router.post("/analyze-resume")
async def analyze_resume(
    body: AnalyzeResumeRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, Any]:
    """ATS 분석. 파일이 있으면 파일 우선, 없으면 텍스트."""
    parts: list[str | InlineData] = [prompts.ats_prompt(body.job_role)]

    resume = body.resume_data
    if resume.file is not None:
        try:
            file_bytes = base64.b64decode(resume.file.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise _bad_request("The resume file is not valid base64 data.") from e
        parts.append(InlineData(mime_type=resume.file.mime_type, data=file_bytes))
    elif resume.text and resume.text.strip():
        parts.append(prompts.resume_text_part(resume.text))
    else:
        raise _bad_request("Resume text or file is required.")

    try:
        data = await llm.generate_json(parts, ATS_SCHEMA)
        analysis = _validate(AtsResult, data)
    except Exception as e:
        raise_api_error(e, _default_message("analyze-resume"))
    return {"analysis": analysis.to_json()}


# =============================================================================
# Question Generation
# =============================================================================

@api_router.post("/generate-mcq")
async def generate_mcq(
    body: RoleRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, Any]:
    try:
        data = await llm.generate_json(prompts.mcq_prompt(body.role), MCQ_SCHEMA)
        questions = [_validate(MCQQuestion, item) for item in data.get("questions") or []]
        if not questions:
            raise GenerationError(
                ErrorCodes.EMPTY_RESPONSE,
                "The AI did not return any quiz questions. Please try a more specific role.",
            )
    except Exception as e:
        raise_api_error(e, _default_message("generate-mcq"))
    return {"questions": [question.to_json() for question in questions]}


@api_router.post("/generate-dsa")
async def generate_dsa(
    body: GenerateDSARequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, Any]:
    try:
        data = await llm.generate_json(
            prompts.dsa_question_prompt(body.config), DSA_QUESTION_SCHEMA
        )
        question = _validate(DSAQuestion, data)
    except Exception as e:
        raise_api_error(e, _default_message("generate-dsa"))
    return {"question": question.to_json()}


@api_router.post("/generate-tech-question")
async def generate_tech_question(
    body: TechQuestionRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    try:
        result = await llm.generate_text(
            prompts.tech_question_prompt(body.role, body.language)
        )
    except Exception as e:
        raise_api_error(e, _default_message("generate-tech-question"))
    return {"question": result.text}


# =============================================================================
# Coding Challenge
# =============================================================================

@api_router.post("/run-dsa")
async def run_dsa(
    body: CodeReviewRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, Any]:
    """LLM이 코드 실행기 역할 (실제 실행 없음)."""
    try:
        data = await llm.generate_json(
            prompts.run_dsa_prompt(body.question, body.code, body.language),
            TEST_RESULTS_SCHEMA,
        )
        results = [_validate(TestCaseResult, item) for item in data.get("results") or []]
    except Exception as e:
        raise_api_error(e, _default_message("run-dsa"))
    return {"results": [result.to_json() for result in results]}


@api_router.post("/review-dsa")
async def review_dsa(
    body: CodeReviewRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    try:
        result = await llm.generate_text(
            prompts.review_dsa_prompt(body.question, body.code, body.language)
        )
    except Exception as e:
        raise_api_error(e, _default_message("review-dsa"))
    return {"review": result.text}


@api_router.post("/get-dsa-solution")
async def get_dsa_solution(
    body: SolutionRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    try:
        result = await llm.generate_text(
            prompts.dsa_solution_prompt(body.question, body.language)
        )
    except Exception as e:
        raise_api_error(e, _default_message("get-dsa-solution"))
    return {"solution": strip_code_fences(result.text)}


@api_router.post("/translate-code")
async def translate_code(
    body: TranslateCodeRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    """빈 코드는 LLM 호출 없이 빈 문자열."""
    if not body.code.strip():
        return {"translatedCode": ""}

    try:
        result = await llm.generate_text(
            prompts.translate_code_prompt(body.code, body.from_language, body.to_language)
        )
    except Exception as e:
        raise_api_error(e, _default_message("translate-code"))
    return {"translatedCode": strip_code_fences(result.text)}


@api_router.post("/review-solution")
async def review_solution(
    body: ReviewSolutionRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, str]:
    try:
        result = await llm.generate_text(
            prompts.review_solution_prompt(body.question, body.code, body.language)
        )
    except Exception as e:
        raise_api_error(e, _default_message("review-solution"))
    return {"review": result.text}


# =============================================================================
# Delivery
# =============================================================================

@api_router.post("/analyze-delivery")
async def analyze_delivery(
    body: AnalyzeDeliveryRequest,
    llm: LLMProvider = Depends(get_llm),
) -> dict[str, Any]:
    """
    filler word 분석 + WPM.

    비핵심 분석: LLM 실패 시 로컬 카운트로 대체하고 200 응답.
    """
    wpm = words_per_minute(response.to_json() for response in body.responses)

    filler_words: dict[str, int] = {}
    if body.transcript.strip():
        try:
            data = await llm.generate_json(
                prompts.delivery_prompt(body.transcript), DELIVERY_SCHEMA
            )
            filler_words = fold_filler_words(data.get("fillerWords") or [])
        except Exception as e:
            logger.warning(f"Delivery analysis fell back to local count: {e}")
            filler_words = count_filler_words(body.transcript)

    return {"analysis": {"fillerWords": filler_words, "wordsPerMinute": wpm}}
