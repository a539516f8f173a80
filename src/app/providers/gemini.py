"""
Google Gemini LLM Provider (google-genai SDK).

Fallback 예외 정책 (HTTP 상태 코드 기준):
- FALLBACK_STATUS_CODES: 404(모델명 오류), 429(쿼터), 5xx → fallback 모델로 재시도
- REJECT_STATUS_CODES: 400(입력 오류), 401/403(인증) → 즉시 reject

구조화 출력(generate_json)은 응답이 JSON으로 파싱되지 않으면
지수 백오프로 max_retries회까지 재요청한다.
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from src.core.text import parse_json_response
from src.domain.constants import DEFAULT_GEMINI_MODEL
from src.domain.errors import ErrorCodes
from src.utils.retry import RetryableError, retry_with_exponential_backoff

from .base import (
    ChatTurn,
    Contents,
    GenerationError,
    GenerationResult,
    InlineData,
    LLMProvider,
    contents_fingerprint,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Exception Mapping
# =============================================================================

FALLBACK_STATUS_CODES: frozenset[int] = frozenset({404, 429, 500, 502, 503, 504})

REJECT_STATUS_CODES: frozenset[int] = frozenset({400, 401, 403})

EMPTY_RESPONSE_MESSAGE = (
    "The AI's response was empty, possibly due to a safety filter or invalid input."
)


class InvalidJSONResponse(RetryableError):
    """모델 응답이 JSON 객체로 파싱되지 않음."""

    pass


class GeminiProvider(LLMProvider):
    """
    Gemini Provider.

    Usage:
        provider = GeminiProvider(model="gemini-2.5-flash", api_key=settings.gemini_api_key)
        result = await provider.generate_text("Hello", system_instruction="...")
        data = await provider.generate_json(prompt, MCQ_SCHEMA)
    """

    def __init__(
        self,
        model: str = DEFAULT_GEMINI_MODEL,
        fallback: str | None = None,
        api_key: str | None = None,
        max_retries: int = 2,
        initial_delay: float = 0.5,
    ):
        """
        Args:
            model: 기본 모델 ID (config에서 주입)
            fallback: Fallback 모델 (None이면 재시도 없이 실패)
            api_key: API 키 (환경변수 API_KEY 또는 GEMINI_API_KEY 사용 가능)
            max_retries: JSON 파싱 실패 시 재요청 횟수
            initial_delay: 재요청 초기 대기 시간(초)
        """
        self.model = model
        self.fallback = fallback
        self.api_key = (
            api_key
            or os.environ.get("API_KEY")
            or os.environ.get("GEMINI_API_KEY")
        )
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    # =========================================================================
    # Public API
    # =========================================================================

    async def generate_text(
        self,
        contents: Contents,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        config = types.GenerateContentConfig(system_instruction=system_instruction)
        prompt_hash = contents_fingerprint(contents, system_instruction)
        return await self._generate(contents, config, prompt_hash)

    async def generate_json(
        self,
        contents: Contents,
        schema: dict[str, Any],
    ) -> dict[str, Any]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        prompt_hash = contents_fingerprint(contents)

        async def attempt() -> dict[str, Any]:
            result = await self._generate(contents, config, prompt_hash)
            try:
                data = parse_json_response(result.text)
            except ValueError as e:
                raise InvalidJSONResponse(str(e)) from e
            if not isinstance(data, dict):
                raise InvalidJSONResponse(
                    f"expected a JSON object, got {type(data).__name__}"
                )
            return data

        try:
            return await retry_with_exponential_backoff(
                attempt,
                max_retries=self.max_retries,
                initial_delay=self.initial_delay,
                exceptions=(InvalidJSONResponse,),
                label=f"gemini json {prompt_hash}",
            )
        except InvalidJSONResponse as e:
            raise GenerationError(
                ErrorCodes.INVALID_JSON_RESPONSE,
                "The AI returned a response that could not be read. Please try again.",
                prompt_hash=prompt_hash,
                detail=str(e),
            ) from e

    # =========================================================================
    # Fallback Policy
    # =========================================================================

    async def _generate(
        self,
        contents: Contents,
        config: types.GenerateContentConfig,
        prompt_hash: str,
    ) -> GenerationResult:
        """
        기본 모델 호출 + fallback 정책 적용.

        - FALLBACK_STATUS_CODES → fallback 모델로 재시도
        - REJECT_STATUS_CODES 및 기타 API 에러 → 즉시 에러
        """
        now = datetime.now(UTC).isoformat()
        sdk_contents = self._to_sdk_contents(contents)

        try:
            text = await self._call_api(self.model, sdk_contents, config)
            model_used = self.model
            fallback_triggered = False

        except genai_errors.APIError as e:
            if e.code not in FALLBACK_STATUS_CODES:
                logger.error(
                    f"Gemini request rejected ({e.code}) for {prompt_hash}: {e}",
                    exc_info=True,
                )
                raise GenerationError(
                    ErrorCodes.GENERATION_FAILED,
                    self._get_user_friendly_error_message(e),
                    model=self.model,
                    status=e.code,
                ) from e

            if self.fallback is None:
                logger.error(f"Gemini model {self.model} failed ({e.code}), no fallback configured")
                raise GenerationError(
                    "NO_FALLBACK",
                    self._get_user_friendly_error_message(e),
                    model=self.model,
                    status=e.code,
                ) from e

            logger.warning(
                f"Primary model ({self.model}) failed with fallback error: {e}. "
                f"Trying fallback model: {self.fallback}"
            )
            try:
                text = await self._call_api(self.fallback, sdk_contents, config)
            except Exception as fallback_error:
                logger.error(f"Fallback model also failed: {fallback_error}")
                raise GenerationError(
                    "FALLBACK_FAILED",
                    f"{self._get_user_friendly_error_message(fallback_error)} "
                    "Both the primary and the fallback model failed.",
                    primary_model=self.model,
                    fallback_model=self.fallback,
                ) from fallback_error
            model_used = self.fallback
            fallback_triggered = True
            logger.info("Fallback model succeeded")

        except Exception as e:
            logger.error(f"Gemini call failed with unexpected error: {e}", exc_info=True)
            raise GenerationError(
                ErrorCodes.GENERATION_FAILED,
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        if not text or not text.strip():
            raise GenerationError(
                ErrorCodes.EMPTY_RESPONSE,
                EMPTY_RESPONSE_MESSAGE,
                model=model_used,
                prompt_hash=prompt_hash,
            )

        logger.debug(
            f"Gemini generated {len(text)} chars with {model_used} for {prompt_hash}"
        )
        return GenerationResult(
            text=text,
            model_requested=self.model,
            model_used=model_used,
            fallback_triggered=fallback_triggered,
            prompt_hash=prompt_hash,
            generated_at=now,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자에게 보여줄 에러 메시지."""
        if isinstance(error, genai_errors.APIError):
            if error.code in (401, 403):
                return "The AI service rejected the server's credentials. Check the API_KEY setting."
            if error.code == 429:
                return "The AI service quota was exceeded. Please wait a moment and try again."
            if error.code == 404:
                return f"The configured AI model was not found: {self.model}."
            if error.code == 400:
                return f"The AI service rejected the request: {error.message or error}"
            if error.code >= 500:
                return "The AI service is temporarily unavailable. Please try again shortly."

        error_str = str(error)
        lowered = error_str.lower()
        if "timeout" in lowered or "timed out" in lowered:
            return "The AI service timed out. Please try again."
        if "connection" in lowered:
            return "Could not connect to the AI service."

        return f"The AI request failed: {error_str}"

    # =========================================================================
    # SDK Adapter
    # =========================================================================

    async def _call_api(
        self,
        model: str,
        contents: Any,
        config: types.GenerateContentConfig,
    ) -> str:
        """실제 Gemini API 호출 (async 클라이언트)."""
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
        return response.text or ""

    def _to_sdk_contents(self, contents: Contents) -> Any:
        """
        Contents → google-genai contents.

        - str: 그대로
        - ChatTurn 목록: 턴별 Content
        - str/InlineData 혼합: 단일 user Content의 parts
        """
        if isinstance(contents, str):
            return contents

        if contents and all(isinstance(item, ChatTurn) for item in contents):
            return [
                types.Content(
                    role=turn.role,
                    parts=[types.Part.from_text(text=turn.text)],
                )
                for turn in contents
            ]

        parts: list[types.Part] = []
        for item in contents:
            if isinstance(item, InlineData):
                parts.append(types.Part.from_bytes(data=item.data, mime_type=item.mime_type))
            elif isinstance(item, ChatTurn):
                parts.append(types.Part.from_text(text=item.text))
            else:
                parts.append(types.Part.from_text(text=str(item)))
        return [types.Content(role="user", parts=parts)]
