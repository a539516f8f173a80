"""
test_gemini.py - Gemini LLM Provider 테스트

Fallback 예외 정책 검증:
- FALLBACK_STATUS_CODES: 404, 429, 5xx → fallback 모델
- REJECT_STATUS_CODES: 400, 401, 403 → 즉시 reject
- generate_json: JSON 파싱 실패 시 재요청, 끝까지 실패하면 INVALID_JSON_RESPONSE
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from src.app.providers.base import ChatTurn, GenerationError, InlineData
from src.app.providers.gemini import (
    EMPTY_RESPONSE_MESSAGE,
    FALLBACK_STATUS_CODES,
    REJECT_STATUS_CODES,
    GeminiProvider,
)
from src.domain.errors import ErrorCodes

SIMPLE_SCHEMA = {"type": "OBJECT", "properties": {"score": {"type": "NUMBER"}}}

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def provider():
    """기본 Gemini provider (재시도 대기 없음)."""
    return GeminiProvider(
        model="gemini-2.5-flash",
        fallback="gemini-2.0-flash",
        api_key="test-api-key",
        max_retries=2,
        initial_delay=0,
    )


@pytest.fixture
def provider_no_fallback():
    """Fallback 없는 provider."""
    return GeminiProvider(
        model="gemini-2.5-flash",
        fallback=None,
        api_key="test-api-key",
        initial_delay=0,
    )


def _response(text: str | None) -> MagicMock:
    response = MagicMock()
    response.text = text
    return response


def _api_error(code: int) -> genai_errors.APIError:
    body = {"error": {"code": code, "message": f"status {code}", "status": "ERROR"}}
    if code >= 500:
        return genai_errors.ServerError(code, body)
    return genai_errors.ClientError(code, body)


def _mock_client(provider: GeminiProvider, *side_effect) -> AsyncMock:
    """provider._client에 async generate_content mock 주입."""
    generate = AsyncMock(side_effect=list(side_effect))
    client = MagicMock()
    client.aio.models.generate_content = generate
    provider._client = client
    return generate


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestGeminiProviderInit:
    """GeminiProvider 초기화 테스트."""

    def test_init_with_defaults(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        provider = GeminiProvider()

        assert provider.model == "gemini-2.5-flash"
        assert provider.fallback is None
        assert provider.api_key is None

    def test_init_uses_env_api_key(self, monkeypatch):
        """환경변수 API_KEY 사용."""
        monkeypatch.setenv("API_KEY", "env-api-key")

        assert GeminiProvider().api_key == "env-api-key"

    def test_init_uses_gemini_api_key_env(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-env-key")

        assert GeminiProvider().api_key == "gemini-env-key"

    def test_client_lazy_init(self, provider):
        """클라이언트는 lazy init."""
        assert provider._client is None


# =============================================================================
# Exception Mapping 테스트
# =============================================================================


class TestExceptionMapping:
    """상태 코드 분류 테스트."""

    def test_fallback_codes(self):
        assert {404, 429, 500, 503} <= FALLBACK_STATUS_CODES

    def test_reject_codes(self):
        assert {400, 401, 403} <= REJECT_STATUS_CODES

    def test_codes_disjoint(self):
        assert not FALLBACK_STATUS_CODES & REJECT_STATUS_CODES

    def test_friendly_message_quota(self, provider):
        message = provider._get_user_friendly_error_message(_api_error(429))

        assert "quota" in message

    def test_friendly_message_timeout(self, provider):
        message = provider._get_user_friendly_error_message(TimeoutError("request timed out"))

        assert message == "The AI service timed out. Please try again."


# =============================================================================
# Contents 변환 테스트
# =============================================================================


class TestToSdkContents:
    """_to_sdk_contents 테스트."""

    def test_plain_string(self, provider):
        assert provider._to_sdk_contents("hello") == "hello"

    def test_chat_turns(self, provider):
        contents = provider._to_sdk_contents(
            [ChatTurn("model", "Hi, I'm your interviewer."), ChatTurn("user", "Hello")]
        )

        assert [c.role for c in contents] == ["model", "user"]
        assert contents[1].parts[0].text == "Hello"

    def test_multipart_with_file(self, provider):
        contents = provider._to_sdk_contents(
            ["Analyze this resume", InlineData("application/pdf", b"%PDF-1.4")]
        )

        assert len(contents) == 1
        assert contents[0].role == "user"
        parts = contents[0].parts
        assert parts[0].text == "Analyze this resume"
        assert parts[1].inline_data.mime_type == "application/pdf"
        assert parts[1].inline_data.data == b"%PDF-1.4"


# =============================================================================
# generate_text 테스트 (Mock)
# =============================================================================


class TestGenerateText:
    """generate_text 메서드 테스트."""

    @pytest.mark.asyncio
    async def test_success(self, provider):
        generate = _mock_client(provider, _response("Tell me about yourself."))

        result = await provider.generate_text("hi", system_instruction="Be nice.")

        assert result.text == "Tell me about yourself."
        assert result.model_requested == "gemini-2.5-flash"
        assert result.model_used == "gemini-2.5-flash"
        assert result.fallback_triggered is False
        assert result.prompt_hash.startswith("sha256:")

        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert isinstance(kwargs["config"], types.GenerateContentConfig)
        assert kwargs["config"].system_instruction == "Be nice."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [404, 429, 503])
    async def test_fallback_on_retryable_status(self, provider, code):
        """404/429/5xx → fallback 모델."""
        generate = _mock_client(provider, _api_error(code), _response("Fallback result"))

        result = await provider.generate_text("hi")

        assert result.text == "Fallback result"
        assert result.model_used == "gemini-2.0-flash"
        assert result.fallback_triggered is True
        assert generate.call_args_list[1].kwargs["model"] == "gemini-2.0-flash"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [400, 401, 403])
    async def test_reject_immediately(self, provider, code):
        """400/401/403 → fallback 없이 즉시 실패."""
        generate = _mock_client(provider, _api_error(code))

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_text("hi")

        assert exc_info.value.code == ErrorCodes.GENERATION_FAILED
        assert exc_info.value.context["status"] == code
        assert generate.call_count == 1

    @pytest.mark.asyncio
    async def test_no_fallback_configured(self, provider_no_fallback):
        _mock_client(provider_no_fallback, _api_error(503))

        with pytest.raises(GenerationError) as exc_info:
            await provider_no_fallback.generate_text("hi")

        assert exc_info.value.code == "NO_FALLBACK"

    @pytest.mark.asyncio
    async def test_fallback_also_fails(self, provider):
        _mock_client(provider, _api_error(429), _api_error(500))

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_text("hi")

        assert exc_info.value.code == "FALLBACK_FAILED"
        assert "Both the primary and the fallback model failed." in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unexpected_error(self, provider):
        _mock_client(provider, ConnectionError("connection refused"))

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_text("hi")

        assert exc_info.value.code == ErrorCodes.GENERATION_FAILED
        assert exc_info.value.message == "Could not connect to the AI service."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_empty_response(self, provider, text):
        """빈 응답 (안전 필터 등) → EMPTY_RESPONSE."""
        _mock_client(provider, _response(text))

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_text("hi")

        assert exc_info.value.code == ErrorCodes.EMPTY_RESPONSE
        assert exc_info.value.message == EMPTY_RESPONSE_MESSAGE


# =============================================================================
# generate_json 테스트 (Mock)
# =============================================================================


class TestGenerateJson:
    """generate_json 메서드 테스트."""

    @pytest.mark.asyncio
    async def test_success(self, provider):
        generate = _mock_client(provider, _response('{"score": 82}'))

        data = await provider.generate_json("analyze", SIMPLE_SCHEMA)

        assert data == {"score": 82}
        config = generate.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_schema is not None

    @pytest.mark.asyncio
    async def test_fenced_json(self, provider):
        _mock_client(provider, _response('```json\n{"score": 70}\n```'))

        assert await provider.generate_json("analyze", SIMPLE_SCHEMA) == {"score": 70}

    @pytest.mark.asyncio
    async def test_retries_malformed_json(self, provider):
        """깨진 JSON → 재요청 후 성공."""
        generate = _mock_client(
            provider,
            _response('{"score": '),
            _response("[1, 2]"),
            _response('{"score": 90}'),
        )

        data = await provider.generate_json("analyze", SIMPLE_SCHEMA)

        assert data == {"score": 90}
        assert generate.call_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, provider):
        generate = _mock_client(provider, *[_response("not json")] * 3)

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_json("analyze", SIMPLE_SCHEMA)

        assert exc_info.value.code == ErrorCodes.INVALID_JSON_RESPONSE
        assert generate.call_count == 3

    @pytest.mark.asyncio
    async def test_api_error_not_retried(self, provider):
        """API 거부는 JSON 재요청 대상 아님."""
        generate = _mock_client(provider, _api_error(400))

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_json("analyze", SIMPLE_SCHEMA)

        assert exc_info.value.code == ErrorCodes.GENERATION_FAILED
        assert generate.call_count == 1
