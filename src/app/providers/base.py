"""
LLM Provider 추상 인터페이스.

- Provider 추상화로 모델/벤더 교체 가능 (라우트는 SDK 타입을 모름)
- model_requested + model_used 기록 (fallback 추적)
- prompt_hash 기록 (로그에서 동일 프롬프트 검색용, 원문은 로그에 남기지 않음)
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Union

# =============================================================================
# Contents
# =============================================================================


@dataclass
class ChatTurn:
    """대화 한 턴. role은 "user" 또는 "model"."""
    role: str
    text: str


@dataclass
class InlineData:
    """프롬프트에 첨부하는 파일 (이력서 PDF 등)."""
    mime_type: str
    data: bytes


# 단일 프롬프트 / 대화 이력 / 멀티파트(텍스트 + 파일)
Contents = Union[str, list[ChatTurn], list[Union[str, InlineData]]]


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


def contents_fingerprint(contents: Contents, system_instruction: str | None = None) -> str:
    """
    Contents의 prompt_hash.

    파일 바이트는 길이만 반영 (대용량 base64를 해시 입력에 넣지 않음).
    """
    if isinstance(contents, str):
        parts: list[Any] = [contents]
    else:
        parts = []
        for item in contents:
            if isinstance(item, ChatTurn):
                parts.append({"role": item.role, "text": item.text})
            elif isinstance(item, InlineData):
                parts.append({"mime_type": item.mime_type, "size": len(item.data)})
            else:
                parts.append(item)
    payload = json.dumps(
        {"system": system_instruction, "contents": parts},
        ensure_ascii=False,
        sort_keys=True,
    )
    return compute_hash(payload)


# =============================================================================
# Result
# =============================================================================

@dataclass
class GenerationResult:
    """
    LLM 생성 결과.

    - model_requested: config에 설정된 모델
    - model_used: 실제 응답한 모델 (fallback 시 다를 수 있음)
    """
    text: str
    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False
    prompt_hash: str | None = None
    generated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "fallback_triggered": self.fallback_triggered,
            "prompt_hash": self.prompt_hash,
            "generated_at": self.generated_at,
        }


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class GenerationError(ProviderError):
    """LLM 생성/파싱 관련 에러."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================

class LLMProvider(ABC):
    """
    LLM Provider 추상 인터페이스.

    역할: 프롬프트 → 텍스트/JSON (판정·저장 권한 없음)
    """

    @abstractmethod
    async def generate_text(
        self,
        contents: Contents,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        """
        자유 형식 텍스트 생성.

        Raises:
            GenerationError: 빈 응답 또는 API 실패
        """
        ...

    @abstractmethod
    async def generate_json(
        self,
        contents: Contents,
        schema: dict[str, Any],
    ) -> dict[str, Any]:
        """
        구조화 출력 (response_schema 강제).

        Args:
            contents: 프롬프트
            schema: 응답 스키마 (Gemini Schema 형식 dict)

        Returns:
            파싱된 JSON 객체

        Raises:
            GenerationError: 빈 응답, JSON 파싱 실패, API 실패
        """
        ...
