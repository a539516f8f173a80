"""
AI Provider Abstraction.

모델 교체 가능하게 설계. 모델명은 config만 SSOT.
"""

from .base import (
    ChatTurn,
    Contents,
    GenerationError,
    GenerationResult,
    InlineData,
    LLMProvider,
    ProviderError,
)
from .gemini import GeminiProvider

__all__ = [
    "LLMProvider",
    "ChatTurn",
    "Contents",
    "InlineData",
    "GenerationResult",
    "ProviderError",
    "GenerationError",
    "GeminiProvider",
]
