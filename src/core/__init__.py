"""
Core layer: 외부 서비스와 무관한 순수 로직.

역할:
- text: LLM 응답 정리 (code fence, JSON)
- delivery: 말하기 지표 (WPM, filler word)
- scoring: MCQ 채점
- logging: 로깅 설정 + 민감 정보 마스킹
"""

from .delivery import count_filler_words, words_per_minute
from .logging import mask_sensitive_data, setup_logging
from .scoring import QuizScore, build_quiz_summary, score_quiz
from .text import fold_filler_words, parse_json_response, strip_code_fences

__all__ = [
    # text
    "strip_code_fences",
    "parse_json_response",
    "fold_filler_words",
    # delivery
    "words_per_minute",
    "count_filler_words",
    # scoring
    "QuizScore",
    "score_quiz",
    "build_quiz_summary",
    # logging
    "setup_logging",
    "mask_sensitive_data",
]
