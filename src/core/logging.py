"""
로깅 설정: 콘솔 핸들러 + 민감 정보 마스킹.

규칙:
- 모듈마다 logger = logging.getLogger(__name__)
- Bearer 토큰, JWT, API 키, 비밀번호는 로그에 원문으로 남기지 않음
- 프롬프트 원문 대신 prompt_hash를 기록
"""

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# 마스킹할 패턴들 (API 키, 토큰, 비밀번호 등)
SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # JWT 토큰 (eyJ로 시작) - Bearer 패턴보다 먼저
    (
        re.compile(r"eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"),
        "[MASKED_JWT]",
    ),
    # Bearer 토큰
    (re.compile(r"(Bearer\s+)(?!\[MASKED)([a-zA-Z0-9._-]{20,})", re.IGNORECASE), r"\1[MASKED_TOKEN]"),
    # Google API 키
    (re.compile(r"AIza[0-9A-Za-z_-]{30,}"), "[MASKED_API_KEY]"),
    # key=value 형태 API 키
    (
        re.compile(r'(api[_-]?key|apikey)(["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_-]{20,})', re.IGNORECASE),
        r"\1\2[MASKED]",
    ),
    # 비밀번호
    (
        re.compile(r'(password|passwd|pwd|new_?password)(["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.IGNORECASE),
        r"\1\2[MASKED]",
    ),
]


def mask_sensitive_data(content: str) -> str:
    """민감 정보를 마스킹한 문자열 반환."""
    masked = content
    for pattern, replacement in SENSITIVE_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


class SensitiveDataFilter(logging.Filter):
    """로그 레코드 메시지를 포맷 후 마스킹."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_sensitive_data(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(level: str = "INFO", mask_sensitive: bool = True) -> None:
    """
    루트 로거 설정.

    여러 번 호출해도 핸들러가 중복 등록되지 않음 (앱 재시작/테스트).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_interviewer_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._interviewer_handler = True  # type: ignore[attr-defined]
    if mask_sensitive:
        handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    # 외부 HTTP 클라이언트의 요청 URL 로그는 WARNING 이상만
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
