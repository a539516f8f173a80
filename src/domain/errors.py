"""
Error definitions for the interview backend.

규칙:
- 조용한 실패 금지 → ServiceError로 명시적 실패
- 라우트는 ServiceError.status_code를 그대로 HTTP 상태로 사용
- 외부 서비스(Supabase/Gemini) 원본 메시지는 context가 아니라 message에 보존
"""

from typing import Any


class ServiceError(Exception):
    """
    서비스 계층에서 발생하는 에러.

    Usage:
        raise ServiceError(
            ErrorCodes.PROFILE_NOT_FOUND,
            "Could not find a user profile ...",
            status_code=404,
            user_id=user_id,
        )
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        **context: Any,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.context = context
        super().__init__(message)

    def __repr__(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"ServiceError([{self.code}] {self.message!r}{', ' + ctx_str if ctx_str else ''})"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Auth ===
    TOKEN_INVALID = "TOKEN_INVALID"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SIGNUP_NO_USER = "SIGNUP_NO_USER"

    # === Profile / Reports ===
    PROFILE_CREATE_FAILED = "PROFILE_CREATE_FAILED"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    REPORT_SAVE_FAILED = "REPORT_SAVE_FAILED"

    # === Store (Supabase) ===
    STORE_ERROR = "STORE_ERROR"

    # === LLM ===
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    INVALID_JSON_RESPONSE = "INVALID_JSON_RESPONSE"
    GENERATION_FAILED = "GENERATION_FAILED"

    # === Request ===
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INVALID_REQUEST = "INVALID_REQUEST"
