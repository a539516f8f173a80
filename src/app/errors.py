"""
에러 → HTTP 응답 매핑.

응답 형식: {"error": "<message>"} (인증 실패는 "details" 추가)
클라이언트는 response.error를 그대로 alert/배너로 표시함.
"""

import logging
from typing import Any, NoReturn

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.providers.base import ProviderError
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An internal server error occurred."


def to_http_exception(
    error: Exception,
    default_message: str = DEFAULT_ERROR_MESSAGE,
) -> HTTPException:
    """
    예외 → HTTPException.

    매핑 순서:
    1. 메시지에 "user already registered" → 409
    2. 메시지에 "invalid login credentials" → 401
    3. ServiceError → 자체 status_code
    4. 그 외 → 500 (메시지 없으면 default_message)
    """
    message = getattr(error, "message", None) or str(error) or default_message
    lowered = message.lower()

    if "user already registered" in lowered:
        return HTTPException(status.HTTP_409_CONFLICT, "A user with this email already exists.")
    if "invalid login credentials" in lowered:
        return HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid email or password.")

    if isinstance(error, ServiceError):
        return HTTPException(error.status_code, error.message)
    if isinstance(error, ProviderError):
        return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, error.message)

    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def raise_api_error(error: Exception, default_message: str = DEFAULT_ERROR_MESSAGE) -> NoReturn:
    """라우트 공통 실패 처리: 로그 후 HTTPException으로 변환해서 던짐."""
    if isinstance(error, HTTPException):
        raise error
    logger.error(f"{default_message} {error!r}", exc_info=error)
    raise to_http_exception(error, default_message) from error


# =============================================================================
# Exception Handlers
# =============================================================================


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    content: dict[str, Any]
    if isinstance(exc.detail, dict):
        content = {"error": exc.detail.get("error") or exc.detail.get("message", "")}
        content.update({k: v for k, v in exc.detail.items() if k not in ("error", "message")})
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request. " + "; ".join(problems)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
