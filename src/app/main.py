"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload --port 3001
- 프로덕션: uv run python -m src.app.main
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.app.config import Settings, load_config, load_settings
from src.app.errors import register_exception_handlers, to_http_exception
from src.app.providers.base import LLMProvider
from src.app.providers.gemini import GeminiProvider
from src.app.routes import auth, gemini, profile, reports
from src.app.services.accounts import AccountService, AccountStore, SupabaseAccountStore
from src.core.logging import setup_logging
from src.domain.errors import ErrorCodes, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    store: AccountStore | None = None,
    llm: LLMProvider | None = None,
) -> FastAPI:
    """
    앱 생성.

    주입하지 않은 구성요소는 lifespan 시작 시 설정에서 생성
    (settings 없으면 load_settings → 필수 환경변수 누락 시 시작 실패).

    Args:
        settings: 설정 (테스트에서 주입)
        store: 계정 저장소 (테스트에서 in-memory 구현 주입)
        llm: LLM provider (테스트에서 fake 주입)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        애플리케이션 생명주기 관리.

        시작 시: 설정 로드, 로깅 설정, 외부 클라이언트 생성
        종료 시: (정리할 리소스 없음, 클라이언트는 GC)
        """
        # Startup
        app_settings = settings or load_settings()
        setup_logging(app_settings.log_level, app_settings.mask_sensitive_logs)

        account_store = store or SupabaseAccountStore(
            app_settings.supabase_url,
            app_settings.supabase_anon_key,
            app_settings.supabase_service_role_key,
        )
        llm_provider = llm or GeminiProvider(
            model=app_settings.model,
            fallback=app_settings.fallback_model,
            api_key=app_settings.gemini_api_key,
            max_retries=app_settings.max_retries,
            initial_delay=app_settings.initial_delay,
        )

        app.state.settings = app_settings
        app.state.accounts = AccountService(account_store)
        app.state.llm = llm_provider
        app.state.max_body_bytes = app_settings.max_body_bytes

        logger.info(f"Backend ready (model={app_settings.model})")

        yield

        # Shutdown
        logger.info("Backend shutting down")

    app = FastAPI(
        title="AI Interviewer API",
        description="Mock interviews, quizzes and coding challenges backed by Gemini + Supabase",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(BodySizeLimitMiddleware)

    # CORS: 미들웨어는 lifespan 이전에 구성 → 주입된 settings, 없으면 default.yaml
    cors_origins = settings.cors_origins if settings else _configured_cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # API 라우트
    app.include_router(auth.api_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(profile.api_router, prefix="/api/me", tags=["Profile"])
    app.include_router(reports.api_router, prefix="/api/reports", tags=["Reports"])
    app.include_router(gemini.api_router, prefix="/api/gemini", tags=["Gemini"])

    app.add_api_route("/api", health, methods=["GET"], tags=["Health"])

    return app


# =============================================================================
# Middleware / Root Endpoints
# =============================================================================


class BodySizeLimitMiddleware:
    """
    요청 본문 크기 상한 (base64 이력서 업로드 상한).

    - Content-Length가 있으면 라우트 진입 전에 413
    - Content-Length가 없으면 (chunked) 수신 바이트를 누적해서 상한 초과 시 413
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = getattr(scope.get("app"), "state", None)
        limit = getattr(state, "max_body_bytes", DEFAULT_MAX_BODY_BYTES)

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                error = ServiceError(
                    ErrorCodes.INVALID_REQUEST,
                    "Invalid Content-Length header.",
                    status_code=status.HTTP_400_BAD_REQUEST,
                )
                await _error_response(error)(scope, receive, send)
                return
            if declared > limit:
                await _error_response(_payload_too_large(limit))(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    # 라우트의 본문 읽기 중에 발생 → 예외 핸들러가 {"error": ...}로 렌더링
                    raise to_http_exception(_payload_too_large(limit))
            return message

        await self.app(scope, limited_receive, send)


def _payload_too_large(limit: int) -> ServiceError:
    return ServiceError(
        ErrorCodes.PAYLOAD_TOO_LARGE,
        f"Request body exceeds the {limit} byte limit.",
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        limit=limit,
    )


def _error_response(error: ServiceError) -> JSONResponse:
    logger.warning(f"Request rejected: {error!r}")
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def _configured_cors_origins() -> list[str]:
    server = load_config().get("server") or {}
    origins = server.get("cors_origins") or ["*"]
    if isinstance(origins, str):
        return [origin.strip() for origin in origins.split(",") if origin.strip()]
    return list(origins)


async def health() -> dict[str, Any]:
    """헬스 체크."""
    return {"status": "ok", "message": "Backend is running."}


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    cli_settings = load_settings()
    uvicorn.run(
        create_app(settings=cli_settings),
        host=cli_settings.host,
        port=cli_settings.port,
    )
