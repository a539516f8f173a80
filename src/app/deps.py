"""
FastAPI 의존성.

- app.state에 lifespan에서 올려둔 서비스/프로바이더를 꺼냄
- get_current_user: Bearer 토큰 → Supabase 검증 → AuthUser
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from src.app.config import Settings
from src.app.providers.base import LLMProvider
from src.app.services.accounts import AccountService, AuthUser
from src.domain.errors import ServiceError


@dataclass
class CurrentUser:
    """인증된 요청의 사용자 + 원본 토큰 (로그아웃에 필요)."""
    id: str
    email: str | None
    token: str


def get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_account_service(request: Request) -> AccountService:
    service: AccountService = request.app.state.accounts
    return service


def get_llm(request: Request) -> LLMProvider:
    llm: LLMProvider = request.app.state.llm
    return llm


async def get_current_user(
    request: Request,
    accounts: AccountService = Depends(get_account_service),
) -> CurrentUser:
    """
    Authorization: Bearer <jwt> 검증.

    Raises:
        HTTPException(401): 헤더 누락/형식 오류, 토큰 무효/만료
    """
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing or invalid.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing or invalid.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user: AuthUser = await accounts.verify_token(token)
    except Exception as e:
        details = e.context.get("details") if isinstance(e, ServiceError) else str(e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid or expired token.", "details": details},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return CurrentUser(id=user.id, email=user.email, token=token)
