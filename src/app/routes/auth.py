"""
Auth Routes.

- POST /api/auth/signup → 가입 + 로그인, 201 {user, session}
- POST /api/auth/login → {user, session}
- POST /api/auth/logout → 토큰 사용자 세션 폐기
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from src.app.deps import CurrentUser, get_account_service, get_current_user
from src.app.errors import raise_api_error
from src.app.services.accounts import AccountService
from src.domain.schemas import CamelModel

api_router = APIRouter()


class SignUpRequest(CamelModel):
    email: str
    password: str
    full_name: str = ""
    target_role: str | None = None


class LoginRequest(CamelModel):
    email: str
    password: str


@api_router.post("/signup", status_code=status.HTTP_201_CREATED)
async def sign_up(
    body: SignUpRequest,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """회원가입. 실패 시 생성된 auth 사용자는 정리됨."""
    try:
        user, session = await accounts.sign_up(
            body.email, body.password, body.full_name, body.target_role
        )
    except Exception as e:
        raise_api_error(e, "Failed to sign up user.")
    return {"user": user.to_json(), "session": session}


@api_router.post("/login")
async def log_in(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    try:
        user, session = await accounts.log_in(body.email, body.password)
    except Exception as e:
        raise_api_error(e, "Failed to log in.")
    return {"user": user.to_json(), "session": session}


@api_router.post("/logout")
async def log_out(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, str]:
    try:
        await accounts.log_out(current_user.token)
    except Exception as e:
        raise_api_error(e, "Logout failed.")
    return {"message": "Logged out successfully."}
