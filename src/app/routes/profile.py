"""
Profile Routes (보호됨).

- GET /api/me → {user} (reports 최신순 포함)
- PUT /api/me → {user: {fullName, targetRole}}
- PUT /api/me/password → {message}
"""

from typing import Any

from fastapi import APIRouter, Depends

from src.app.deps import CurrentUser, get_account_service, get_current_user
from src.app.errors import raise_api_error
from src.app.services.accounts import AccountService
from src.domain.schemas import CamelModel

api_router = APIRouter()


class ProfileUpdateRequest(CamelModel):
    full_name: str | None = None
    target_role: str | None = None


class PasswordUpdateRequest(CamelModel):
    new_password: str


@api_router.get("")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    try:
        user = await accounts.fetch_full_user(current_user.id)
    except Exception as e:
        raise_api_error(e, "Failed to fetch user data.")
    return {"user": user.to_json()}


@api_router.put("")
async def update_me(
    body: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    try:
        profile = await accounts.update_profile(
            current_user.id, body.full_name, body.target_role
        )
    except Exception as e:
        raise_api_error(e, "Failed to update user profile.")
    return {"user": profile.to_json()}


@api_router.put("/password")
async def update_password(
    body: PasswordUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, str]:
    try:
        await accounts.update_password(current_user.id, body.new_password)
    except Exception as e:
        raise_api_error(e, "Failed to update password.")
    return {"message": "Password updated successfully."}
