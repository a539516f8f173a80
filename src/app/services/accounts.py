"""
계정 서비스: 인증, 프로필, 리포트 (Supabase).

역할:
- AccountStore: Supabase 호출 추상화 (테스트에서 in-memory 구현으로 교체)
- SupabaseAccountStore: anon 클라이언트(로그인/토큰 검증) + service-role 클라이언트(관리자 쓰기)
- AccountService: 회원가입 보상 트랜잭션, snake_case ↔ camelCase 매핑

주의:
- email은 auth 스키마가 SSOT, profiles에는 full_name/target_role만 저장
- service-role 클라이언트는 RLS를 우회 → 반드시 인증된 user_id로만 호출
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi.concurrency import run_in_threadpool
from supabase import AuthError, Client, ClientOptions, create_client

from src.domain.constants import PROFILE_COLUMNS, PROFILES_TABLE, REPORTS_TABLE
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import (
    ProfileUpdate,
    Report,
    User,
    profile_from_row,
    report_from_row,
    report_to_row,
    user_from_rows,
)

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "A user with this email already exists."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."

# Supabase Auth가 중복 가입 시 돌려주는 메시지/코드 (엔드포인트마다 다름)
_DUPLICATE_USER_MARKERS = ("user already registered", "already been registered")
_DUPLICATE_USER_CODES = ("email_exists", "user_already_exists")


@dataclass
class AuthUser:
    """토큰 검증 결과."""
    id: str
    email: str | None = None


@dataclass
class AuthSession:
    """로그인 결과. session은 클라이언트에 그대로 전달 (access_token 포함)."""
    user_id: str
    session: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Store Interface
# =============================================================================

class AccountStore(ABC):
    """
    인증/DB 저장소 인터페이스 (동기).

    구현체는 외부 서비스 에러를 ServiceError로 변환해서 던진다.
    """

    @abstractmethod
    def verify_token(self, token: str) -> AuthUser: ...

    @abstractmethod
    def create_user(self, email: str, password: str) -> str:
        """이메일 확인 완료 상태로 auth 사용자 생성 → user_id."""
        ...

    @abstractmethod
    def delete_user(self, user_id: str) -> None: ...

    @abstractmethod
    def create_profile(self, user_id: str, full_name: str, target_role: str) -> None: ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    def sign_out(self, token: str) -> None: ...

    @abstractmethod
    def get_email(self, user_id: str) -> str: ...

    @abstractmethod
    def get_profile(self, user_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def list_reports(self, user_id: str) -> list[dict[str, Any]]:
        """최신순 (created_at desc)."""
        ...

    @abstractmethod
    def update_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None: ...

    @abstractmethod
    def update_password(self, user_id: str, new_password: str) -> None: ...

    @abstractmethod
    def insert_report(self, row: dict[str, Any]) -> dict[str, Any]: ...


# =============================================================================
# Supabase Implementation
# =============================================================================

class SupabaseAccountStore(AccountStore):
    """
    Supabase 구현.

    Usage:
        store = SupabaseAccountStore(url, anon_key, service_role_key)
        user = store.verify_token(bearer_token)
    """

    def __init__(self, url: str, anon_key: str, service_role_key: str):
        self.client: Client = create_client(url, anon_key)
        # 관리자 클라이언트: 서버 전용, 세션 저장/갱신 안 함
        self.admin: Client = create_client(
            url,
            service_role_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    def verify_token(self, token: str) -> AuthUser:
        try:
            response = self.client.auth.get_user(token)
        except AuthError as e:
            raise ServiceError(
                ErrorCodes.TOKEN_INVALID,
                "Invalid or expired token.",
                status_code=401,
                details=e.message,
            ) from e

        user = response.user if response else None
        if user is None:
            raise ServiceError(
                ErrorCodes.TOKEN_INVALID,
                "Invalid or expired token.",
                status_code=401,
            )
        return AuthUser(id=user.id, email=user.email)

    def create_user(self, email: str, password: str) -> str:
        try:
            response = self.admin.auth.admin.create_user(
                {"email": email, "password": password, "email_confirm": True}
            )
        except AuthError as e:
            if _is_duplicate_user_error(e):
                raise ServiceError(
                    ErrorCodes.USER_ALREADY_EXISTS, USER_EXISTS_MESSAGE, status_code=409
                ) from e
            raise ServiceError(ErrorCodes.STORE_ERROR, e.message, status_code=400) from e

        if response is None or response.user is None:
            raise ServiceError(
                ErrorCodes.SIGNUP_NO_USER,
                "User creation was successful, but no user data was returned.",
            )
        return response.user.id

    def delete_user(self, user_id: str) -> None:
        self.admin.auth.admin.delete_user(user_id)

    def create_profile(self, user_id: str, full_name: str, target_role: str) -> None:
        self.admin.table(PROFILES_TABLE).insert(
            {"id": user_id, "full_name": full_name, "target_role": target_role}
        ).execute()

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            if "invalid login credentials" in e.message.lower():
                raise ServiceError(
                    ErrorCodes.INVALID_CREDENTIALS,
                    INVALID_CREDENTIALS_MESSAGE,
                    status_code=401,
                ) from e
            raise ServiceError(ErrorCodes.STORE_ERROR, e.message, status_code=400) from e

        session = response.session.model_dump(mode="json") if response.session else {}
        return AuthSession(user_id=response.user.id, session=session)

    def sign_out(self, token: str) -> None:
        # 해당 사용자의 refresh token 전부 폐기
        self.admin.auth.admin.sign_out(token)

    def get_email(self, user_id: str) -> str:
        response = self.admin.auth.admin.get_user_by_id(user_id)
        return response.user.email or ""

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        response = (
            self.admin.table(PROFILES_TABLE)
            .select(PROFILE_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    def list_reports(self, user_id: str) -> list[dict[str, Any]]:
        response = (
            self.admin.table(REPORTS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return list(response.data or [])

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        response = (
            self.admin.table(PROFILES_TABLE)
            .update(fields)
            .eq("id", user_id)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    def update_password(self, user_id: str, new_password: str) -> None:
        self.admin.auth.admin.update_user_by_id(user_id, {"password": new_password})

    def insert_report(self, row: dict[str, Any]) -> dict[str, Any]:
        response = self.admin.table(REPORTS_TABLE).insert(row).execute()
        rows = response.data or []
        if not rows:
            raise ServiceError(
                ErrorCodes.REPORT_SAVE_FAILED,
                "The report was saved but the database returned no row.",
            )
        return rows[0]


def _is_duplicate_user_error(error: AuthError) -> bool:
    message = (error.message or "").lower()
    code = getattr(error, "code", None)
    return code in _DUPLICATE_USER_CODES or any(
        marker in message for marker in _DUPLICATE_USER_MARKERS
    )


# =============================================================================
# Service
# =============================================================================

class AccountService:
    """
    계정 유스케이스.

    AccountStore는 동기 I/O → run_in_threadpool로 이벤트 루프 블로킹 방지.
    """

    def __init__(self, store: AccountStore):
        self.store = store

    async def verify_token(self, token: str) -> AuthUser:
        return await run_in_threadpool(self.store.verify_token, token)

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        target_role: str | None = None,
    ) -> tuple[User, dict[str, Any]]:
        """
        회원가입.

        순서: auth 사용자 생성 → profile 생성 → 로그인 → 전체 프로필 조회
        auth 사용자 생성 이후 어느 단계든 실패하면 해당 사용자를 삭제하고 에러 전파.

        Returns:
            (User, session)
        """
        user_id = await run_in_threadpool(self.store.create_user, email, password)

        try:
            try:
                await run_in_threadpool(
                    self.store.create_profile, user_id, full_name, target_role or ""
                )
            except ServiceError:
                raise
            except Exception as e:
                raise ServiceError(
                    ErrorCodes.PROFILE_CREATE_FAILED,
                    "Failed to create user profile in the database. Please ensure "
                    f"the database schema is correct. Details: {_error_detail(e)}",
                    user_id=user_id,
                ) from e

            auth_session = await run_in_threadpool(self.store.sign_in, email, password)
            user = await self.fetch_full_user(user_id)
        except Exception:
            logger.info(f"Cleaning up partially created user: {user_id}")
            await self._cleanup_user(user_id)
            raise

        logger.info(f"User signed up: {user_id}")
        return user, auth_session.session

    async def _cleanup_user(self, user_id: str) -> None:
        try:
            await run_in_threadpool(self.store.delete_user, user_id)
        except Exception as e:
            # 원래 에러를 가리지 않도록 정리 실패는 로그만
            logger.error(f"Failed to clean up user {user_id}: {e}", exc_info=True)

    async def log_in(self, email: str, password: str) -> tuple[User, dict[str, Any]]:
        auth_session = await run_in_threadpool(self.store.sign_in, email, password)
        user = await self.fetch_full_user(auth_session.user_id)
        return user, auth_session.session

    async def log_out(self, token: str) -> None:
        await run_in_threadpool(self.store.sign_out, token)

    async def fetch_full_user(self, user_id: str) -> User:
        """auth email + profiles + reports(최신순) → User."""
        email = await run_in_threadpool(self.store.get_email, user_id)

        try:
            profile = await run_in_threadpool(self.store.get_profile, user_id)
        except Exception as e:
            raise _profile_not_found(user_id, _error_detail(e)) from e
        if profile is None:
            raise _profile_not_found(user_id, "no profile row")

        report_rows = await run_in_threadpool(self.store.list_reports, user_id)
        return user_from_rows(user_id, email, profile, report_rows)

    async def update_profile(
        self,
        user_id: str,
        full_name: str | None = None,
        target_role: str | None = None,
    ) -> ProfileUpdate:
        """전달된 필드만 갱신, updated_at은 항상 갱신."""
        fields: dict[str, Any] = {"updated_at": datetime.now(UTC).isoformat()}
        if full_name is not None:
            fields["full_name"] = full_name
        if target_role is not None:
            fields["target_role"] = target_role

        row = await run_in_threadpool(self.store.update_profile, user_id, fields)
        if row is None:
            raise _profile_not_found(user_id, "no profile row")
        return profile_from_row(row)

    async def update_password(self, user_id: str, new_password: str) -> None:
        await run_in_threadpool(self.store.update_password, user_id, new_password)

    async def save_report(self, user_id: str, report: Report) -> Report:
        row = report_to_row(user_id, report)
        saved = await run_in_threadpool(self.store.insert_report, row)
        logger.info(f"Report saved for user {user_id}: {saved.get('id')}")
        return report_from_row(saved)


def _profile_not_found(user_id: str, detail: str) -> ServiceError:
    return ServiceError(
        ErrorCodes.PROFILE_NOT_FOUND,
        "Could not find a user profile for the provided ID. This can happen if the "
        f"signup process was interrupted. Details: {detail}",
        status_code=404,
        user_id=user_id,
    )


def _error_detail(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)
