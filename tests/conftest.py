"""
Pytest fixtures for the interview backend tests.

구성:
- FakeAccountStore: Supabase 없이 동작하는 in-memory AccountStore
- FakeLLMProvider: 미리 넣어둔 응답을 순서대로 돌려주는 LLMProvider
- client: 위 두 가짜를 주입한 FastAPI TestClient
"""

import itertools
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
import yaml
from fastapi.testclient import TestClient

from src.app.config import Settings
from src.app.main import create_app
from src.app.providers.base import (
    Contents,
    GenerationError,
    GenerationResult,
    LLMProvider,
    contents_fingerprint,
)
from src.app.services.accounts import (
    INVALID_CREDENTIALS_MESSAGE,
    USER_EXISTS_MESSAGE,
    AccountStore,
    AuthSession,
    AuthUser,
)
from src.domain.errors import ErrorCodes, ServiceError

# =============================================================================
# Fakes
# =============================================================================


class FakeAccountStore(AccountStore):
    """
    in-memory AccountStore.

    - 토큰 형식: "token-<user_id>"
    - fail_on에 메서드 이름을 넣으면 해당 호출이 RuntimeError
    """

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.reports: list[dict[str, Any]] = []
        self.signed_out: list[str] = []
        self.deleted: list[str] = []
        self.fail_on: set[str] = set()
        self._ids = itertools.count(1)

    def _check(self, name: str) -> None:
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def verify_token(self, token: str) -> AuthUser:
        self._check("verify_token")
        user_id = token.removeprefix("token-")
        if not token.startswith("token-") or user_id not in self.users:
            raise ServiceError(
                ErrorCodes.TOKEN_INVALID,
                "Invalid or expired token.",
                status_code=401,
                details="invalid JWT",
            )
        return AuthUser(id=user_id, email=self.users[user_id]["email"])

    def create_user(self, email: str, password: str) -> str:
        self._check("create_user")
        if any(user["email"] == email for user in self.users.values()):
            raise ServiceError(ErrorCodes.USER_ALREADY_EXISTS, USER_EXISTS_MESSAGE, status_code=409)
        user_id = f"user-{next(self._ids)}"
        self.users[user_id] = {"email": email, "password": password}
        return user_id

    def delete_user(self, user_id: str) -> None:
        self._check("delete_user")
        self.deleted.append(user_id)
        self.users.pop(user_id, None)
        self.profiles.pop(user_id, None)

    def create_profile(self, user_id: str, full_name: str, target_role: str) -> None:
        self._check("create_profile")
        self.profiles[user_id] = {"full_name": full_name, "target_role": target_role}

    def sign_in(self, email: str, password: str) -> AuthSession:
        self._check("sign_in")
        for user_id, user in self.users.items():
            if user["email"] == email and user["password"] == password:
                return AuthSession(
                    user_id=user_id,
                    session={"access_token": f"token-{user_id}", "token_type": "bearer"},
                )
        raise ServiceError(
            ErrorCodes.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE, status_code=401
        )

    def sign_out(self, token: str) -> None:
        self._check("sign_out")
        self.signed_out.append(token)

    def get_email(self, user_id: str) -> str:
        return self.users[user_id]["email"]

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        self._check("get_profile")
        profile = self.profiles.get(user_id)
        return dict(profile) if profile is not None else None

    def list_reports(self, user_id: str) -> list[dict[str, Any]]:
        rows = [row for row in self.reports if row["user_id"] == user_id]
        return sorted(rows, key=lambda row: row["created_at"], reverse=True)

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        self._check("update_profile")
        if user_id not in self.profiles:
            return None
        self.profiles[user_id].update(fields)
        return dict(self.profiles[user_id])

    def update_password(self, user_id: str, new_password: str) -> None:
        self._check("update_password")
        self.users[user_id]["password"] = new_password

    def insert_report(self, row: dict[str, Any]) -> dict[str, Any]:
        self._check("insert_report")
        saved = {
            **row,
            "id": len(self.reports) + 1,
            "created_at": datetime(2024, 1, 1, 0, 0, len(self.reports), tzinfo=UTC).isoformat(),
        }
        self.reports.append(saved)
        return saved

    # 테스트 편의
    def add_user(self, email: str, password: str, full_name: str = "", target_role: str = "") -> str:
        user_id = self.create_user(email, password)
        self.create_profile(user_id, full_name, target_role)
        return user_id


class FakeLLMProvider(LLMProvider):
    """
    스크립트된 LLM.

    - texts / jsons 큐에서 순서대로 꺼냄 (비어 있으면 기본값)
    - 큐 항목이 Exception이면 raise
    - calls에 (kind, contents, extra) 기록
    """

    def __init__(self) -> None:
        self.texts: list[Any] = []
        self.jsons: list[Any] = []
        self.calls: list[tuple[str, Contents, Any]] = []

    async def generate_text(
        self,
        contents: Contents,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        self.calls.append(("text", contents, system_instruction))
        item = self.texts.pop(0) if self.texts else "fake response"
        if isinstance(item, Exception):
            raise item
        return GenerationResult(
            text=item,
            model_requested="fake-model",
            model_used="fake-model",
            prompt_hash=contents_fingerprint(contents, system_instruction),
        )

    async def generate_json(
        self,
        contents: Contents,
        schema: dict[str, Any],
    ) -> dict[str, Any]:
        self.calls.append(("json", contents, schema))
        item = self.jsons.pop(0) if self.jsons else {}
        if isinstance(item, Exception):
            raise item
        return item


# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def required_env() -> dict[str, str]:
    """필수 환경변수 (가짜 값)."""
    return {
        "API_KEY": "test-gemini-key",
        "SUPABASE_URL": "https://example.supabase.co",
        "SUPABASE_ANON_KEY": "anon-key",
        "SUPABASE_SERVICE_ROLE_KEY": "service-role-key",
    }


@pytest.fixture
def settings() -> Settings:
    """테스트 설정 (작은 body 상한)."""
    return Settings(
        gemini_api_key="test-gemini-key",
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-role-key",
        max_body_bytes=64 * 1024,
        log_level="WARNING",
    )


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def store() -> FakeAccountStore:
    return FakeAccountStore()


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def client(
    settings: Settings,
    store: FakeAccountStore,
    llm: FakeLLMProvider,
) -> Generator[TestClient, None, None]:
    """가짜 저장소/LLM을 주입한 TestClient (lifespan 실행)."""
    app = create_app(settings=settings, store=store, llm=llm)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_id(store: FakeAccountStore) -> str:
    """가입된 사용자."""
    return store.add_user("ada@example.com", "s3cret-pass", "Ada Lovelace", "Backend Engineer")


@pytest.fixture
def auth_headers(user_id: str) -> dict[str, str]:
    """user_id 사용자의 Authorization 헤더."""
    return {"Authorization": f"Bearer token-{user_id}"}


@pytest.fixture
def generation_error() -> GenerationError:
    return GenerationError(ErrorCodes.GENERATION_FAILED, "The AI service is temporarily unavailable.")
