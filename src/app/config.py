"""
설정 로드.

- default.yaml: 비밀이 아닌 기본값 (모델명, 포트, CORS, 로깅)
- 환경변수(.env): API 키, Supabase 접속 정보
- 우선순위: 환경변수 > default.yaml > 코드 기본값

필수 환경변수가 하나라도 없으면 ConfigError → 서버가 시작되지 않음 (fail-fast).
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.domain.constants import DEFAULT_GEMINI_MODEL

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "default.yaml"

REQUIRED_ENV_VARS: tuple[str, ...] = (
    "API_KEY",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
)


class ConfigError(Exception):
    """설정 누락/오류."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        self.missing = missing or []
        super().__init__(message)


@dataclass
class Settings:
    """애플리케이션 설정."""

    # Secrets (환경변수)
    gemini_api_key: str
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    # LLM
    model: str = DEFAULT_GEMINI_MODEL
    fallback_model: str | None = None
    max_retries: int = 2
    initial_delay: float = 0.5

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 10 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    mask_sensitive_logs: bool = True


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """설정 파일 로드 (없으면 빈 dict)."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[str, Any] | None = yaml.safe_load(f)
        return data or {}


def load_settings(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """
    default.yaml + 환경변수 → Settings.

    Args:
        config_path: YAML 경로 (None이면 프로젝트 루트 default.yaml)
        env: 환경변수 매핑 (None이면 .env 로드 후 os.environ)

    Raises:
        ConfigError: 필수 환경변수 누락 또는 숫자 설정 파싱 실패
    """
    if env is None:
        load_dotenv()
        env = os.environ

    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "The server will not start.",
            missing=missing,
        )

    config = load_config(config_path)
    llm = config.get("llm") or {}
    server = config.get("server") or {}
    logging_cfg = config.get("logging") or {}

    try:
        port = int(env.get("PORT") or server.get("port", 3001))
        max_retries = int(llm.get("max_retries", 2))
        initial_delay = float(llm.get("initial_delay", 0.5))
        max_body_bytes = int(server.get("max_body_bytes", 10 * 1024 * 1024))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    cors_origins = server.get("cors_origins") or ["*"]
    if isinstance(cors_origins, str):
        cors_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

    return Settings(
        gemini_api_key=env["API_KEY"],
        supabase_url=env["SUPABASE_URL"],
        supabase_anon_key=env["SUPABASE_ANON_KEY"],
        supabase_service_role_key=env["SUPABASE_SERVICE_ROLE_KEY"],
        model=env.get("GEMINI_MODEL") or llm.get("model") or DEFAULT_GEMINI_MODEL,
        fallback_model=llm.get("fallback_model") or None,
        max_retries=max_retries,
        initial_delay=initial_delay,
        host=server.get("host", "127.0.0.1"),
        port=port,
        cors_origins=list(cors_origins),
        max_body_bytes=max_body_bytes,
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
        mask_sensitive_logs=bool(logging_cfg.get("mask_sensitive", True)),
    )
