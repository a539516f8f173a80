"""
FastAPI Routes.

API 라우트만 (JSON). 프론트엔드 SPA는 별도 배포.
"""

from . import auth, gemini, profile, reports

__all__ = ["auth", "gemini", "profile", "reports"]
