"""
Application Services.

역할:
- accounts: Supabase 인증/프로필/리포트
- prompts: 인터뷰 설정/요청 → 프롬프트 문자열
- response_schemas: Gemini 구조화 출력 스키마
"""

from .accounts import AccountService, AccountStore, AuthUser, SupabaseAccountStore

__all__ = [
    "AccountService",
    "AccountStore",
    "AuthUser",
    "SupabaseAccountStore",
]
