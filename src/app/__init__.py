"""
App layer: REST API 서버 (FastAPI).

역할:
- 인증/프로필/리포트 → Supabase 프록시
- 인터뷰/퀴즈/코딩 → Gemini 프록시 (프롬프트 구성 + JSON 정리)
- ⚠️ 비밀 키는 서버에만 존재 (클라이언트는 Bearer 토큰만 보유)
"""
