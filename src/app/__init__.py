"""
App layer: API 서버 (FastAPI).

역할:
- 초안 워크플로우 API, LLM 호출
- ⚠️ 수치 출처 판정 없음 (core/numeric에 위임)
"""
