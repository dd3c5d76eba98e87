"""
Application Services.

역할:
- validate: 문서 유형별 필수 입력 검증
- prompts: 필드 생성 프롬프트 구성
- generate: 서술형 필드 AI 생성 (실패 시 fallback)
- drafts: 초안 워크플로우 (생성/수정/생성/렌더/확정)
"""

from .drafts import DraftService
from .generate import FieldGenerationResult, generate_all_fields, generate_field_text
from .prompts import build_prompt
from .validate import validate_inputs

__all__ = [
    "DraftService",
    "FieldGenerationResult",
    "generate_all_fields",
    "generate_field_text",
    "build_prompt",
    "validate_inputs",
]
