"""
Prompt Builder: 문서 유형 + 필드 키 + 입력값 → 생성 지시문.

규칙:
- 같은 인자 → 같은 문자열 (I/O 없음)
- 지시문 자체에 문서 사실에 해당하는 수치를 넣지 않음
  (길이/문체 옵션만 예외, 문서 사실 아님)
"""

import json
from typing import Any

from src.domain.documents import get_document
from src.domain.schemas import GenerateFieldOptions, ToolId

PROMPT_TEMPLATE = """{role}
다음 입력값만을 사용해 '{field_key}' 서술형 항목을 작성하세요.
입력값에 없는 수치/날짜/금액/인원은 절대 생성하지 마세요.

[입력값]
{inputs_json}

[작성 지침]
- 공식 문서 어투 사용
- 입력값 기반으로만 서술
- 길이: {length}
- 사용자 힌트: {user_hint}

텍스트만 출력하세요:"""

NO_HINT = "(없음)"


def serialize_inputs(inputs: Any) -> str:
    """입력값 → 프롬프트용 JSON (들여쓰기 2, 한글 유지)."""
    return json.dumps(inputs, ensure_ascii=False, indent=2, default=str)


def build_prompt(
    tool_id: ToolId | str,
    field_key: str,
    inputs: dict[str, Any],
    options: GenerateFieldOptions | None = None,
) -> str:
    """
    필드 생성 프롬프트 구성.

    Args:
        tool_id: 문서 유형 (역할 문구 결정)
        field_key: 생성할 서술형 필드 키
        inputs: 입력값 스냅샷
        options: 길이/사용자 힌트 (None이면 medium, 힌트 없음)

    Returns:
        프롬프트 문자열
    """
    document = get_document(tool_id)
    options = options or GenerateFieldOptions()

    return PROMPT_TEMPLATE.format(
        role=document.prompt_role,
        field_key=field_key,
        inputs_json=serialize_inputs(inputs),
        length=options.length,
        user_hint=options.user_hint or NO_HINT,
    )
