"""
Validation Service: 문서 유형별 필수 입력 검증.

규칙:
- 필수 항목 누락 = blocking (생성/렌더/확정 차단)
- warnings 채널은 항상 존재 (현재 규칙 없음, 범위 불일치 등 확장용)
- 호출할 때마다 새로 계산 (저장은 호출자 몫)
"""

from collections.abc import Iterable
from typing import Any

from src.domain.documents import get_document
from src.domain.errors import ErrorCodes
from src.domain.schemas import ToolId, ValidationItem, ValidationResult


def is_missing(value: Any) -> bool:
    """
    누락 판정.

    None, 공백만 있는 문자열, 빈 리스트 → 누락
    0, False 등은 값이 있는 것으로 봄
    """
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, list) and not value:
        return True
    return False


def validate_inputs(
    tool_id: ToolId | str,
    inputs: dict[str, Any],
    required_fields: Iterable[str] | None = None,
) -> ValidationResult:
    """
    입력값 검증.

    Args:
        tool_id: 문서 유형
        inputs: 입력값
        required_fields: 필수 항목 목록 (None이면 문서 유형 기본값)

    Returns:
        ValidationResult (blocking: 누락 필드마다 1개, 필수 목록 순서)

    Raises:
        PolicyRejectError: INVALID_TOOL
    """
    if required_fields is None:
        required_fields = get_document(tool_id).required_fields

    blocking: list[ValidationItem] = []
    warnings: list[ValidationItem] = []

    for field_name in required_fields:
        if is_missing(inputs.get(field_name)):
            blocking.append(
                ValidationItem(
                    code=ErrorCodes.REQUIRED_MISSING,
                    field=field_name,
                    message=f"{field_name} 값이 필요합니다.",
                )
            )

    return ValidationResult(blocking=blocking, warnings=warnings)
