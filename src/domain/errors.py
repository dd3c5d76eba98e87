"""
Error definitions for the aftercare document service.

규칙:
- 조용한 실패 금지 → PolicyRejectError로 명시적 실패
- 단, AI 생성 실패는 예외: fallback 문구로 흡수 (services/generate.py)
- 검증 blocking 항목이 있으면 생성/렌더/확정 요청 거절
"""

from typing import Any


class PolicyRejectError(Exception):
    """
    워크플로우 정책 위반 시 발생하는 에러.

    즉시 중단이 필요한 경우에만 사용:
    - 지원하지 않는 tool_id
    - 입력값 형식 오류
    - 필수 항목 누락 상태에서 생성/렌더/확정 시도
    - 생성 결과에 입력값에 없는 수치 포함

    Usage:
        raise PolicyRejectError("REQUIRED_MISSING", field="school_name")
    """

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """API 응답/로그 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Request ===
    INVALID_TOOL = "INVALID_TOOL"
    INVALID_REQUEST = "INVALID_REQUEST"

    # === Not found ===
    DRAFT_NOT_FOUND = "DRAFT_NOT_FOUND"
    FIELD_NOT_FOUND = "FIELD_NOT_FOUND"
    DOC_NOT_FOUND = "DOC_NOT_FOUND"

    # === Validation ===
    REQUIRED_MISSING = "REQUIRED_MISSING"
    VALIDATION_BLOCKING = "VALIDATION_BLOCKING"

    # === Policy (AI 생성 검사) ===
    POLICY_VIOLATION_NEW_NUMBER = "POLICY_VIOLATION_NEW_NUMBER"

    # === Storage ===
    DRAFT_CORRUPT = "DRAFT_CORRUPT"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"

    # === Render ===
    RENDER_FAILED = "RENDER_FAILED"


ERROR_MESSAGES: dict[str, str] = {
    ErrorCodes.INVALID_TOOL: "지원하지 않는 tool_id입니다.",
    ErrorCodes.INVALID_REQUEST: "입력값 형식이 올바르지 않습니다.",
    ErrorCodes.DRAFT_NOT_FOUND: "초안을 찾을 수 없습니다.",
    ErrorCodes.FIELD_NOT_FOUND: "필드를 찾을 수 없습니다.",
    ErrorCodes.DOC_NOT_FOUND: "문서를 찾을 수 없습니다.",
    ErrorCodes.VALIDATION_BLOCKING: "필수 항목이 누락되었습니다.",
    ErrorCodes.POLICY_VIOLATION_NEW_NUMBER: "입력값에 없는 수치/날짜/금액이 생성되었습니다.",
    ErrorCodes.DRAFT_CORRUPT: "저장된 초안 파일을 읽을 수 없습니다.",
    ErrorCodes.STORE_LOCK_TIMEOUT: "저장소가 사용 중입니다. 잠시 후 다시 시도해주세요.",
    ErrorCodes.RENDER_FAILED: "문서 렌더링에 실패했습니다.",
}
