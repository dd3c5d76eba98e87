"""
라우트 공통: 서비스 조회, PolicyRejectError → HTTPException 변환.
"""

from typing import Any

from fastapi import HTTPException, Request

from src.app.services.drafts import DraftService
from src.domain.errors import ErrorCodes, PolicyRejectError

# 에러 코드 → HTTP 상태 (나머지는 500)
STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.INVALID_TOOL: 400,
    ErrorCodes.INVALID_REQUEST: 400,
    ErrorCodes.DRAFT_NOT_FOUND: 404,
    ErrorCodes.FIELD_NOT_FOUND: 404,
    ErrorCodes.DOC_NOT_FOUND: 404,
    ErrorCodes.POLICY_VIOLATION_NEW_NUMBER: 422,
    ErrorCodes.VALIDATION_BLOCKING: 422,
}


def get_draft_service(request: Request) -> DraftService:
    """Request에서 DraftService 가져오기."""
    service: DraftService = request.app.state.draft_service
    return service


def to_http_exception(error: PolicyRejectError) -> HTTPException:
    """
    PolicyRejectError → HTTPException.

    detail: {"code", "message", ...context}
    """
    return HTTPException(
        status_code=STATUS_BY_CODE.get(error.code, 500),
        detail=error.to_dict(),
    )


def optional_body(payload: Any) -> dict[str, Any]:
    """요청 body (없으면 빈 dict, 객체가 아니면 INVALID_REQUEST)."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise to_http_exception(PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="body"))
    return payload
