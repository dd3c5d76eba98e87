"""
Draft Routes: 초안 작성 워크플로우 API.

- POST  /v1/tools/{tool_id}/drafts → 초안 생성 (201)
- GET   /v1/drafts/{draft_id} → 초안 조회
- PATCH /v1/drafts/{draft_id} → 제목 변경 / 입력값 병합
- PUT   /v1/drafts/{draft_id}/fields/{field_key} → 사용자 수정 텍스트
- POST  /v1/drafts/{draft_id}/fields/{field_key}:generate → 필드 1개 생성
- POST  /v1/drafts/{draft_id}/fields:generate_all → 전체 필드 생성
- POST  /v1/drafts/{draft_id}:validate → 검증
- POST  /v1/drafts/{draft_id}:render → HTML 렌더
- POST  /v1/drafts/{draft_id}:finalize → 라이브러리 확정 (201)
"""

from typing import Any

from fastapi import APIRouter, Body, Request

from src.app.routes.common import get_draft_service, optional_body, to_http_exception
from src.domain.errors import ErrorCodes, PolicyRejectError
from src.domain.schemas import GenerateFieldOptions

api_router = APIRouter()


# =============================================================================
# Draft CRUD
# =============================================================================

@api_router.post("/tools/{tool_id}/drafts", status_code=201)
async def create_draft(
    request: Request,
    tool_id: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    초안 생성.

    Body:
        {"title": str, "inputs": {...}}
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        draft = service.create_draft(tool_id, body.get("title"), body.get("inputs"))
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {"draft": draft.to_dict()}


@api_router.get("/drafts/{draft_id}")
async def get_draft(request: Request, draft_id: str) -> dict[str, Any]:
    """초안 조회."""
    service = get_draft_service(request)
    try:
        draft = service.get_draft(draft_id)
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {"draft": draft.to_dict()}


@api_router.patch("/drafts/{draft_id}")
async def update_draft(
    request: Request,
    draft_id: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    초안 수정.

    Body:
        {"title"?: str, "inputs"?: {...}} (inputs는 기존 값에 deep merge)
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        draft = service.update_draft(
            draft_id,
            title=body.get("title"),
            inputs=body.get("inputs"),
        )
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {"draft": draft.to_dict()}


# =============================================================================
# Fields
# =============================================================================

@api_router.put("/drafts/{draft_id}/fields/{field_key}")
async def set_field_text(
    request: Request,
    draft_id: str,
    field_key: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    사용자 수정 텍스트 저장.

    Body:
        {"text": str}
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        draft = service.set_field_text(draft_id, field_key, body.get("text"))
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "field_key": field_key,
        "field": draft.generated_fields[field_key].to_dict(),
        "draft": draft.to_dict(),
    }


@api_router.post("/drafts/{draft_id}/fields/{field_key}:generate")
async def generate_field(
    request: Request,
    draft_id: str,
    field_key: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    서술형 필드 1개 AI 생성.

    Body:
        {"mode"?: "overwrite"|"append", "style"?: "official",
         "length"?: "short"|"medium"|"long", "user_hint"?: str}

    Raises:
        422 POLICY_VIOLATION_NEW_NUMBER: 생성 텍스트에 입력값에 없는 수치 (evidence 포함)
    """
    service = get_draft_service(request)
    try:
        options = GenerateFieldOptions.from_dict(optional_body(payload))
        draft, generated = await service.generate_field(draft_id, field_key, options)
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "field_key": field_key,
        "result": {
            **generated.to_dict(),
            "policy_checks": {"new_numeric_detected": False},
        },
        "validation": draft.validation.to_dict(),
    }


@api_router.post("/drafts/{draft_id}/fields:generate_all")
async def generate_all_fields(
    request: Request,
    draft_id: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    전체 서술형 필드 생성.

    수치 출처 검사 위반 필드는 저장하지 않고 rejected에 근거와 함께 보고.

    Body:
        generate 옵션 + {"concurrent"?: bool}
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        options = GenerateFieldOptions.from_dict(body)
        concurrent = body.get("concurrent", False)
        if not isinstance(concurrent, bool):
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="concurrent")
        draft, rejected = await service.generate_all_fields(
            draft_id,
            options,
            concurrent=concurrent,
        )
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "generated_fields": {
            key: field.to_dict() for key, field in draft.generated_fields.items()
        },
        "rejected": {key: {"evidence": evidence} for key, evidence in rejected.items()},
        "validation": draft.validation.to_dict(),
    }


# =============================================================================
# Validate / Render / Finalize
# =============================================================================

@api_router.post("/drafts/{draft_id}:validate")
async def validate_draft(request: Request, draft_id: str) -> dict[str, Any]:
    """필수 입력 검증."""
    service = get_draft_service(request)
    try:
        draft = service.validate_draft(draft_id)
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {"validation": draft.validation.to_dict()}


@api_router.post("/drafts/{draft_id}:render")
async def render_draft(
    request: Request,
    draft_id: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    HTML 렌더.

    Body:
        {"include_appendix_tables"?: bool}
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        include = body.get("include_appendix_tables")
        draft, output = service.render_draft(
            draft_id,
            include_appendix_tables=None if include is None else bool(include),
        )
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "render": {"title": draft.title, **output.to_dict()},
        "validation": draft.validation.to_dict(),
    }


@api_router.post("/drafts/{draft_id}:finalize", status_code=201)
async def finalize_draft(
    request: Request,
    draft_id: str,
    payload: Any = Body(None),
) -> dict[str, Any]:
    """
    초안 확정 → 라이브러리 저장.

    Body:
        {"title"?: str}
    """
    service = get_draft_service(request)
    try:
        body = optional_body(payload)
        doc = service.finalize_draft(draft_id, title=body.get("title"))
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {"doc": doc.to_summary()}
