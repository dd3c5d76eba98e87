"""
Library Routes: 확정 문서 조회.

- GET /v1/library → 목록 (최신순, cursor 페이지네이션)
- GET /v1/library/{doc_id} → 상세 + 렌더 결과
"""

from typing import Any

from fastapi import APIRouter, Request

from src.app.routes.common import get_draft_service, to_http_exception
from src.domain.constants import LIBRARY_DEFAULT_LIMIT
from src.domain.errors import PolicyRejectError

api_router = APIRouter()


@api_router.get("")
async def list_library(
    request: Request,
    tool_id: str | None = None,
    limit: int = LIBRARY_DEFAULT_LIMIT,
    cursor: str | None = None,
) -> dict[str, Any]:
    """
    라이브러리 목록.

    Query:
        tool_id: 문서 유형 필터
        limit: 페이지 크기 (최대 100)
        cursor: 이전 응답의 next_cursor
    """
    service = get_draft_service(request)
    try:
        items, next_cursor = service.list_library(tool_id=tool_id, limit=limit, cursor=cursor)
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "items": [doc.to_summary() for doc in items],
        "next_cursor": next_cursor,
    }


@api_router.get("/{doc_id}")
async def get_library_doc(request: Request, doc_id: str) -> dict[str, Any]:
    """라이브러리 문서 상세 (부록 표 포함 렌더)."""
    service = get_draft_service(request)
    try:
        doc, render = service.get_library_doc(doc_id)
    except PolicyRejectError as e:
        raise to_http_exception(e) from e

    return {
        "doc": doc.to_dict(),
        "render": {"title": doc.title, **render.to_dict()},
    }
