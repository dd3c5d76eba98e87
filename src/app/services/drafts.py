"""
Draft Service: 초안 생성 → 입력 수정 → 필드 생성 → 검증 → 렌더 → 확정.

규칙:
- 입력값이 수치의 유일한 출처 → 생성 결과는 저장 전에 수치 출처 검사
  (위반 시 필드 저장 안 함, 근거 토큰과 함께 POLICY_VIOLATION_NEW_NUMBER)
- 검증 blocking 항목이 있으면 생성/렌더/확정 거절 (VALIDATION_BLOCKING)
- 필드 생성 1회 = GenerationLog 1개 (성공/fallback/거절 모두 초안에 기록)
- AI 호출은 락 밖에서, 결과 반영은 락 안에서 (read-modify-write)
"""

import copy
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from src.app.providers.base import LLMProvider
from src.app.services.generate import FieldGenerationResult
from src.app.services.generate import generate_all_fields as generate_all_field_results
from src.app.services.generate import generate_field as generate_field_result
from src.app.services.validate import validate_inputs
from src.core.ids import generate_doc_id, generate_draft_id
from src.core.logging import (
    append_generation_log,
    complete_generation_log,
    create_generation_log,
    emit_warning,
)
from src.core.numeric import check_policy_no_new_numbers
from src.core.store import DraftStore
from src.domain.constants import (
    DEFAULT_FIELD_MAX_TOKENS,
    DRAFT_STATUS_EDITING,
    DRAFT_STATUS_FINALIZED,
    DRAFT_STATUS_RENDERED,
    LIBRARY_DEFAULT_LIMIT,
    LIBRARY_MAX_LIMIT,
)
from src.domain.documents import get_document, parse_inputs, parse_tool_id
from src.domain.errors import ERROR_MESSAGES, ErrorCodes, PolicyRejectError
from src.domain.schemas import (
    Draft,
    FieldSource,
    GenerateFieldOptions,
    GeneratedField,
    LibraryDoc,
    RenderOutput,
    ToolId,
    ValidationResult,
)
from src.render.html import render_document_html
from src.utils.merge import merge_deep

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _require_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="title")
    return title.strip()


class DraftService:
    """
    초안 워크플로우 서비스.

    Usage:
        service = DraftService(store, provider)
        draft = service.create_draft("aftercare_plan", "2025 운영계획", inputs)
        draft, field = await service.generate_field(draft.draft_id, "purpose_text")
    """

    def __init__(
        self,
        store: DraftStore,
        provider: LLMProvider | None = None,
        max_tokens: int = DEFAULT_FIELD_MAX_TOKENS,
        include_appendix_tables: bool = True,
    ):
        """
        Args:
            store: 초안/라이브러리 저장소
            provider: LLM Provider (None이면 모든 생성이 fallback 문구)
            max_tokens: 필드 생성 최대 출력 토큰
            include_appendix_tables: 렌더 기본값 (요청에서 덮어쓰기 가능)
        """
        self.store = store
        self.provider = provider
        self.max_tokens = max_tokens
        self.include_appendix_tables = include_appendix_tables

    # =========================================================================
    # Draft CRUD
    # =========================================================================

    def create_draft(self, tool_id: ToolId | str, title: Any, inputs: Any) -> Draft:
        """
        초안 생성.

        Raises:
            PolicyRejectError: INVALID_TOOL, INVALID_REQUEST
        """
        tool = parse_tool_id(tool_id)
        title = _require_title(title)
        normalized = parse_inputs(tool, inputs if inputs is not None else {})

        now = _now()
        draft = Draft(
            draft_id=generate_draft_id(),
            tool_id=tool,
            title=title,
            inputs=normalized,
            created_at=now,
            updated_at=now,
            status=DRAFT_STATUS_EDITING,
            validation=validate_inputs(tool, normalized),
        )
        self.store.save_draft(draft)
        logger.info(f"Draft created: {draft.draft_id} ({tool.value})")
        return draft

    def get_draft(self, draft_id: str) -> Draft:
        """
        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND
        """
        draft = self.store.get_draft(draft_id)
        if draft is None:
            raise PolicyRejectError(ErrorCodes.DRAFT_NOT_FOUND, draft_id=draft_id)
        return draft

    def _update(self, draft_id: str, mutate: Callable[[Draft], None]) -> Draft:
        draft = self.store.update_draft(draft_id, mutate)
        if draft is None:
            raise PolicyRejectError(ErrorCodes.DRAFT_NOT_FOUND, draft_id=draft_id)
        return draft

    def update_draft(
        self,
        draft_id: str,
        title: Any = None,
        inputs: Any = None,
    ) -> Draft:
        """
        제목 변경 / 입력값 부분 수정 (deep merge).

        병합 결과도 형식 검사 후 재검증.

        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND, INVALID_REQUEST
        """
        if title is not None:
            title = _require_title(title)
        if inputs is not None and not isinstance(inputs, dict):
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="inputs")

        def mutate(draft: Draft) -> None:
            if title is not None:
                draft.title = title
            if inputs:
                draft.inputs = parse_inputs(draft.tool_id, merge_deep(draft.inputs, inputs))
            draft.validation = validate_inputs(draft.tool_id, draft.inputs)
            draft.status = DRAFT_STATUS_EDITING
            draft.updated_at = _now()

        return self._update(draft_id, mutate)

    # =========================================================================
    # Validation
    # =========================================================================

    def _ensure_not_blocked(self, draft: Draft) -> ValidationResult:
        """최신 입력값으로 검증, blocking 항목이 있으면 거절."""
        validation = validate_inputs(draft.tool_id, draft.inputs)
        if validation.is_blocked:
            raise PolicyRejectError(
                ErrorCodes.VALIDATION_BLOCKING,
                draft_id=draft.draft_id,
                blocking=[item.to_dict() for item in validation.blocking],
            )
        return validation

    def validate_draft(self, draft_id: str) -> Draft:
        """재검증 후 결과를 초안에 저장."""

        def mutate(draft: Draft) -> None:
            draft.validation = validate_inputs(draft.tool_id, draft.inputs)
            draft.updated_at = _now()

        return self._update(draft_id, mutate)

    # =========================================================================
    # Field Generation
    # =========================================================================

    def _require_field_key(self, draft: Draft, field_key: str) -> None:
        if field_key not in get_document(draft.tool_id).field_keys:
            raise PolicyRejectError(
                ErrorCodes.FIELD_NOT_FOUND,
                draft_id=draft.draft_id,
                field_key=field_key,
            )

    def _apply_result(
        self,
        draft: Draft,
        result: FieldGenerationResult,
        options: GenerateFieldOptions,
    ) -> tuple[GeneratedField | None, list[str]]:
        """
        생성 결과 1개를 초안에 반영 (수치 출처 검사 포함).

        Returns:
            (저장된 필드 또는 None, 위반 근거 토큰)
        """
        field_key = result.field_key
        generation_log = create_generation_log(draft.draft_id, draft.tool_id.value, field_key)

        existing = draft.generated_fields.get(field_key)
        if options.mode == "append" and existing is not None and existing.text:
            text = f"{existing.text}\n{result.text}"
            source = FieldSource.MIXED
        else:
            text = result.text
            source = FieldSource.AI

        check = check_policy_no_new_numbers(text, draft.inputs)
        if check.violated:
            emit_warning(
                generation_log,
                code=ErrorCodes.POLICY_VIOLATION_NEW_NUMBER,
                field=field_key,
                message=ERROR_MESSAGES[ErrorCodes.POLICY_VIOLATION_NEW_NUMBER],
                evidence=check.evidence,
            )
            outcome = "rejected"
            generated = None
            logger.warning(
                f"New numeric tokens in {draft.draft_id}/{field_key}: {check.evidence}"
            )
        else:
            outcome = "fallback" if result.fallback_used else "success"
            generated = GeneratedField(text=text, source=source, last_generated_at=_now())
            draft.generated_fields[field_key] = generated

        complete_generation_log(
            generation_log,
            result=outcome,
            model_used=result.model_used,
            prompt_hash=result.prompt_hash,
            fallback_used=result.fallback_used,
            error_message=result.error_message,
        )
        draft.generation_logs = append_generation_log(draft.generation_logs, generation_log)
        return generated, check.evidence

    async def generate_field(
        self,
        draft_id: str,
        field_key: str,
        options: GenerateFieldOptions | None = None,
    ) -> tuple[Draft, GeneratedField]:
        """
        서술형 필드 1개 생성 후 저장.

        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND, FIELD_NOT_FOUND,
                VALIDATION_BLOCKING, POLICY_VIOLATION_NEW_NUMBER
        """
        options = options or GenerateFieldOptions()
        draft = self.get_draft(draft_id)
        self._require_field_key(draft, field_key)
        self._ensure_not_blocked(draft)

        result = await generate_field_result(
            self.provider,
            draft.tool_id,
            field_key,
            draft.inputs,
            options,
            max_tokens=self.max_tokens,
        )

        outcome: dict[str, Any] = {}

        def mutate(current: Draft) -> None:
            # 생성 도중 입력값이 바뀌었을 수 있음: 저장 직전에 다시 검증
            self._ensure_not_blocked(current)
            generated, evidence = self._apply_result(current, result, options)
            outcome["field"] = generated
            outcome["evidence"] = evidence
            current.validation = validate_inputs(current.tool_id, current.inputs)
            current.updated_at = _now()

        updated = self._update(draft_id, mutate)

        if outcome["field"] is None:
            raise PolicyRejectError(
                ErrorCodes.POLICY_VIOLATION_NEW_NUMBER,
                field_key=field_key,
                evidence=outcome["evidence"],
            )
        return updated, outcome["field"]

    async def generate_all_fields(
        self,
        draft_id: str,
        options: GenerateFieldOptions | None = None,
        concurrent: bool = False,
    ) -> tuple[Draft, dict[str, list[str]]]:
        """
        문서 유형의 모든 서술형 필드 생성.

        수치 출처 검사를 통과하지 못한 필드는 저장하지 않고 결과에 보고.

        Returns:
            (저장된 초안, {거절된 field_key: 근거 토큰})
        """
        options = options or GenerateFieldOptions()
        draft = self.get_draft(draft_id)
        self._ensure_not_blocked(draft)

        results = await generate_all_field_results(
            self.provider,
            draft.tool_id,
            draft.inputs,
            options,
            concurrent=concurrent,
        )

        rejected: dict[str, list[str]] = {}

        def mutate(current: Draft) -> None:
            self._ensure_not_blocked(current)
            for field_key, result in results.items():
                generated, evidence = self._apply_result(current, result, options)
                if generated is None:
                    rejected[field_key] = evidence
            current.validation = validate_inputs(current.tool_id, current.inputs)
            current.updated_at = _now()

        updated = self._update(draft_id, mutate)
        logger.info(
            f"Generated {len(results) - len(rejected)}/{len(results)} fields for {draft_id}"
        )
        return updated, rejected

    def set_field_text(self, draft_id: str, field_key: str, text: Any) -> Draft:
        """
        사용자 직접 수정 (source=user).

        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND, FIELD_NOT_FOUND, INVALID_REQUEST
        """
        if not isinstance(text, str):
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="text")

        def mutate(draft: Draft) -> None:
            self._require_field_key(draft, field_key)
            draft.generated_fields[field_key] = GeneratedField(
                text=text,
                source=FieldSource.USER,
                last_generated_at=_now(),
            )
            draft.status = DRAFT_STATUS_EDITING
            draft.updated_at = _now()

        return self._update(draft_id, mutate)

    # =========================================================================
    # Render / Finalize
    # =========================================================================

    def render_draft(
        self,
        draft_id: str,
        include_appendix_tables: bool | None = None,
    ) -> tuple[Draft, RenderOutput]:
        """
        초안 → HTML.

        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND, VALIDATION_BLOCKING
        """
        if include_appendix_tables is None:
            include_appendix_tables = self.include_appendix_tables

        output: dict[str, RenderOutput] = {}

        def mutate(draft: Draft) -> None:
            draft.validation = self._ensure_not_blocked(draft)
            output["render"] = render_document_html(
                draft.tool_id,
                draft.inputs,
                draft.generated_fields,
                include_appendix_tables,
            )
            draft.status = DRAFT_STATUS_RENDERED
            draft.updated_at = _now()

        updated = self._update(draft_id, mutate)
        return updated, output["render"]

    def finalize_draft(self, draft_id: str, title: Any = None) -> LibraryDoc:
        """
        초안 확정 → 라이브러리 문서 (입력값/생성 필드 스냅샷).

        Raises:
            PolicyRejectError: DRAFT_NOT_FOUND, VALIDATION_BLOCKING, INVALID_REQUEST
        """
        if title is not None:
            title = _require_title(title)

        with self.store.locked():
            draft = self.get_draft(draft_id)
            self._ensure_not_blocked(draft)

            doc = LibraryDoc(
                doc_id=generate_doc_id(),
                tool_id=draft.tool_id,
                title=title or draft.title,
                inputs=copy.deepcopy(draft.inputs),
                created_at=_now(),
                generated_fields=dict(draft.generated_fields),
                source_draft_id=draft.draft_id,
            )
            self.store.save_library_doc(doc)

            draft.title = doc.title
            draft.status = DRAFT_STATUS_FINALIZED
            draft.updated_at = _now()
            self.store.save_draft(draft)

        logger.info(f"Draft finalized: {draft_id} → {doc.doc_id}")
        return doc

    # =========================================================================
    # Library
    # =========================================================================

    def list_library(
        self,
        tool_id: ToolId | str | None = None,
        limit: int = LIBRARY_DEFAULT_LIMIT,
        cursor: str | None = None,
    ) -> tuple[list[LibraryDoc], str | None]:
        """
        라이브러리 목록 (최신순, cursor 페이지네이션).

        Args:
            tool_id: 문서 유형 필터
            limit: 페이지 크기 (1..100으로 보정)
            cursor: 이전 페이지 마지막 doc_id (모르는 값이면 처음부터)

        Returns:
            (문서 목록, next_cursor 또는 None)
        """
        tool_value = parse_tool_id(tool_id).value if tool_id else None
        limit = max(1, min(limit, LIBRARY_MAX_LIMIT))

        docs = self.store.list_library(tool_value)
        start = 0
        if cursor:
            ids = [doc.doc_id for doc in docs]
            start = ids.index(cursor) + 1 if cursor in ids else 0

        items = docs[start:start + limit]
        has_more = start + limit < len(docs)
        next_cursor = items[-1].doc_id if items and has_more else None
        return items, next_cursor

    def get_library_doc(
        self,
        doc_id: str,
        include_appendix_tables: bool = True,
    ) -> tuple[LibraryDoc, RenderOutput]:
        """
        라이브러리 문서 + 렌더 결과.

        Raises:
            PolicyRejectError: DOC_NOT_FOUND
        """
        doc = self.store.get_library_doc(doc_id)
        if doc is None:
            raise PolicyRejectError(ErrorCodes.DOC_NOT_FOUND, doc_id=doc_id)

        render = render_document_html(
            doc.tool_id,
            doc.inputs,
            doc.generated_fields,
            include_appendix_tables,
        )
        return doc, render
