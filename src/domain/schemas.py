"""
Data schemas for the aftercare document service.

규칙:
- 입력값(Input Record)이 수치/날짜/시간의 유일한 출처
- 생성 필드는 필드 키별 1개 (GeneratedField)
- 검증 결과/렌더 결과는 입력값에서 파생되는 값 (별도 저장 엔티티 아님)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.constants import (
    DRAFT_STATUS_EDITING,
    GENERATION_LENGTHS,
    GENERATION_MODES,
    GENERATION_STYLES,
    TOOL_AFTERCARE_PLAN,
    TOOL_AFTERCARE_REPORT,
)
from src.domain.errors import ErrorCodes, PolicyRejectError

# =============================================================================
# Enums
# =============================================================================

class ToolId(str, Enum):
    """
    문서 유형 (tagged union 판별자).

    새 문서 유형 추가 시 src/domain/documents.py 레지스트리에도 등록해야 함
    (테스트에서 누락 검사).
    """
    AFTERCARE_PLAN = TOOL_AFTERCARE_PLAN      # 운영계획서
    AFTERCARE_REPORT = TOOL_AFTERCARE_REPORT  # 운영결과보고


class FieldSource(str, Enum):
    """생성 필드 출처."""
    AI = "ai"
    USER = "user"
    MIXED = "mixed"  # AI 생성 + 기존 텍스트 이어붙임


# =============================================================================
# Generated Field
# =============================================================================

@dataclass
class GeneratedField:
    """
    서술형 항목 1개.

    생성 또는 사용자 수정 시 만들어지고, 재생성 시 갱신됨.
    삭제는 호출자가 결정 (자동 삭제 없음).
    """
    text: str
    source: FieldSource = FieldSource.AI
    last_generated_at: str | None = None  # ISO 8601

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "text": self.text,
            "source": self.source.value,
        }
        if self.last_generated_at is not None:
            result["last_generated_at"] = self.last_generated_at
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratedField":
        return cls(
            text=str(data.get("text", "")),
            source=FieldSource(data.get("source", FieldSource.AI.value)),
            last_generated_at=data.get("last_generated_at"),
        )


# =============================================================================
# Validation
# =============================================================================

@dataclass
class ValidationItem:
    """검증 항목 (blocking 또는 warning)."""
    code: str
    field: str
    message: str
    evidence: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "code": self.code,
            "field": self.field,
            "message": self.message,
        }
        if self.evidence is not None:
            result["evidence"] = list(self.evidence)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationItem":
        return cls(
            code=data["code"],
            field=data["field"],
            message=data["message"],
            evidence=data.get("evidence"),
        )


@dataclass
class ValidationResult:
    """
    검증 결과.

    blocking: 문서 생성/확정을 막는 항목
    warnings: 참고용 (절대 막지 않음)
    """
    blocking: list[ValidationItem] = field(default_factory=list)
    warnings: list[ValidationItem] = field(default_factory=list)

    @property
    def is_blocked(self) -> bool:
        return bool(self.blocking)

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocking": [item.to_dict() for item in self.blocking],
            "warnings": [item.to_dict() for item in self.warnings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ValidationResult":
        data = data or {}
        return cls(
            blocking=[ValidationItem.from_dict(i) for i in data.get("blocking", [])],
            warnings=[ValidationItem.from_dict(i) for i in data.get("warnings", [])],
        )


# =============================================================================
# Generation Options
# =============================================================================

@dataclass
class GenerateFieldOptions:
    """
    필드 생성 옵션.

    length/style은 문체 조절용이며 문서의 수치 사실이 아님.
    """
    mode: str = "overwrite"  # overwrite, append
    style: str = "official"
    length: str = "medium"  # short, medium, long
    user_hint: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GenerateFieldOptions":
        """
        요청 body → 옵션.

        Raises:
            PolicyRejectError: INVALID_REQUEST (허용되지 않은 값)
        """
        data = data or {}
        options = cls(
            mode=data.get("mode") or "overwrite",
            style=data.get("style") or "official",
            length=data.get("length") or "medium",
            user_hint=data.get("user_hint") or None,
        )

        checks = (
            ("mode", options.mode, GENERATION_MODES),
            ("style", options.style, GENERATION_STYLES),
            ("length", options.length, GENERATION_LENGTHS),
        )
        for name, value, allowed in checks:
            if value not in allowed:
                raise PolicyRejectError(
                    ErrorCodes.INVALID_REQUEST,
                    field=name,
                    value=value,
                    allowed=list(allowed),
                )

        if options.user_hint is not None and not isinstance(options.user_hint, str):
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, field="user_hint")

        return options


# =============================================================================
# Render Output
# =============================================================================

@dataclass(frozen=True)
class TocEntry:
    """목차 항목."""
    id: str
    title: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title}


@dataclass
class RenderOutput:
    """렌더링 결과 (입력값 + 생성 필드에서 파생)."""
    html: str
    toc: list[TocEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": "html",
            "toc": [entry.to_dict() for entry in self.toc],
            "html": self.html,
        }


# =============================================================================
# Generation Logging Schemas
# =============================================================================

@dataclass
class WarningLog:
    """
    경고 로그.

    필수 컨텍스트: level, code, field, message (+ evidence)
    """
    level: str = "warning"
    code: str = ""
    field: str = ""
    message: str = ""
    evidence: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "field": self.field,
            "message": self.message,
            "evidence": self.evidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WarningLog":
        return cls(
            level=data.get("level", "warning"),
            code=data.get("code", ""),
            field=data.get("field", ""),
            message=data.get("message", ""),
            evidence=data.get("evidence"),
        )


@dataclass
class GenerationLog:
    """
    필드 생성 실행 로그.

    필드 생성 1회 = 로그 1개. 초안에 함께 저장됨.
    """
    run_id: str
    draft_id: str
    tool_id: str
    field_key: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, fallback, rejected

    # 모델 추적
    model_used: str | None = None
    prompt_hash: str | None = None
    fallback_used: bool = False
    error_message: str | None = None

    warnings: list[WarningLog] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "draft_id": self.draft_id,
            "tool_id": self.tool_id,
            "field_key": self.field_key,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "model_used": self.model_used,
            "prompt_hash": self.prompt_hash,
            "fallback_used": self.fallback_used,
            "error_message": self.error_message,
            "warnings": [w.to_dict() for w in self.warnings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationLog":
        return cls(
            run_id=data["run_id"],
            draft_id=data["draft_id"],
            tool_id=data["tool_id"],
            field_key=data["field_key"],
            started_at=data["started_at"],
            finished_at=data.get("finished_at"),
            result=data.get("result", "pending"),
            model_used=data.get("model_used"),
            prompt_hash=data.get("prompt_hash"),
            fallback_used=bool(data.get("fallback_used", False)),
            error_message=data.get("error_message"),
            warnings=[WarningLog.from_dict(w) for w in data.get("warnings", [])],
        )


# =============================================================================
# Draft / Library Schemas
# =============================================================================

@dataclass
class Draft:
    """
    작성 중인 문서 (초안).

    상태: editing → rendered → finalized
    """
    draft_id: str
    tool_id: ToolId
    title: str
    inputs: dict[str, Any]
    created_at: str
    updated_at: str
    status: str = DRAFT_STATUS_EDITING
    generated_fields: dict[str, GeneratedField] = field(default_factory=dict)
    validation: ValidationResult = field(default_factory=ValidationResult)
    generation_logs: list[GenerationLog] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "draft_id": self.draft_id,
            "tool_id": self.tool_id.value,
            "title": self.title,
            "status": self.status,
            "inputs": self.inputs,
            "generated_fields": {
                key: gf.to_dict() for key, gf in self.generated_fields.items()
            },
            "validation": self.validation.to_dict(),
            "generation_logs": [log.to_dict() for log in self.generation_logs],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Draft":
        return cls(
            draft_id=data["draft_id"],
            tool_id=ToolId(data["tool_id"]),
            title=data["title"],
            status=data.get("status") or DRAFT_STATUS_EDITING,
            inputs=dict(data.get("inputs") or {}),
            generated_fields={
                key: GeneratedField.from_dict(value)
                for key, value in (data.get("generated_fields") or {}).items()
            },
            validation=ValidationResult.from_dict(data.get("validation")),
            generation_logs=[
                GenerationLog.from_dict(log) for log in data.get("generation_logs", [])
            ],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )


@dataclass
class LibraryDoc:
    """확정된 문서 (라이브러리 보관용 스냅샷)."""
    doc_id: str
    tool_id: ToolId
    title: str
    inputs: dict[str, Any]
    created_at: str
    generated_fields: dict[str, GeneratedField] = field(default_factory=dict)
    source_draft_id: str | None = None

    def to_summary(self) -> dict[str, Any]:
        """목록용 요약."""
        return {
            "doc_id": self.doc_id,
            "tool_id": self.tool_id.value,
            "title": self.title,
            "created_at": self.created_at,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.to_summary(),
            "inputs": self.inputs,
            "generated_fields": {
                key: gf.to_dict() for key, gf in self.generated_fields.items()
            },
            "source_draft_id": self.source_draft_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LibraryDoc":
        return cls(
            doc_id=data["doc_id"],
            tool_id=ToolId(data["tool_id"]),
            title=data["title"],
            inputs=dict(data.get("inputs") or {}),
            generated_fields={
                key: GeneratedField.from_dict(value)
                for key, value in (data.get("generated_fields") or {}).items()
            },
            created_at=data["created_at"],
            source_draft_id=data.get("source_draft_id"),
        )
