"""
HTML 렌더러: Jinja2 템플릿 기반 문서 조립.

규칙:
- 섹션 순서/앵커 고정, toc는 섹션 순서와 동일
- 모든 스칼라 입력 슬롯은 출력에 등장 (값 또는 "-")
- 생성 필드 누락 → "-" (빈 문자열/None 노출 금지)
- 부록 표: include_appendix_tables=True 이고 행이 있을 때만 (<h3>/<table> 통째로 생략)
- 같은 입력 → 같은 출력 (순수 함수)
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from src.domain.documents import get_document
from src.domain.errors import ErrorCodes, PolicyRejectError
from src.domain.schemas import GeneratedField, RenderOutput, ToolId

TEMPLATES_DIR = Path(__file__).parent / "templates"

PLACEHOLDER = "-"

# =============================================================================
# Appendix Table Layouts
# =============================================================================
# table_key: (제목, [(행 키, 열 제목), ...])

PLAN_TABLES: dict[str, tuple[str, list[tuple[str, str]]]] = {
    "daily_schedule": ("일과 운영표", [("slot", "시간"), ("activity", "활동"), ("note", "비고")]),
    "programs": (
        "프로그램 운영",
        [("name", "프로그램"), ("frequency", "횟수"), ("owner", "담당"), ("place", "장소")],
    ),
    "staffing": (
        "인력 배치",
        [("role", "역할"), ("count", "인원"), ("work_time", "근무시간"), ("duties", "업무")],
    ),
    "budget_items": ("예산 편성", [("category", "항목"), ("amount", "금액"), ("basis", "근거")]),
}

REPORT_TABLES: dict[str, tuple[str, list[tuple[str, str]]]] = {
    "program_summary": ("프로그램 운영 요약", [("area", "영역"), ("count", "횟수"), ("note", "비고")]),
    "incidents": (
        "사고 현황",
        [("when_text", "일시"), ("content", "내용"), ("action", "조치"), ("prevention", "예방")],
    ),
    "major_expenses": ("주요 집행 내역", [("category", "항목"), ("amount", "금액"), ("note", "비고")]),
}


# =============================================================================
# Value Coercion
# =============================================================================

def safe_text(value: Any) -> str:
    """
    렌더용 문자열 변환 (절대 예외 없음).

    None → "-", list → ", " 연결, dict → JSON, bool → true/false, 그 외 str()
    """
    if value is None:
        return PLACEHOLDER
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join("" if v is None else safe_text(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _lookup(inputs: Mapping[str, Any], *path: str) -> Any:
    """중첩 값 조회 (중간이 dict가 아니면 None)."""
    value: Any = inputs
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _generated_text(generated_fields: Mapping[str, Any], key: str) -> str:
    """생성 필드 텍스트 (GeneratedField 또는 저장된 dict 모두 허용)."""
    field = generated_fields.get(key)
    if isinstance(field, GeneratedField):
        text = field.text
    elif isinstance(field, Mapping):
        text = field.get("text")
    else:
        text = None

    if not isinstance(text, str) or not text.strip():
        return PLACEHOLDER
    return text.strip()


def _build_tables(
    inputs: Mapping[str, Any],
    layouts: dict[str, tuple[str, list[tuple[str, str]]]],
    include_appendix_tables: bool,
) -> dict[str, dict[str, Any]]:
    """부록 표 구성 (비활성/빈 목록은 키 자체가 없음)."""
    tables: dict[str, dict[str, Any]] = {}
    if not include_appendix_tables:
        return tables

    for table_key, (title, columns) in layouts.items():
        rows = inputs.get(table_key)
        if not isinstance(rows, list) or not rows:
            continue
        tables[table_key] = {
            "title": title,
            "headers": [header for _, header in columns],
            "rows": [
                [safe_text(_lookup(row, col_key)) for col_key, _ in columns]
                for row in rows
            ],
        }
    return tables


# =============================================================================
# Jinja2 Environment
# =============================================================================

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=True,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def _render_template(template_name: str, context: dict[str, Any]) -> str:
    """
    템플릿 렌더링.

    Raises:
        PolicyRejectError: RENDER_FAILED (템플릿 누락/문법 오류/정의되지 않은 변수)
    """
    try:
        return _env.get_template(template_name).render(**context)
    except TemplateError as e:
        raise PolicyRejectError(
            ErrorCodes.RENDER_FAILED,
            template=template_name,
            error=str(e),
        ) from e


# =============================================================================
# Context Builders
# =============================================================================

def _plan_context(inputs: Mapping[str, Any]) -> dict[str, str]:
    return {
        "school_name": safe_text(inputs.get("school_name")),
        "term_label": safe_text(inputs.get("term_label")),
        "operation_types": safe_text(inputs.get("operation_types")),
        "period_start": safe_text(_lookup(inputs, "period", "start_date")),
        "period_end": safe_text(_lookup(inputs, "period", "end_date")),
        "days_of_week": safe_text(inputs.get("days_of_week")),
        "time_start": safe_text(_lookup(inputs, "time_semester", "start_time")),
        "time_end": safe_text(_lookup(inputs, "time_semester", "end_time")),
        "location": safe_text(inputs.get("location")),
        "target_grades": safe_text(inputs.get("target_grades")),
        "capacity": safe_text(inputs.get("capacity")),
        "selection_criteria": safe_text(inputs.get("selection_criteria")),
        "attendance_method": safe_text(inputs.get("attendance_method")),
        "return_home_policy": safe_text(inputs.get("return_home_policy")),
        "budget_total": safe_text(inputs.get("budget_total")),
        "evaluation_cycle": safe_text(inputs.get("evaluation_cycle")),
        "satisfaction_survey": safe_text(inputs.get("satisfaction_survey")),
    }


def _report_context(inputs: Mapping[str, Any]) -> dict[str, Any]:
    strengths = inputs.get("strengths")
    improvements = inputs.get("improvements")
    return {
        "school_name": safe_text(inputs.get("school_name")),
        "period_label": safe_text(inputs.get("period_label")),
        "operation_types": safe_text(inputs.get("operation_types")),
        "operation_days": safe_text(inputs.get("operation_days")),
        "avg_participants": safe_text(inputs.get("avg_participants")),
        "incident_flag": safe_text(inputs.get("incident_flag")),
        "budget_allocated": safe_text(_lookup(inputs, "budget", "allocated")),
        "budget_spent": safe_text(_lookup(inputs, "budget", "spent")),
        "budget_remaining": safe_text(_lookup(inputs, "budget", "remaining")),
        # 목록이 비어 있으면 해당 줄 생략
        "strengths": safe_text(strengths) if isinstance(strengths, list) and strengths else None,
        "improvements": (
            safe_text(improvements) if isinstance(improvements, list) and improvements else None
        ),
    }


_CONTEXT_BUILDERS = {
    ToolId.AFTERCARE_PLAN: (_plan_context, PLAN_TABLES),
    ToolId.AFTERCARE_REPORT: (_report_context, REPORT_TABLES),
}


# =============================================================================
# Public API
# =============================================================================

def render_document_html(
    tool_id: ToolId | str,
    inputs: Mapping[str, Any],
    generated_fields: Mapping[str, Any],
    include_appendix_tables: bool,
) -> RenderOutput:
    """
    입력값 + 생성 필드 → HTML 문서.

    Args:
        tool_id: 문서 유형
        inputs: 입력값 (필수 항목 누락이어도 "-"로 렌더)
        generated_fields: {field_key: GeneratedField 또는 dict}
        include_appendix_tables: 목록형 입력을 표로 포함할지

    Returns:
        RenderOutput (html, toc)
    """
    document = get_document(tool_id)
    build_values, table_layouts = _CONTEXT_BUILDERS[document.tool_id]

    context = {
        "toc": document.toc,
        "v": build_values(inputs),
        "g": {key: _generated_text(generated_fields, key) for key in document.field_keys},
        "tables": _build_tables(inputs, table_layouts, include_appendix_tables),
    }

    html = _render_template(document.template_name, context)
    return RenderOutput(html=html, toc=list(document.toc))


def render_plan_html(
    inputs: Mapping[str, Any],
    generated_fields: Mapping[str, Any],
    include_appendix_tables: bool,
) -> RenderOutput:
    """운영계획서 렌더링."""
    return render_document_html(
        ToolId.AFTERCARE_PLAN, inputs, generated_fields, include_appendix_tables
    )


def render_report_html(
    inputs: Mapping[str, Any],
    generated_fields: Mapping[str, Any],
    include_appendix_tables: bool,
) -> RenderOutput:
    """운영결과보고 렌더링."""
    return render_document_html(
        ToolId.AFTERCARE_REPORT, inputs, generated_fields, include_appendix_tables
    )
