"""
문서 유형 레지스트리.

ToolId → DocumentDefinition (불변).
프롬프트/렌더/검증/생성은 모두 이 레지스트리를 통해 문서 유형을 분기함.
새 문서 유형 = ToolId 값 + 레지스트리 항목 1개 추가.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from src.domain.constants import (
    AFTERCARE_FIELD_KEYS,
    PLAN_TOC,
    REPORT_TOC,
    REQUIRED_FIELDS,
)
from src.domain.errors import ErrorCodes, PolicyRejectError
from src.domain.inputs import AftercarePlanInputs, AftercareReportInputs, InputRecord
from src.domain.schemas import TocEntry, ToolId


@dataclass(frozen=True)
class DocumentDefinition:
    """문서 유형 1개의 고정 설정."""
    tool_id: ToolId
    field_keys: tuple[str, ...]
    required_fields: tuple[str, ...]
    toc: tuple[TocEntry, ...]
    input_cls: type[InputRecord]
    prompt_role: str          # 프롬프트 역할 문구
    fallback_template: str    # AI 생성 실패 시 문구 ({field_key} 치환)
    template_name: str        # src/render/templates/ 내 Jinja2 템플릿

    def fallback_text(self, field_key: str) -> str:
        return self.fallback_template.format(field_key=field_key)


DOCUMENTS = MappingProxyType({
    ToolId.AFTERCARE_PLAN: DocumentDefinition(
        tool_id=ToolId.AFTERCARE_PLAN,
        field_keys=AFTERCARE_FIELD_KEYS[ToolId.AFTERCARE_PLAN.value],
        required_fields=REQUIRED_FIELDS[ToolId.AFTERCARE_PLAN.value],
        toc=tuple(TocEntry(id=i, title=t) for i, t in PLAN_TOC),
        input_cls=AftercarePlanInputs,
        prompt_role="당신은 한국 초등돌봄교실 운영계획서 작성 전문가입니다.",
        fallback_template="{field_key} 항목을 입력값을 기반으로 정리했습니다.",
        template_name="aftercare_plan.html.j2",
    ),
    ToolId.AFTERCARE_REPORT: DocumentDefinition(
        tool_id=ToolId.AFTERCARE_REPORT,
        field_keys=AFTERCARE_FIELD_KEYS[ToolId.AFTERCARE_REPORT.value],
        required_fields=REQUIRED_FIELDS[ToolId.AFTERCARE_REPORT.value],
        toc=tuple(TocEntry(id=i, title=t) for i, t in REPORT_TOC),
        input_cls=AftercareReportInputs,
        prompt_role="당신은 한국 초등돌봄교실 운영결과보고 작성 전문가입니다.",
        fallback_template="{field_key} 항목을 운영 결과에 맞게 요약했습니다.",
        template_name="aftercare_report.html.j2",
    ),
})


def parse_tool_id(value: Any) -> ToolId:
    """
    문자열 → ToolId.

    Raises:
        PolicyRejectError: INVALID_TOOL
    """
    if isinstance(value, ToolId):
        return value
    try:
        return ToolId(value)
    except ValueError:
        raise PolicyRejectError(ErrorCodes.INVALID_TOOL, tool_id=value) from None


def get_document(tool_id: ToolId | str) -> DocumentDefinition:
    """문서 유형 설정 조회."""
    return DOCUMENTS[parse_tool_id(tool_id)]


def parse_inputs(tool_id: ToolId | str, data: Any) -> dict[str, Any]:
    """
    요청 입력값 형식 검사 후 정규화된 dict 반환.

    Raises:
        PolicyRejectError: INVALID_TOOL, INVALID_REQUEST
    """
    record = get_document(tool_id).input_cls.from_dict(data)
    return record.to_dict()
