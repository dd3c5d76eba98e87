"""
Input Records: 문서 유형별 구조화 입력값.

규칙:
- 문서에 등장할 수 있는 모든 수치/날짜/시간은 이 레코드에서만 나와야 함
- 형식(shape)만 검사: 객체/리스트 타입, 표 행의 필수 키
- 필수 항목 누락 여부는 여기서 보지 않음 → services/validate.py
"""

from dataclasses import MISSING, asdict, dataclass, fields
from typing import Any, ClassVar

from src.domain.errors import ErrorCodes, PolicyRejectError

# =============================================================================
# Nested Objects
# =============================================================================

@dataclass
class DateRange:
    """운영 기간."""
    start_date: str | None = None
    end_date: str | None = None


@dataclass
class TimeRange:
    """운영 시간."""
    start_time: str | None = None
    end_time: str | None = None


@dataclass
class BudgetSummary:
    """예산 집행 요약 (결과보고)."""
    allocated: Any = None
    spent: Any = None
    remaining: Any = None


# =============================================================================
# Table Rows (부록 표)
# =============================================================================

@dataclass
class DailyScheduleRow:
    """일과 운영표 행."""
    slot: str
    activity: str
    note: str | None = None


@dataclass
class ProgramRow:
    """프로그램 운영 행."""
    name: str
    frequency: Any
    owner: str | None = None
    place: str | None = None


@dataclass
class StaffingRow:
    """인력 배치 행."""
    role: str
    count: Any
    work_time: str | None = None
    duties: str | None = None


@dataclass
class BudgetItemRow:
    """예산 편성 행."""
    category: str
    amount: Any
    basis: str | None = None


@dataclass
class ProgramSummaryRow:
    """프로그램 운영 요약 행 (결과보고)."""
    area: str
    count: Any
    note: str | None = None


@dataclass
class IncidentRow:
    """사고 현황 행."""
    when_text: str
    content: str
    action: str
    prevention: str


@dataclass
class MajorExpenseRow:
    """주요 집행 내역 행."""
    category: str
    amount: Any
    note: str | None = None


# =============================================================================
# Parsing Helpers
# =============================================================================

def _reject(field_name: str, reason: str) -> PolicyRejectError:
    return PolicyRejectError(ErrorCodes.INVALID_REQUEST, field=field_name, reason=reason)


def _parse_object(cls: type, value: Any, field_name: str) -> Any:
    """dict → dataclass (알 수 없는 키는 무시)."""
    if not isinstance(value, dict):
        raise _reject(field_name, "object expected")

    known = {f.name for f in fields(cls)}
    # 필수 키가 null이면 누락과 같음 (to_dict에서 키가 빠져 다시 읽을 수 없게 됨)
    for f in fields(cls):
        if f.default is MISSING and value.get(f.name) is None:
            raise _reject(field_name, f"missing required key: {f.name}")
    return cls(**{k: v for k, v in value.items() if k in known})


def _parse_rows(cls: type, value: Any, field_name: str) -> list[Any]:
    if not isinstance(value, list):
        raise _reject(field_name, "list expected")
    return [
        _parse_object(cls, row, f"{field_name}[{i}]")
        for i, row in enumerate(value)
    ]


def _drop_none(value: Any) -> Any:
    """None 값 키 제거 (선택 항목 미입력 = 키 없음)."""
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value]
    return value


# =============================================================================
# Input Records
# =============================================================================

class InputRecord:
    """
    입력 레코드 공통 동작.

    하위 클래스는 dataclass로 선언하고 아래 ClassVar로 필드 종류를 지정:
    - OBJECT_FIELDS: 중첩 객체 필드 → dataclass
    - ROW_FIELDS: 표 행 리스트 필드 → 행 dataclass
    - LIST_FIELDS: 단순 값 리스트 필드
    나머지는 스칼라 (그대로 보관).
    """

    OBJECT_FIELDS: ClassVar[dict[str, type]] = {}
    ROW_FIELDS: ClassVar[dict[str, type]] = {}
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def from_dict(cls, data: Any) -> Any:
        """
        요청 JSON → 입력 레코드.

        Raises:
            PolicyRejectError: INVALID_REQUEST (형식 오류)
        """
        if not isinstance(data, dict):
            raise _reject("inputs", "object expected")

        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            value = data.get(f.name)
            if value is None:
                continue

            if f.name in cls.OBJECT_FIELDS:
                kwargs[f.name] = _parse_object(cls.OBJECT_FIELDS[f.name], value, f.name)
            elif f.name in cls.ROW_FIELDS:
                kwargs[f.name] = _parse_rows(cls.ROW_FIELDS[f.name], value, f.name)
            elif f.name in cls.LIST_FIELDS:
                if not isinstance(value, list):
                    raise _reject(f.name, "list expected")
                kwargs[f.name] = list(value)
            else:
                if isinstance(value, (dict, list)):
                    raise _reject(f.name, "scalar expected")
                kwargs[f.name] = value

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """입력 레코드 → JSON dict (미입력 선택 항목 제외)."""
        data: dict[str, Any] = _drop_none(asdict(self))  # type: ignore[call-overload]
        return data


@dataclass
class AftercarePlanInputs(InputRecord):
    """운영계획서 입력값."""

    OBJECT_FIELDS: ClassVar[dict[str, type]] = {
        "period": DateRange,
        "time_semester": TimeRange,
    }
    ROW_FIELDS: ClassVar[dict[str, type]] = {
        "daily_schedule": DailyScheduleRow,
        "programs": ProgramRow,
        "staffing": StaffingRow,
        "budget_items": BudgetItemRow,
    }
    LIST_FIELDS: ClassVar[tuple[str, ...]] = (
        "operation_types",
        "days_of_week",
        "target_grades",
        "selection_criteria",
    )

    # 기본 운영 정보
    school_name: str | None = None
    term_label: str | None = None
    operation_types: list[str] | None = None
    period: DateRange | None = None
    days_of_week: list[str] | None = None
    time_semester: TimeRange | None = None
    location: str | None = None
    target_grades: list[Any] | None = None
    capacity: Any = None

    # 선발/출결
    selection_criteria: list[str] | None = None
    attendance_method: str | None = None
    return_home_policy: str | None = None

    # 예산/평가 (선택)
    budget_total: Any = None
    evaluation_cycle: str | None = None
    satisfaction_survey: Any = None

    # 부록 표 (선택)
    daily_schedule: list[DailyScheduleRow] | None = None
    programs: list[ProgramRow] | None = None
    staffing: list[StaffingRow] | None = None
    budget_items: list[BudgetItemRow] | None = None


@dataclass
class AftercareReportInputs(InputRecord):
    """운영결과보고 입력값."""

    OBJECT_FIELDS: ClassVar[dict[str, type]] = {
        "budget": BudgetSummary,
    }
    ROW_FIELDS: ClassVar[dict[str, type]] = {
        "program_summary": ProgramSummaryRow,
        "incidents": IncidentRow,
        "major_expenses": MajorExpenseRow,
    }
    LIST_FIELDS: ClassVar[tuple[str, ...]] = (
        "operation_types",
        "strengths",
        "improvements",
    )

    school_name: str | None = None
    period_label: str | None = None
    operation_types: list[str] | None = None
    operation_days: Any = None
    avg_participants: Any = None
    incident_flag: Any = None

    budget: BudgetSummary | None = None

    program_summary: list[ProgramSummaryRow] | None = None
    incidents: list[IncidentRow] | None = None
    major_expenses: list[MajorExpenseRow] | None = None

    strengths: list[str] | None = None
    improvements: list[str] | None = None
