"""
Domain Constants: 문서 유형별 고정 설정.

문서 유형(tool_id)별 서술형 필드 키, 필수 입력 항목, 목차.
모두 불변(tuple / MappingProxyType)으로 정의 - 프로세스 시작 후 변경 없음.
"""

from types import MappingProxyType

# =============================================================================
# Tool IDs
# =============================================================================

TOOL_AFTERCARE_PLAN = "aftercare_plan"
TOOL_AFTERCARE_REPORT = "aftercare_report"

# =============================================================================
# Narrative Field Keys (AI 생성 대상)
# =============================================================================
# 완성된 문서에 필요한 서술형 항목 (순서 = 전체 생성 순서)

AFTERCARE_FIELD_KEYS = MappingProxyType({
    TOOL_AFTERCARE_PLAN: (
        "selection_process_text",
        "purpose_text",
        "operation_detail_text",
        "expected_effect_text",
        "staffing_coordination_text",
        "safety_plan_text",
        "attendance_return_text",
        "budget_policy_text",
        "evaluation_feedback_text",
    ),
    TOOL_AFTERCARE_REPORT: (
        "operations_overview_text",
        "staffing_result_text",
        "safety_complaint_result_text",
        "budget_execution_text",
        "evaluation_improvement_text",
    ),
})

# =============================================================================
# Required Input Fields (누락 시 blocking)
# =============================================================================

REQUIRED_FIELDS = MappingProxyType({
    TOOL_AFTERCARE_PLAN: (
        "school_name",
        "term_label",
        "operation_types",
        "period",
        "days_of_week",
        "time_semester",
        "location",
        "target_grades",
        "capacity",
        "selection_criteria",
        "attendance_method",
        "return_home_policy",
    ),
    TOOL_AFTERCARE_REPORT: (
        "school_name",
        "period_label",
        "operation_types",
        "operation_days",
        "avg_participants",
        "incident_flag",
    ),
})

# =============================================================================
# Table of Contents (섹션 순서 고정)
# =============================================================================

PLAN_TOC = (
    ("sec1", "기본 운영 정보"),
    ("sec2", "운영 목적 및 선발"),
    ("sec3", "운영 세부"),
    ("sec4", "인력 및 안전"),
    ("sec5", "예산 및 평가"),
)

REPORT_TOC = (
    ("sec1", "운영 개요"),
    ("sec2", "인력 및 민원"),
    ("sec3", "예산 집행"),
    ("sec4", "평가 및 개선"),
)

# =============================================================================
# Generation Defaults
# =============================================================================

DEFAULT_LLM_MODEL = "claude-sonnet-4-5"
DEFAULT_FIELD_MAX_TOKENS = 1200

GENERATION_LENGTHS = ("short", "medium", "long")
GENERATION_MODES = ("overwrite", "append")
GENERATION_STYLES = ("official",)

# =============================================================================
# Storage & IDs
# =============================================================================

DRAFTS_DIR = "drafts"
LIBRARY_DIR = "library"
STORE_LOCK_FILE = ".store.lock"

DRAFT_ID_PREFIX = "drf_"
DOC_ID_PREFIX = "doc_"
RUN_ID_PREFIX = "RUN-"

DRAFT_STATUS_EDITING = "editing"
DRAFT_STATUS_RENDERED = "rendered"
DRAFT_STATUS_FINALIZED = "finalized"

# 초안당 보관하는 생성 로그 최대 개수 (오래된 것부터 버림)
MAX_GENERATION_LOGS = 50

# 라이브러리 목록 페이지 크기
LIBRARY_DEFAULT_LIMIT = 20
LIBRARY_MAX_LIMIT = 100
