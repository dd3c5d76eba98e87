"""
Pytest fixtures for the aftercare document tests.

테스트 구성:
- 필수 항목이 모두 채워진 입력값 / 누락 입력값 분리
- LLM은 실제 호출하지 않음 (FakeProvider 또는 AsyncMock)
"""

from pathlib import Path

import pytest
import yaml

from src.app.providers.base import CompletionResult, GenerationError, LLMProvider
from src.app.services.drafts import DraftService
from src.core.store import DraftStore

# =============================================================================
# Fake Provider
# =============================================================================


class FakeProvider(LLMProvider):
    """
    고정 응답 LLM Provider.

    responses: 호출 순서대로 반환할 텍스트 (소진되면 마지막 값 반복)
    error: 설정하면 complete() 호출 시 발생
    """

    def __init__(
        self,
        responses: list[str] | None = None,
        error: Exception | None = None,
        model: str = "claude-sonnet-4-5",
    ):
        self.model = model
        self.responses = list(responses or ["입력값을 바탕으로 작성한 문장입니다."])
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str, max_tokens: int | None = None) -> CompletionResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        return CompletionResult(
            text=self.responses[index],
            model_requested=self.model,
            model_used=self.model,
        )


# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config(project_root: Path) -> dict:
    """기본 설정 로드."""
    with open(project_root / "default.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Input Fixtures
# =============================================================================

@pytest.fixture
def plan_inputs() -> dict:
    """운영계획서 입력값 (필수 항목 모두 입력, 부록 목록 없음)."""
    return {
        "school_name": "행복초등학교",
        "term_label": "2025-2학기",
        "operation_types": ["오후돌봄"],
        "period": {"start_date": "2025-09-01", "end_date": "2026-02-20"},
        "days_of_week": ["월", "화", "수", "목", "금"],
        "time_semester": {"start_time": "13:00", "end_time": "17:00"},
        "location": "돌봄교실 1실",
        "target_grades": [1, 2],
        "capacity": 30,
        "selection_criteria": ["맞벌이 가정", "저소득 가정"],
        "attendance_method": "전자출결",
        "return_home_policy": "보호자 동행 귀가",
    }


@pytest.fixture
def plan_inputs_with_tables(plan_inputs: dict) -> dict:
    """운영계획서 입력값 (부록 목록 포함)."""
    return {
        **plan_inputs,
        "budget_total": "12,000,000",
        "daily_schedule": [
            {"slot": "13:00-14:00", "activity": "놀이활동", "note": "실내"},
            {"slot": "14:00-15:00", "activity": "독서"},
        ],
        "programs": [
            {"name": "창의미술", "frequency": "주 2회", "owner": "강사", "place": "1실"},
        ],
        "staffing": [
            {"role": "돌봄전담사", "count": 2, "work_time": "12:00-18:00"},
        ],
        "budget_items": [
            {"category": "인건비", "amount": "9,000,000", "basis": "월 750,000"},
        ],
    }


@pytest.fixture
def report_inputs() -> dict:
    """운영결과보고 입력값 (필수 항목 모두 입력)."""
    return {
        "school_name": "행복초등학교",
        "period_label": "2025학년도 1학기",
        "operation_types": ["오후돌봄", "저녁돌봄"],
        "operation_days": 95,
        "avg_participants": 27,
        "incident_flag": False,
        "budget": {"allocated": "10,000,000", "spent": "9,500,000", "remaining": "500,000"},
    }


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def store(tmp_path: Path) -> DraftStore:
    """임시 디렉터리 저장소."""
    return DraftStore(tmp_path / "data")


@pytest.fixture
def fake_provider() -> FakeProvider:
    """수치 없는 문장을 돌려주는 Provider."""
    return FakeProvider()


@pytest.fixture
def failing_provider() -> FakeProvider:
    """항상 실패하는 Provider."""
    return FakeProvider(error=GenerationError("COMPLETION_FAILED", "network down"))


@pytest.fixture
def service(store: DraftStore, fake_provider: FakeProvider) -> DraftService:
    """FakeProvider를 쓰는 DraftService."""
    return DraftService(store, provider=fake_provider)


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    """FakeProvider 클래스 (테스트별 응답 지정용)."""
    return FakeProvider
