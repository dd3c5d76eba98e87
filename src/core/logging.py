"""
Generation logging: 필드 생성 로그 스키마, 이벤트, 경고

규칙:
- 필드 생성 1회 = GenerationLog 1개 (성공/fallback/거절 모두 기록)
- 경고 필수 컨텍스트: level, code, field, message (+ evidence)
"""

from datetime import UTC, datetime

from src.core.ids import generate_run_id
from src.domain.constants import MAX_GENERATION_LOGS
from src.domain.schemas import GenerationLog, WarningLog

# =============================================================================
# Generation Log Management
# =============================================================================


def create_generation_log(draft_id: str, tool_id: str, field_key: str) -> GenerationLog:
    """
    새 GenerationLog 생성.

    Args:
        draft_id: 초안 ID
        tool_id: 문서 유형
        field_key: 생성 대상 필드

    Returns:
        초기화된 GenerationLog (result="pending")
    """
    return GenerationLog(
        run_id=generate_run_id(),
        draft_id=draft_id,
        tool_id=tool_id,
        field_key=field_key,
        started_at=datetime.now(UTC).isoformat(),
        result="pending",
    )


def emit_warning(
    generation_log: GenerationLog,
    code: str,
    field: str,
    message: str,
    evidence: list[str] | None = None,
) -> None:
    """
    경고 이벤트 기록.

    Args:
        generation_log: GenerationLog 인스턴스
        code: 경고 코드 (예: POLICY_VIOLATION_NEW_NUMBER)
        field: 필드 이름
        message: 경고 메시지
        evidence: 근거 토큰 목록
    """
    generation_log.warnings.append(
        WarningLog(
            level="warning",
            code=code,
            field=field,
            message=message,
            evidence=list(evidence) if evidence is not None else None,
        )
    )


def complete_generation_log(
    generation_log: GenerationLog,
    result: str,
    model_used: str | None = None,
    prompt_hash: str | None = None,
    fallback_used: bool = False,
    error_message: str | None = None,
) -> None:
    """
    GenerationLog 완료 처리.

    Args:
        generation_log: GenerationLog 인스턴스
        result: success, fallback, rejected
        model_used: 실제 호출된 모델
        prompt_hash: 프롬프트 해시
        fallback_used: fallback 문구 사용 여부
        error_message: 생성 실패 사유 (fallback 시)
    """
    generation_log.finished_at = datetime.now(UTC).isoformat()
    generation_log.result = result
    generation_log.model_used = model_used
    generation_log.prompt_hash = prompt_hash
    generation_log.fallback_used = fallback_used
    generation_log.error_message = error_message


def append_generation_log(
    logs: list[GenerationLog],
    generation_log: GenerationLog,
    max_logs: int = MAX_GENERATION_LOGS,
) -> list[GenerationLog]:
    """
    로그 목록에 추가 (최근 max_logs개만 유지).

    Returns:
        새 로그 목록
    """
    return [*logs, generation_log][-max_logs:]
