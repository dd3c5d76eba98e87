"""
ID 생성: draft_id, doc_id, run_id

규칙:
- draft_id/doc_id: 발급 후 수정 금지, 파일명으로 그대로 사용
- run_id: 필드 생성 1회마다 새로 발급
"""

import re
import secrets
import uuid
from datetime import UTC, datetime

from src.domain.constants import DOC_ID_PREFIX, DRAFT_ID_PREFIX, RUN_ID_PREFIX

# 저장소 파일명으로 안전한 ID 패턴
_ID_PATTERN = re.compile(r"^(drf|doc)_[0-9a-f]{12}$")


def _create_id(prefix: str) -> str:
    """prefix + 12자리 hex (6 bytes 난수)."""
    return f"{prefix}{secrets.token_hex(6)}"


def generate_draft_id() -> str:
    """
    초안 ID 생성.

    포맷: drf_{hex12}
    """
    return _create_id(DRAFT_ID_PREFIX)


def generate_doc_id() -> str:
    """
    라이브러리 문서 ID 생성.

    포맷: doc_{hex12}
    """
    return _create_id(DOC_ID_PREFIX)


def generate_run_id() -> str:
    """
    Run ID 생성.

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"{RUN_ID_PREFIX}{timestamp}-{unique}"


def is_valid_id(value: str) -> bool:
    """저장소 ID 형식 확인 (경로 순회 방지)."""
    return bool(_ID_PATTERN.match(value))
