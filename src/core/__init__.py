"""
Core layer: 문서 정확성 핵심 모듈.

이 모듈만 건드리면 문서 사고 → 가장 보수적으로 관리

역할:
- 수치 출처 검사, 저장소 (원자적 쓰기), ID, 생성 로그
"""

from .ids import generate_doc_id, generate_draft_id, generate_run_id
from .logging import create_generation_log, emit_warning
from .numeric import check_policy_no_new_numbers, collect_numeric_tokens
from .store import DraftStore, atomic_write_json

__all__ = [
    # numeric
    "check_policy_no_new_numbers",
    "collect_numeric_tokens",
    # store
    "DraftStore",
    "atomic_write_json",
    # ids
    "generate_draft_id",
    "generate_doc_id",
    "generate_run_id",
    # logging
    "create_generation_log",
    "emit_warning",
]
