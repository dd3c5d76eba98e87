"""
Deep merge 유틸리티.

초안 입력값 부분 수정(PATCH)에 사용.
"""

from typing import Any


def merge_deep(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """
    source를 target에 재귀 병합한 새 dict 반환.

    규칙:
    - dict 값이 양쪽 모두 dict일 때만 재귀 병합
    - list는 이어붙이지 않고 통째로 교체
    - 그 외 값(None 포함)은 source 값으로 교체
    - target/source는 수정하지 않음

    Args:
        target: 기존 값
        source: 덮어쓸 값

    Returns:
        병합 결과 (새 dict)
    """
    output = dict(target)
    for key, value in source.items():
        existing = output.get(key)
        if isinstance(value, dict) and isinstance(existing, dict):
            output[key] = merge_deep(existing, value)
        else:
            output[key] = value
    return output
