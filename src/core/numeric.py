"""
수치 출처 검사: 생성 텍스트의 수치/날짜/시간이 입력값에 있는지 확인.

LLM은 그럴듯한 숫자를 만들어 냄 → 생성 텍스트의 수치 토큰이
입력값에서 추출한 토큰 집합에 없으면 정책 위반으로 표시.

한계 (의도된 동작):
- 문자열 단위 비교일 뿐 의미 검증이 아님 (필요조건, 충분조건 아님)
- 형식 정규화 없음: "3"과 "03", "1000"과 "1,000"은 서로 다른 토큰
"""

import dataclasses
import json
import re
from dataclasses import dataclass, field
from typing import Any

# 토큰 문법 (alternation 순서 = 우선순위):
# 1. 날짜: YYYY + 구분자(. - /) + 월 1-2자리 + 같은 구분자 + 일 1-2자리
# 2. 시각: H:MM / HH:MM
# 3. 수: 천 단위 콤마 수 (소수 가능) 또는 일반 정수/소수
NUMBER_TOKEN_PATTERN = re.compile(
    r"\d{4}([./-])\d{1,2}\1\d{1,2}"
    r"|\d{1,2}:\d{2}"
    r"|\d{1,3}(?:,\d{3})+(?:\.\d+)?"
    r"|\d+(?:\.\d+)?",
    re.ASCII,
)


@dataclass
class PolicyCheckResult:
    """수치 출처 검사 결과."""
    violated: bool
    evidence: list[str] = field(default_factory=list)  # 입력값에 없는 토큰 (중복 제거)

    def to_dict(self) -> dict[str, Any]:
        return {"violated": self.violated, "evidence": list(self.evidence)}


def _to_text(value: Any) -> str:
    """검사 대상 → 문자열 (None → "", 문자열 그대로, 그 외 JSON)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    return json.dumps(value, ensure_ascii=False, default=str)


def find_numeric_tokens(text: str) -> list[str]:
    """텍스트에서 수치 토큰 추출 (등장 순서, 중복 포함)."""
    return [m.group(0) for m in NUMBER_TOKEN_PATTERN.finditer(text)]


def collect_numeric_tokens(value: Any) -> set[str]:
    """
    임의의 값에서 수치 토큰 집합 추출.

    Args:
        value: 문자열, dict, list 등 (None이면 빈 집합)

    Returns:
        매칭된 부분 문자열 집합
    """
    return set(find_numeric_tokens(_to_text(value)))


def check_policy_no_new_numbers(generated_text: str, source_input: Any) -> PolicyCheckResult:
    """
    생성 텍스트에 입력값에 없는 수치가 있는지 검사.

    Args:
        generated_text: AI 생성 텍스트
        source_input: 원본 입력값 (수치의 유일한 출처)

    Returns:
        PolicyCheckResult (evidence: 첫 등장 순서, 중복 제거)
    """
    allowed = collect_numeric_tokens(source_input)
    found = find_numeric_tokens(generated_text or "")

    # dict.fromkeys: 순서 유지 중복 제거
    violations = list(dict.fromkeys(t for t in found if t not in allowed))

    return PolicyCheckResult(violated=bool(violations), evidence=violations)
