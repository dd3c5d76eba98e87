"""
AI Provider 추상 인터페이스.

- Provider 추상화로 모델 교체 가능
- 텍스트 완성 1회 = 프롬프트 1개 → 텍스트 블록 1개
- model_used, prompt_hash 기록 (조건부 재현성)
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class CompletionResult:
    """
    텍스트 완성 결과.

    text: 첫 번째 content 블록의 텍스트 (type == "text"인 경우만)
    """
    text: str
    model_requested: str | None = None
    model_used: str | None = None
    request_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "text": self.text,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "request_id": self.request_id,
        }
        return {k: v for k, v in result.items() if v is not None}


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class GenerationError(ProviderError):
    """텍스트 생성 관련 에러."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================

class LLMProvider(ABC):
    """
    LLM Provider 추상 인터페이스.

    역할: 서술형 문장 제안만 (수치 출처 판정 권한 없음 → core/numeric)
    """

    model: str

    @abstractmethod
    async def complete(self, prompt: str, max_tokens: int | None = None) -> CompletionResult:
        """
        단일 턴 텍스트 완성.

        Args:
            prompt: 프롬프트
            max_tokens: 최대 출력 토큰 (None이면 provider 기본값)

        Returns:
            CompletionResult

        Raises:
            GenerationError: 호출 실패, 응답 형식 오류, 텍스트가 아닌 블록
        """
        ...
