"""
AI Provider Abstraction.

모델 교체 가능하게 설계.
모델명은 config만 SSOT.
"""

from .anthropic import ClaudeProvider
from .base import CompletionResult, GenerationError, LLMProvider, ProviderError

__all__ = [
    "LLMProvider",
    "CompletionResult",
    "ProviderError",
    "GenerationError",
    "ClaudeProvider",
]
