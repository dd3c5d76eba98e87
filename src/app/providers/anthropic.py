"""
Anthropic (Claude) Provider.

- 서술형 필드 문장 1개 = messages.create 1회 (user 메시지 1개)
- 첫 번째 content 블록만 사용, type == "text"가 아니면 GenerationError
- model_requested(config) / model_used(응답) 분리 기록
- 일시적 오류(rate limit, 연결, 타임아웃, 5xx)만 지수 백오프로 재시도
"""

import logging
import os
from typing import Any

import anthropic

from src.domain.constants import DEFAULT_FIELD_MAX_TOKENS, DEFAULT_LLM_MODEL
from src.utils.retry import retry_with_exponential_backoff

from .base import CompletionResult, GenerationError, LLMProvider

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("MY_ANTHROPIC_KEY", "ANTHROPIC_API_KEY")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.InternalServerError,
)

# 예외 타입 → 안내 문구 (위에서부터 검사, APITimeoutError는 APIConnectionError의 하위 타입)
FRIENDLY_ERRORS: tuple[tuple[type[Exception], str], ...] = (
    (
        anthropic.APITimeoutError,
        "API 응답 시간이 초과되었습니다. 잠시 후 다시 생성해주세요.",
    ),
    (
        anthropic.APIConnectionError,
        "인터넷 연결을 확인해주세요. Anthropic API 서버에 연결할 수 없습니다.",
    ),
    (
        anthropic.RateLimitError,
        "API 사용량 한도를 초과했습니다. 잠시 후 다시 생성해주세요.",
    ),
    (
        anthropic.AuthenticationError,
        "API 인증에 실패했습니다. MY_ANTHROPIC_KEY 환경변수를 확인해주세요.",
    ),
    (
        anthropic.PermissionDeniedError,
        "API 키에 설정된 모델 사용 권한이 없습니다.",
    ),
    (
        anthropic.BadRequestError,
        "생성 요청이 거절되었습니다. 모델명과 max_tokens 설정을 확인해주세요.",
    ),
)

# 메시지 문자열 패턴 → 안내 문구 (타입으로 구분되지 않는 예외용)
FRIENDLY_PATTERNS: tuple[tuple[str, str], ...] = (
    ("api_key", "API 키 설정을 확인해주세요."),
    ("timeout", "요청 시간이 초과되었습니다. 다시 시도해주세요."),
    ("connection", "네트워크 연결 오류가 발생했습니다."),
)


def resolve_api_key(api_key: str | None = None) -> str | None:
    """API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY."""
    if api_key:
        return api_key
    for env_var in API_KEY_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            return value
    return None


class ClaudeProvider(LLMProvider):
    """
    Claude 기반 서술형 문장 생성기.

    Usage:
        provider = ClaudeProvider.from_config(config)
        result = await provider.complete(prompt, max_tokens=1200)
    """

    def __init__(
        self,
        model: str = DEFAULT_LLM_MODEL,
        api_key: str | None = None,
        max_tokens: int = DEFAULT_FIELD_MAX_TOKENS,
        temperature: float | None = None,
        top_p: float | None = None,
        max_retries: int = 3,
    ):
        """
        Args:
            model: 모델 ID (default.yaml의 ai.llm.model)
            api_key: API 키 (없으면 환경변수)
            max_tokens: 호출별 지정이 없을 때의 출력 토큰 상한
            temperature: 샘플링 온도 (None이면 전송 안 함)
            top_p: top-p 샘플링 (None이면 전송 안 함)
            max_retries: 일시적 오류 재시도 횟수

        Raises:
            GenerationError: ANTHROPIC_KEY_MISSING (키가 없으면 즉시 실패)
        """
        self.api_key = resolve_api_key(api_key)
        if not self.api_key:
            raise GenerationError(
                "ANTHROPIC_KEY_MISSING",
                "Anthropic API 키가 없습니다. "
                f"{' 또는 '.join(API_KEY_ENV_VARS)} 환경변수를 설정하세요.",
            )

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.max_retries = max_retries
        self._client: Any = None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ClaudeProvider":
        """default.yaml의 ai.llm 설정으로 생성."""
        llm = config.get("ai", {}).get("llm", {})
        return cls(
            model=llm.get("model", DEFAULT_LLM_MODEL),
            max_tokens=llm.get("max_tokens", DEFAULT_FIELD_MAX_TOKENS),
            temperature=llm.get("temperature"),
            top_p=llm.get("top_p"),
            max_retries=llm.get("max_retries", 3),
        )

    def _get_client(self) -> Any:
        """AsyncAnthropic 클라이언트 (첫 호출 시 생성)."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    def _build_api_kwargs(self, prompt: str, max_tokens: int | None) -> dict[str, Any]:
        """messages.create 인자 (샘플링 값은 설정된 것만)."""
        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        sampling = {"temperature": self.temperature, "top_p": self.top_p}
        api_kwargs.update({k: v for k, v in sampling.items() if v is not None})
        return api_kwargs

    async def _create_message(self, prompt: str, max_tokens: int | None) -> Any:
        """messages.create 호출 (일시적 오류 재시도)."""
        api_kwargs = self._build_api_kwargs(prompt, max_tokens)

        async def _call() -> Any:
            return await self._get_client().messages.create(**api_kwargs)

        return await retry_with_exponential_backoff(
            _call,
            max_retries=self.max_retries,
            initial_delay=1.0,
            max_delay=30.0,
            exceptions=RETRYABLE_ERRORS,
        )

    async def complete(self, prompt: str, max_tokens: int | None = None) -> CompletionResult:
        """
        프롬프트 1개 → 텍스트 1개.

        Raises:
            GenerationError: COMPLETION_FAILED, EMPTY_RESPONSE, NON_TEXT_CONTENT
        """
        try:
            response = await self._create_message(prompt, max_tokens)
        except Exception as e:
            logger.error(f"Claude completion failed ({self.model}): {e}")
            raise GenerationError(
                "COMPLETION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        blocks = getattr(response, "content", None) or []
        if not blocks:
            raise GenerationError("EMPTY_RESPONSE", "응답에 content 블록이 없습니다.")

        first = blocks[0]
        block_type = getattr(first, "type", None)
        text = getattr(first, "text", None)
        if block_type != "text" or not isinstance(text, str):
            raise GenerationError(
                "NON_TEXT_CONTENT",
                f"텍스트가 아닌 응답 블록입니다: {block_type}",
            )

        model_used = getattr(response, "model", None)
        request_id = getattr(response, "id", None)
        return CompletionResult(
            text=text,
            model_requested=self.model,
            model_used=model_used if isinstance(model_used, str) else self.model,
            request_id=request_id if isinstance(request_id, str) else None,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """예외 → 사용자 안내 문구."""
        for error_type, message in FRIENDLY_ERRORS:
            if isinstance(error, error_type):
                return message

        error_str = str(error)
        lowered = error_str.lower()
        for pattern, message in FRIENDLY_PATTERNS:
            if pattern in lowered:
                return message

        return f"문장 생성 중 오류가 발생했습니다: {error_str}"
