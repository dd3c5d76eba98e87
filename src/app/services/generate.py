"""
Field Generator: 서술형 필드 AI 생성.

규칙:
- 절대 예외를 던지지 않음 (total function)
  네트워크 오류, 타임아웃, 응답 형식 오류, 텍스트 아닌 블록, 빈 응답
  → 모두 동일한 fallback 경로 (문서 유형별 고정 문구)
- 실패 감지가 필요한 호출자는 FieldGenerationResult.fallback_used 확인
- 수치 출처 검사는 여기서 하지 않음 (호출자 몫, core/numeric)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.app.providers.base import GenerationError, LLMProvider, compute_hash
from src.app.services.prompts import build_prompt
from src.domain.constants import DEFAULT_FIELD_MAX_TOKENS
from src.domain.documents import get_document
from src.domain.schemas import GenerateFieldOptions, ToolId

logger = logging.getLogger(__name__)


@dataclass
class FieldGenerationResult:
    """필드 생성 결과 (텍스트 + 추적 메타데이터)."""
    field_key: str
    text: str
    fallback_used: bool = False
    model_used: str | None = None
    prompt_hash: str | None = None
    error_message: str | None = None


def fallback_text(tool_id: ToolId | str, field_key: str) -> str:
    """AI 생성 실패 시 사용하는 고정 문구."""
    return get_document(tool_id).fallback_text(field_key)


async def generate_field(
    client: LLMProvider | None,
    tool_id: ToolId | str,
    field_key: str,
    inputs: dict[str, Any],
    options: GenerateFieldOptions | None = None,
    max_tokens: int = DEFAULT_FIELD_MAX_TOKENS,
) -> FieldGenerationResult:
    """
    서술형 필드 1개 생성 (메타데이터 포함).

    Args:
        client: LLM Provider (None이면 바로 fallback)
        tool_id: 문서 유형
        field_key: 생성할 필드 키
        inputs: 입력값 스냅샷
        options: 생성 옵션
        max_tokens: 최대 출력 토큰

    Returns:
        FieldGenerationResult (text는 항상 비어 있지 않음)
    """
    prompt = build_prompt(tool_id, field_key, inputs, options)
    prompt_hash = compute_hash(prompt)
    model_used: str | None = None

    try:
        if client is None:
            raise GenerationError("PROVIDER_UNAVAILABLE", "LLM provider가 설정되지 않았습니다.")

        completion = await client.complete(prompt, max_tokens=max_tokens)
        model_used = completion.model_used
        text = completion.text.strip()
        if not text:
            raise GenerationError("EMPTY_TEXT", "생성된 텍스트가 비어 있습니다.")

        return FieldGenerationResult(
            field_key=field_key,
            text=text,
            model_used=model_used,
            prompt_hash=prompt_hash,
        )

    except Exception as e:
        logger.error(
            f"Field generation failed ({tool_id}/{field_key}), using fallback: {e}",
            exc_info=True,
        )
        return FieldGenerationResult(
            field_key=field_key,
            text=fallback_text(tool_id, field_key),
            fallback_used=True,
            model_used=model_used,
            prompt_hash=prompt_hash,
            error_message=str(e),
        )


async def generate_field_text(
    client: LLMProvider | None,
    tool_id: ToolId | str,
    field_key: str,
    inputs: dict[str, Any],
    options: GenerateFieldOptions | None = None,
) -> str:
    """
    서술형 필드 1개 생성 (텍스트만).

    Returns:
        생성 텍스트 (trim) 또는 fallback 문구
    """
    result = await generate_field(client, tool_id, field_key, inputs, options)
    return result.text


async def generate_all_fields(
    client: LLMProvider | None,
    tool_id: ToolId | str,
    inputs: dict[str, Any],
    options: GenerateFieldOptions | None = None,
    concurrent: bool = False,
) -> dict[str, FieldGenerationResult]:
    """
    문서 유형의 모든 서술형 필드 생성.

    필드별 호출은 서로 독립 (같은 입력 스냅샷에서 각자 프롬프트 구성).

    Args:
        concurrent: True면 동시 호출, False면 순차 호출

    Returns:
        {field_key: FieldGenerationResult} (필드 키 순서 유지)
    """
    field_keys = get_document(tool_id).field_keys

    if concurrent:
        results = await asyncio.gather(
            *(generate_field(client, tool_id, key, inputs, options) for key in field_keys)
        )
    else:
        results = []
        for key in field_keys:
            results.append(await generate_field(client, tool_id, key, inputs, options))

    return {result.field_key: result for result in results}
