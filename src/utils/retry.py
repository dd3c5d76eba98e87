"""
재시도 로직 유틸리티.

LLM API의 일시적 오류(rate limit, 연결, 타임아웃, 5xx)만 재시도.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delays(
    max_retries: int,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
) -> Iterator[float]:
    """
    재시도 사이 대기 시간 (max_retries개).

    예: max_retries=4, initial=1, base=2, max=5 → 1, 2, 4, 5
    """
    delay = initial_delay
    for _ in range(max_retries):
        yield delay
        delay = min(delay * exponential_base, max_delay)


async def retry_with_exponential_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] | None = None,
) -> T:
    """
    지수 백오프를 사용한 재시도.

    Args:
        func: 재시도할 비동기 함수 (인자 없음)
        max_retries: 최대 재시도 횟수 (총 시도 = max_retries + 1)
        initial_delay: 초기 대기 시간(초)
        max_delay: 최대 대기 시간(초)
        exponential_base: 지수 백오프 기수
        exceptions: 재시도할 예외 타입들 (그 외 예외는 즉시 전파)
        sleep: 대기 함수 (None이면 asyncio.sleep)

    Returns:
        func의 반환값

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempts = max_retries + 1
    delays = backoff_delays(max_retries, initial_delay, max_delay, exponential_base)

    for attempt in range(1, attempts + 1):
        try:
            result = await func()
        except exceptions as e:
            if attempt == attempts:
                logger.error(f"All {attempts} attempts failed. Last error: {e}")
                raise

            delay = next(delays)
            logger.warning(
                f"Attempt {attempt}/{attempts} failed: {e}. Retrying in {delay:.1f}s..."
            )
            await (sleep or asyncio.sleep)(delay)
            continue

        if attempt > 1:
            logger.info(f"Retry succeeded on attempt {attempt}/{attempts}")
        return result

    # max_retries < 0
    raise ValueError(f"max_retries must be >= 0, got {max_retries}")
