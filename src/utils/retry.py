"""
재시도 로직 유틸리티.

LLM 호출이 일시적으로 실패하거나 형식이 깨진 응답을 줄 때
지수 백오프로 재시도합니다.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """재시도 가능한 에러 (예: 모델이 스키마를 어긴 응답)."""

    pass


async def retry_with_exponential_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 8.0,
    exponential_base: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (RetryableError,),
    label: str = "call",
) -> T:
    """
    지수 백오프를 사용한 재시도.

    Args:
        func: 재시도할 비동기 함수 (인자 없음, functools.partial/lambda로 감쌀 것)
        max_retries: 최대 재시도 횟수 (총 시도 = max_retries + 1)
        initial_delay: 초기 대기 시간(초)
        max_delay: 최대 대기 시간(초)
        exponential_base: 지수 백오프 기수
        exceptions: 재시도할 예외 타입들 (그 외 예외는 즉시 전파)
        label: 로그 식별자

    Returns:
        func의 반환값

    Raises:
        마지막 시도에서 발생한 예외
    """
    total = max_retries + 1
    attempt = 1
    delay = initial_delay

    while True:
        try:
            result = await func()
        except exceptions as e:
            if attempt >= total:
                logger.error(f"{label}: giving up after {total} attempts ({e})")
                raise
            logger.warning(
                f"{label}: attempt {attempt}/{total} failed ({e}), "
                f"next try in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)
            attempt += 1
            continue

        if attempt > 1:
            logger.info(f"{label}: succeeded on attempt {attempt}/{total}")
        return result
