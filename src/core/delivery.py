"""
말하기(delivery) 지표.

- words_per_minute: 사용자 발화 구간 합산 기준
- count_filler_words: LLM 분석 실패 시 쓰는 결정론적 카운트
"""

import math
import re
from collections.abc import Iterable
from typing import Any

from src.domain.constants import FILLER_WORDS

_FILLER_PATTERNS: dict[str, re.Pattern[str]] = {
    word: re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
    for word in FILLER_WORDS
}


def words_per_minute(responses: Iterable[dict[str, Any]]) -> int:
    """
    분당 단어 수.

    Args:
        responses: [{transcript, startTime, endTime}] (epoch milliseconds)

    Returns:
        반올림한 WPM. 총 발화 시간이 0 이하이면 0.
    """
    total_words = 0
    total_seconds = 0.0

    for response in responses:
        transcript = str(response.get("transcript") or "")
        total_words += len(transcript.split())

        start = response.get("startTime", response.get("start_time"))
        end = response.get("endTime", response.get("end_time"))
        if start is None or end is None:
            continue
        total_seconds += (float(end) - float(start)) / 1000

    if total_seconds <= 0:
        return 0
    # Math.round 동작 (half-up), 클라이언트 계산값과 일치
    return math.floor(total_words / total_seconds * 60 + 0.5)


def count_filler_words(transcript: str) -> dict[str, int]:
    """transcript 내 filler word 출현 횟수 (0회 단어는 제외)."""
    counts: dict[str, int] = {}
    for word, pattern in _FILLER_PATTERNS.items():
        found = len(pattern.findall(transcript))
        if found:
            counts[word] = found
    return counts
