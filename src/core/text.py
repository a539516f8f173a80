"""
LLM 응답 후처리.

모델이 지시를 어기고 markdown 코드블록으로 감싸는 경우가 있어
코드/JSON 응답은 항상 여기서 정리한 뒤 사용.
"""

import json
import re
from collections.abc import Iterable
from typing import Any

# ```python\n 같은 여는 fence 또는 닫는 ```
_FENCE_PATTERN = re.compile(r"```[\w+#-]*\n|```")

# 응답 전체가 하나의 fenced block인 경우
_FENCED_BLOCK_PATTERN = re.compile(
    r"^```(?:json|JSON)?[ \t]*\n?(?P<body>.*?)\n?```$",
    re.DOTALL,
)


def strip_code_fences(text: str) -> str:
    """
    코드 응답에서 markdown fence 제거.

    Examples:
        >>> strip_code_fences("```python\\nprint(1)\\n```")
        'print(1)'
    """
    return _FENCE_PATTERN.sub("", text).strip()


def parse_json_response(text: str) -> Any:
    """
    JSON 응답 파싱.

    Raises:
        ValueError: 빈 응답 또는 JSON 파싱 실패
    """
    cleaned = text.strip()
    if not cleaned:
        raise ValueError("empty response")

    match = _FENCED_BLOCK_PATTERN.match(cleaned)
    if match:
        cleaned = match.group("body").strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e


def fold_filler_words(items: Iterable[dict[str, Any]] | dict[str, Any]) -> dict[str, int]:
    """
    [{word, count}, ...] → {word: count}.

    모델이 {word: count} map 형태로 답한 경우도 같은 규칙으로 정리.

    - 단어는 소문자/trim 기준으로 합산
    - count가 0 이하이거나 숫자가 아니면 제외
    """
    if isinstance(items, dict):
        items = [{"word": word, "count": count} for word, count in items.items()]

    folded: dict[str, int] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        word = str(item.get("word", "")).strip().lower()
        if not word:
            continue
        try:
            count = int(item.get("count", 0))
        except (TypeError, ValueError):
            continue
        if count <= 0:
            continue
        folded[word] = folded.get(word, 0) + count
    return folded
