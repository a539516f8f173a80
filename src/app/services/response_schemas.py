"""
구조화 출력 스키마 (Gemini response_schema).

OpenAPI subset 형식 dict. 키 이름은 클라이언트 DTO(camelCase)와 동일해야
파싱 결과를 그대로 domain.schemas 모델에 넣을 수 있음.

Gemini 스키마는 자유 키 map을 표현할 수 없어 filler word는
[{word, count}] 배열로 받고 core.text.fold_filler_words로 접는다.
"""

from typing import Any

from src.domain.constants import MCQ_OPTION_COUNT


def _string(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


def _string_list(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "ARRAY", "items": {"type": "STRING"}}
    if description:
        schema["description"] = description
    return schema


ATS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER", "description": "ATS compatibility score from 0-100."},
        "strengths": _string_list("List of resume strengths."),
        "improvements": _string_list("List of areas for improvement."),
    },
    "required": ["score", "strengths", "improvements"],
}

MCQ_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": _string(),
                    "options": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "min_items": MCQ_OPTION_COUNT,
                        "max_items": MCQ_OPTION_COUNT,
                    },
                    "correctAnswer": _string(),
                },
                "required": ["question", "options", "correctAnswer"],
            },
        },
    },
    "required": ["questions"],
}

DSA_QUESTION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": _string(),
        "description": _string(),
        "examples": _string_list(),
        "constraints": _string_list(),
        "testCases": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "input": _string("Input for the function, as a string."),
                    "expectedOutput": _string("Expected output, as a string."),
                },
                "required": ["input", "expectedOutput"],
            },
        },
    },
    "required": ["title", "description", "examples", "constraints", "testCases"],
}

TEST_RESULTS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "results": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "input": _string(),
                    "expected": _string(),
                    "actual": _string(),
                    "passed": {"type": "BOOLEAN"},
                },
                "required": ["input", "expected", "actual", "passed"],
            },
        },
    },
    "required": ["results"],
}

DELIVERY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "fillerWords": {
            "type": "ARRAY",
            "description": "Filler words found in the transcript with their counts.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "word": _string(),
                    "count": {"type": "INTEGER"},
                },
                "required": ["word", "count"],
            },
        },
    },
    "required": ["fillerWords"],
}
