"""MCQ 퀴즈 채점."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from src.domain.schemas import MCQResult


@dataclass
class QuizScore:
    correct: int
    total: int
    percentage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "correct": self.correct,
            "total": self.total,
            "percentage": self.percentage,
        }


def score_quiz(results: Iterable[MCQResult]) -> QuizScore:
    """정답 = user_answer가 correct_answer와 정확히 일치."""
    results = list(results)
    correct = sum(
        1 for result in results if result.user_answer == result.question.correct_answer
    )
    total = len(results)
    percentage = math.floor(correct / total * 100 + 0.5) if total > 0 else 0
    return QuizScore(correct=correct, total=total, percentage=percentage)


def build_quiz_summary(role: str, score: QuizScore) -> str:
    """리포트 summary용 markdown."""
    return (
        f"### MCQ Quiz Results for {role}\n\n"
        f"**Final Score:** {score.correct} out of {score.total} ({score.percentage}%)"
    )
