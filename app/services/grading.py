"""
Answer grading for a single question
"""

from dataclasses import dataclass
from typing import Optional

from app.models.quiz import Question


@dataclass(frozen=True)
class GradeResult:
    is_correct: bool
    points_earned: int
    correct_answer: str
    explanation: Optional[str]


def grade(question: Question, submitted_answer: str) -> GradeResult:
    """
    Grade ``submitted_answer`` against ``question.correct_answer``

    Matching is an exact, case-insensitive string comparison for every question
    type. Surrounding whitespace is significant and there is no partial credit.
    """
    is_correct = question.correct_answer.lower() == submitted_answer.lower()
    return GradeResult(
        is_correct=is_correct,
        points_earned=question.points if is_correct else 0,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
    )
