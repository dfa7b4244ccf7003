"""
QuizForge Models Package
"""

from app.models.user import Identity, UserRole
from app.models.quiz import (
    Quiz, Question, Response,
    QuizStatus, QuestionType
)

__all__ = [
    "Identity", "UserRole",
    "Quiz", "Question", "Response",
    "QuizStatus", "QuestionType"
]
