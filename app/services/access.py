"""
Quiz access policy
Who may read, attempt, mutate or grade which records
"""

import logging
from typing import Optional

from app.core.exceptions import ForbiddenException
from app.models.quiz import Question, Quiz, QuizStatus, Response
from app.models.user import Identity, UserRole
from app.schemas.questions import QuestionResponse

logger = logging.getLogger(__name__)


class QuizAccessPolicy:
    """Ordered access rules; the first rule that matches decides"""

    @staticmethod
    def is_owner(quiz: Quiz, user_id: str) -> bool:
        return str(quiz.creator_id) == str(user_id)

    @classmethod
    def can_access(cls, quiz: Quiz, user_id: str, role: Optional[UserRole] = None) -> bool:
        """
        Read/attempt access

        1. the creator always has access, whatever the status
        2. anyone authenticated may use a live public quiz
        3. nobody else
        ``role`` plays no part in the decision.
        """
        if cls.is_owner(quiz, user_id):
            return True
        if quiz.status == QuizStatus.LIVE and quiz.is_public:
            return True
        return False

    @classmethod
    def can_mutate(cls, quiz: Quiz, user_id: str) -> bool:
        """Editing, deleting, statistics and response listings are owner-only"""
        return cls.is_owner(quiz, user_id)

    @classmethod
    def can_view_leaderboard(cls, quiz: Quiz, user_id: str) -> bool:
        return quiz.is_public or cls.is_owner(quiz, user_id)

    @classmethod
    def can_view_response(cls, response: Response, quiz: Optional[Quiz], user_id: str) -> bool:
        if str(response.user_id) == str(user_id):
            return True
        return quiz is not None and cls.is_owner(quiz, user_id)

    @staticmethod
    def can_delete_response(response: Response, user_id: str) -> bool:
        return str(response.user_id) == str(user_id)

    # Enforcing variants used by the services

    @classmethod
    def require_access(cls, quiz: Quiz, identity: Identity, message: str = "Access denied to this quiz"):
        if not cls.can_access(quiz, identity.id, identity.role):
            logger.warning(
                "Quiz access denied",
                extra={"quiz_id": quiz.id, "user_id": identity.id, "status": quiz.status},
            )
            raise ForbiddenException(message)

    @classmethod
    def require_owner(cls, quiz: Quiz, identity: Identity, message: str = "You can only manage your own quizzes"):
        if not cls.can_mutate(quiz, identity.id):
            logger.warning(
                "Ownership check failed",
                extra={"quiz_id": quiz.id, "user_id": identity.id},
            )
            raise ForbiddenException(message)

    @classmethod
    def present_question(cls, question: Question, quiz: Quiz, user_id: str) -> QuestionResponse:
        """Question payload for ``user_id``; answers stay hidden from non-owners"""
        payload = QuestionResponse.model_validate(question)
        if cls.is_owner(quiz, user_id):
            return payload
        return payload.model_copy(update={"correct_answer": None, "explanation": None})
