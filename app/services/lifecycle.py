"""
Quiz lifecycle management
Status transitions, submission gating and derived question stats
"""

import logging
from typing import Dict, FrozenSet, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AttemptLimitExceededException,
    InvalidStateException,
    NotFoundException,
)
from app.models.quiz import Question, Quiz, QuizStatus, Response
from app.models.user import Identity
from app.services.access import QuizAccessPolicy

logger = logging.getLogger(__name__)

# Owners may move a quiz between any two states
ALLOWED_TRANSITIONS: Dict[QuizStatus, FrozenSet[QuizStatus]] = {
    status: frozenset(QuizStatus) for status in QuizStatus
}


class QuizLifecycleManager:
    """Guards quiz state changes and submission eligibility"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def can_transition(current: QuizStatus, target: QuizStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[QuizStatus(current)]

    def change_status(self, quiz: Quiz, target: QuizStatus) -> None:
        """Set ``quiz.status``; publishing refreshes the question stats first"""
        target = QuizStatus(target)
        if not self.can_transition(quiz.status, target):
            raise InvalidStateException(
                f"Cannot move quiz from {QuizStatus(quiz.status).value} to {target.value}"
            )
        if target == QuizStatus.LIVE:
            self.recompute_stats(quiz)
        if quiz.status != target:
            logger.info(
                f"Quiz {quiz.id} status {QuizStatus(quiz.status).value} -> {target.value}",
                extra={"quiz_id": quiz.id},
            )
        quiz.status = target

    def recompute_stats(self, quiz: Quiz) -> Quiz:
        """Re-aggregate totalQuestions/totalPoints from the stored question set"""
        self.db.flush()
        count, points = (
            self.db.query(func.count(Question.id), func.coalesce(func.sum(Question.points), 0))
            .filter(Question.quiz_id == quiz.id)
            .one()
        )
        quiz.total_questions = int(count)
        quiz.total_points = int(points)
        return quiz

    def attempts_used(self, quiz_id: str, user_id: str) -> int:
        return (
            self.db.query(Response)
            .filter(Response.quiz_id == quiz_id, Response.user_id == user_id)
            .count()
        )

    def check_submission(self, quiz: Optional[Quiz], identity: Identity) -> Quiz:
        """
        Gate a submission; each failed check stops with its own error

        1. quiz exists                       -> NotFoundException
        2. caller may access the quiz        -> ForbiddenException
        3. quiz is live                      -> InvalidStateException
        4. attempts used < quiz.max_attempts -> AttemptLimitExceededException
        """
        if quiz is None:
            raise NotFoundException("Quiz")

        QuizAccessPolicy.require_access(quiz, identity)

        if quiz.status != QuizStatus.LIVE:
            raise InvalidStateException(
                "Quiz is not live and cannot be submitted",
                details={"quiz_id": quiz.id, "status": QuizStatus(quiz.status).value},
            )

        used = self.attempts_used(quiz.id, identity.id)
        if used >= quiz.max_attempts:
            logger.info(
                "Attempt limit reached",
                extra={"quiz_id": quiz.id, "user_id": identity.id, "attempts": used},
            )
            raise AttemptLimitExceededException(quiz.max_attempts)

        return quiz

    @staticmethod
    def ensure_retake_allowed(quiz: Optional[Quiz]) -> None:
        """Responses may only be withdrawn on quizzes that allow more than one attempt"""
        if quiz is not None and quiz.max_attempts == 1:
            raise InvalidStateException("This quiz does not allow retakes")
