"""
Response scoring
Grades every question of a quiz for one submission and records the attempt
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import DuplicateSubmissionException, NotFoundException
from app.models.quiz import Question, Quiz, Response
from app.services.grading import grade

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
    """Round half up to two decimals"""
    return math.floor(value * 100 + 0.5) / 100


def compute_percentage(score: int, total_points: int) -> float:
    if total_points <= 0:
        return 0.0
    return round2(score / total_points * 100)


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def compute_time_taken(started_at: Optional[datetime], submitted_at: datetime) -> Optional[int]:
    """
    Whole seconds between start and submission, or None without a start time

    A start later than the submission counts as 0 seconds.
    """
    if started_at is None:
        return None
    seconds = math.floor((_as_utc(submitted_at) - _as_utc(started_at)).total_seconds())
    if seconds < 0:
        # Client clock ahead of ours
        logger.warning(
            f"Start time {started_at.isoformat()} is after submission, recording 0s",
            extra={"skew_seconds": -seconds},
        )
        return 0
    return seconds


@dataclass
class ScoreSheet:
    score: int = 0
    total_points: int = 0
    feedback: List[dict] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return compute_percentage(self.score, self.total_points)


def _unanswered_entry(question: Question) -> dict:
    return {
        "questionId": question.id,
        "userAnswer": "",
        "correctAnswer": question.correct_answer,
        "isCorrect": False,
        "points": 0,
        "explanation": question.explanation,
    }


def score_answers(questions: Iterable[Question], answers: Dict[str, str]) -> ScoreSheet:
    """
    Grade ``answers`` against every question, in question order

    Each question yields exactly one feedback entry. Missing or empty answers
    score zero, and so does a question that cannot be graded; neither stops
    the rest of the submission from being scored.
    """
    sheet = ScoreSheet()
    for question in sorted(questions, key=lambda q: q.order_index):
        sheet.total_points += question.points
        user_answer = answers.get(question.id)

        if not user_answer:
            sheet.feedback.append(_unanswered_entry(question))
            continue

        try:
            result = grade(question, user_answer)
        except (AttributeError, TypeError) as e:
            logger.warning(
                f"Could not grade question {question.id}: {e}",
                extra={"question_id": question.id, "quiz_id": question.quiz_id},
            )
            sheet.feedback.append(_unanswered_entry(question))
            continue

        sheet.score += result.points_earned
        sheet.feedback.append(
            {
                "questionId": question.id,
                "userAnswer": user_answer,
                "correctAnswer": result.correct_answer,
                "isCorrect": result.is_correct,
                "points": result.points_earned,
                "explanation": result.explanation,
            }
        )
    return sheet


class ResponseScorer:
    """Turns a validated submission into a persisted, graded Response"""

    def __init__(self, db: Session):
        self.db = db

    def next_attempt_number(self, quiz_id: str, user_id: str) -> int:
        current = (
            self.db.query(func.max(Response.attempt_number))
            .filter(Response.quiz_id == quiz_id, Response.user_id == user_id)
            .scalar()
        )
        return (current or 0) + 1

    def score(
        self,
        quiz: Optional[Quiz],
        questions: List[Question],
        answers: Dict[str, str],
        user_id: str,
        started_at: Optional[datetime] = None,
        submitted_at: Optional[datetime] = None,
    ) -> Response:
        """
        Grade and store one attempt

        Attempt-limit checks belong to the caller; this only registers the next
        attempt number, so a concurrent submission claiming the same number is
        rejected by the store and reported as a duplicate.
        """
        if quiz is None:
            raise NotFoundException("Quiz")
        if not questions:
            raise NotFoundException("Quiz questions", details={"quiz_id": quiz.id})

        submitted_at = submitted_at or datetime.now(timezone.utc)
        time_taken = compute_time_taken(started_at, submitted_at)
        sheet = score_answers(questions, answers)

        response = Response(
            quiz_id=quiz.id,
            user_id=user_id,
            attempt_number=self.next_attempt_number(quiz.id, user_id),
            answers=dict(answers),
            score=sheet.score,
            total_points=sheet.total_points,
            percentage=sheet.percentage,
            time_taken=time_taken,
            is_completed=True,
            feedback=sheet.feedback,
            started_at=started_at or submitted_at,
            submitted_at=submitted_at,
        )

        try:
            with transaction(self.db):
                self.db.add(response)
        except IntegrityError as e:
            raise DuplicateSubmissionException(
                details={"quiz_id": quiz.id, "attempt_number": response.attempt_number}
            ) from e

        logger.info(
            f"Scored submission for quiz {quiz.id}",
            extra={
                "quiz_id": quiz.id,
                "user_id": user_id,
                "score": response.score,
                "total_points": response.total_points,
                "percentage": response.percentage,
                "attempt_number": response.attempt_number,
            },
        )
        return response
