"""Submission and response service"""

import logging
from typing import List, Tuple

from prometheus_client import Counter
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import ForbiddenException, NotFoundException, QuizForgeException
from app.models.quiz import Question, Quiz, Response
from app.models.user import Identity
from app.schemas.responses import (
    DetailedFeedbackItem,
    QuestionSummary,
    ResponseDetail,
    ResponseOut,
    SubmissionCreate,
)
from app.services.access import QuizAccessPolicy
from app.services.lifecycle import QuizLifecycleManager
from app.services.quizzes import QuizService
from app.services.ranking import LeaderboardService
from app.services.scoring import ResponseScorer

logger = logging.getLogger(__name__)

SUBMISSIONS = Counter(
    "quizforge_submissions_total",
    "Quiz submissions by outcome",
    ["outcome"],
)


class ResponseService:
    @staticmethod
    def _get_response(db: Session, response_id: str) -> Response:
        response = db.get(Response, response_id)
        if response is None:
            raise NotFoundException("Response", details={"response_id": response_id})
        return response

    @staticmethod
    def submit(
        db: Session, quiz_id: str, submission: SubmissionCreate, identity: Identity
    ) -> Response:
        """
        Gate, grade and record one attempt

        Nothing is written unless every lifecycle check passes.
        """
        try:
            quiz = QuizLifecycleManager(db).check_submission(db.get(Quiz, quiz_id), identity)
            questions = (
                db.query(Question)
                .filter(Question.quiz_id == quiz.id)
                .order_by(Question.order_index)
                .all()
            )
            response = ResponseScorer(db).score(
                quiz,
                questions,
                submission.answers,
                user_id=identity.id,
                started_at=submission.start_time,
            )
        except QuizForgeException as e:
            SUBMISSIONS.labels(outcome=e.error_code.lower()).inc()
            raise

        SUBMISSIONS.labels(outcome="scored").inc()
        return response

    @staticmethod
    def get_my_quiz_response(db: Session, quiz_id: str, identity: Identity) -> Tuple[Response, int]:
        """Caller's most recent attempt at a quiz, with its rank"""
        response = (
            db.query(Response)
            .filter(Response.quiz_id == quiz_id, Response.user_id == identity.id)
            .order_by(Response.submitted_at.desc())
            .first()
        )
        if response is None:
            raise NotFoundException("Response for this quiz")
        return response, LeaderboardService.get_rank(db, response)

    @staticmethod
    def get_quiz_responses(
        db: Session, quiz_id: str, identity: Identity, page: int = 1, limit: int = 20
    ) -> Tuple[List[Response], int]:
        """All attempts at a quiz, for its owner"""
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only view responses for your own quizzes"
        )
        query = db.query(Response).filter(Response.quiz_id == quiz.id)
        total = query.count()
        responses = (
            query.order_by(Response.score.desc(), Response.submitted_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return responses, total

    @staticmethod
    def get_user_responses(
        db: Session, identity: Identity, page: int = 1, limit: int = 10
    ) -> Tuple[List[Tuple[Response, int]], int]:
        """Caller's attempts across quizzes, newest first, each with its rank"""
        query = db.query(Response).filter(Response.user_id == identity.id)
        total = query.count()
        responses = (
            query.order_by(Response.submitted_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [(r, LeaderboardService.get_rank(db, r)) for r in responses], total

    @staticmethod
    def get_response_detail(db: Session, response_id: str, identity: Identity) -> ResponseDetail:
        """Response with per-question feedback; submitter or quiz owner only"""
        response = ResponseService._get_response(db, response_id)
        quiz = db.get(Quiz, response.quiz_id)
        if not QuizAccessPolicy.can_view_response(response, quiz, identity.id):
            raise ForbiddenException("Access denied to this response")

        questions = (
            db.query(Question)
            .filter(Question.quiz_id == response.quiz_id)
            .order_by(Question.order_index)
            .all()
        )
        feedback_by_question = {entry["questionId"]: entry for entry in response.feedback or []}

        detailed = []
        for question in questions:
            entry = feedback_by_question.get(question.id, {})
            detailed.append(
                DetailedFeedbackItem(
                    question=QuestionSummary.model_validate(question),
                    user_answer=(response.answers or {}).get(question.id) or "",
                    correct_answer=entry.get("correctAnswer") or question.correct_answer,
                    is_correct=bool(entry.get("isCorrect")),
                    points_earned=entry.get("points") or 0,
                    explanation=entry.get("explanation") or question.explanation,
                )
            )

        return ResponseDetail(
            response=ResponseOut.model_validate(response),
            detailed_feedback=detailed,
            rank=LeaderboardService.get_rank(db, response),
        )

    @staticmethod
    def delete_response(db: Session, response_id: str, identity: Identity) -> str:
        """Withdraw an own attempt so it can be retaken; returns the quiz id"""
        response = ResponseService._get_response(db, response_id)
        if not QuizAccessPolicy.can_delete_response(response, identity.id):
            raise ForbiddenException("You can only delete your own responses")

        QuizLifecycleManager.ensure_retake_allowed(db.get(Quiz, response.quiz_id))

        quiz_id = response.quiz_id
        with transaction(db):
            db.delete(response)

        logger.info(
            f"Response deleted: {response_id}",
            extra={"quiz_id": quiz_id, "user_id": identity.id},
        )
        return quiz_id
