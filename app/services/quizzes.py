"""Quiz service"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import NotFoundException
from app.models.quiz import Question, Quiz, QuizStatus, Response
from app.models.user import Identity, UserRole
from app.schemas.quizzes import (
    QuizCreate,
    QuizDetailResponse,
    QuizResponse,
    QuizStatistics,
    QuizUpdate,
    QuizWithStats,
)
from app.services.access import QuizAccessPolicy
from app.services.lifecycle import QuizLifecycleManager

logger = logging.getLogger(__name__)


def _public_live():
    return and_(Quiz.status == QuizStatus.LIVE, Quiz.is_public.is_(True))


class QuizService:
    @staticmethod
    def get_quiz(db: Session, quiz_id: str) -> Quiz:
        """Get quiz by ID or raise NotFoundException"""
        quiz = db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundException("Quiz", details={"quiz_id": quiz_id})
        return quiz

    @staticmethod
    def get_owned_quiz(db: Session, quiz_id: str, identity: Identity, message: str) -> Quiz:
        quiz = QuizService.get_quiz(db, quiz_id)
        QuizAccessPolicy.require_owner(quiz, identity, message)
        return quiz

    @staticmethod
    def list_quizzes(
        db: Session,
        identity: Identity,
        status: Optional[QuizStatus] = None,
        is_public: Optional[bool] = None,
        creator_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Quiz], int]:
        """
        Quizzes visible to ``identity``, newest first

        Creators see their own quizzes plus every public live quiz; everyone
        else sees public live quizzes only. ``status``/``is_public``/
        ``creator_id`` only narrow that set.
        """
        if identity.role == UserRole.CREATOR:
            visible = or_(Quiz.creator_id == identity.id, _public_live())
        else:
            visible = _public_live()

        query = db.query(Quiz).filter(visible)
        if creator_id:
            query = query.filter(Quiz.creator_id == creator_id)
        if status is not None:
            query = query.filter(Quiz.status == status)
        if is_public is not None:
            query = query.filter(Quiz.is_public.is_(is_public))

        total = query.count()
        quizzes = (
            query.order_by(Quiz.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return quizzes, total

    @staticmethod
    def create_quiz(db: Session, quiz_data: QuizCreate, identity: Identity) -> Quiz:
        """Create quiz owned by ``identity``"""
        quiz = Quiz(
            title=quiz_data.title,
            description=quiz_data.description,
            creator_id=identity.id,
            time_limit=quiz_data.time_limit,
            max_attempts=quiz_data.max_attempts,
            is_public=quiz_data.is_public,
            status=quiz_data.status,
        )
        with transaction(db):
            db.add(quiz)

        logger.info(
            f"Quiz created: {quiz.title}",
            extra={"quiz_id": quiz.id, "status": quiz.status.value, "is_public": quiz.is_public},
        )
        return quiz

    @staticmethod
    def get_quiz_detail(db: Session, quiz_id: str, identity: Identity) -> QuizDetailResponse:
        """Quiz plus its ordered questions, answers stripped for non-owners"""
        quiz = QuizService.get_quiz(db, quiz_id)
        QuizAccessPolicy.require_access(quiz, identity)
        questions = (
            db.query(Question)
            .filter(Question.quiz_id == quiz.id)
            .order_by(Question.order_index)
            .all()
        )
        return QuizDetailResponse(
            quiz=QuizResponse.model_validate(quiz),
            questions=[QuizAccessPolicy.present_question(q, quiz, identity.id) for q in questions],
        )

    @staticmethod
    def update_quiz(db: Session, quiz_id: str, quiz_data: QuizUpdate, identity: Identity) -> Quiz:
        """Partial update by the owner"""
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only update your own quizzes"
        )
        changes = quiz_data.model_dump(exclude_unset=True)
        lifecycle = QuizLifecycleManager(db)

        with transaction(db):
            for field in ("title", "max_attempts", "is_public"):
                if changes.get(field) is not None:
                    setattr(quiz, field, changes[field])
            for field in ("description", "time_limit"):
                if field in changes:
                    setattr(quiz, field, changes[field])
            if changes.get("status") is not None:
                lifecycle.change_status(quiz, changes["status"])

        logger.info(f"Quiz updated: {quiz.id}", extra={"quiz_id": quiz.id, "fields": sorted(changes)})
        return quiz

    @staticmethod
    def delete_quiz(db: Session, quiz_id: str, identity: Identity) -> None:
        """Delete quiz together with its questions and responses"""
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only delete your own quizzes"
        )
        questions = len(quiz.questions)
        responses = len(quiz.responses)
        # Questions and responses go with the quiz through the relationship cascade
        with transaction(db):
            db.delete(quiz)

        logger.info(
            f"Quiz deleted: {quiz_id}",
            extra={"quiz_id": quiz_id, "questions_deleted": questions, "responses_deleted": responses},
        )

    @staticmethod
    def response_statistics(db: Session, quiz_id: str) -> dict:
        responses = (
            db.query(Response)
            .filter(Response.quiz_id == quiz_id, Response.is_completed.is_(True))
            .all()
        )
        if not responses:
            return {}

        scores = [r.score for r in responses]
        percentages = [r.percentage for r in responses]
        times = [r.time_taken for r in responses if r.time_taken is not None]
        passed = [p for p in percentages if p >= settings.PASSING_PERCENTAGE]

        return {
            "total_responses": len(responses),
            "average_score": sum(scores) / len(scores),
            "average_percentage": sum(percentages) / len(percentages),
            "average_time": sum(times) / len(times) if times else 0.0,
            "highest_score": max(scores),
            "lowest_score": min(scores),
            "pass_rate": len(passed) / len(responses) * 100,
        }

    @staticmethod
    def question_statistics(db: Session, quiz_id: str) -> dict:
        questions = db.query(Question).filter(Question.quiz_id == quiz_id).all()
        question_types = {}
        for question in questions:
            key = question.type.value
            question_types[key] = question_types.get(key, 0) + 1
        return {
            "total_questions": len(questions),
            "total_points": sum(q.points for q in questions),
            "question_types": question_types,
        }

    @staticmethod
    def get_statistics(db: Session, quiz_id: str, identity: Identity) -> Tuple[Quiz, QuizStatistics]:
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only view statistics for your own quizzes"
        )
        statistics = QuizStatistics(
            **QuizService.response_statistics(db, quiz.id),
            **QuizService.question_statistics(db, quiz.id),
        )
        return quiz, statistics

    @staticmethod
    def get_user_quizzes(
        db: Session, identity: Identity, status: Optional[QuizStatus] = None
    ) -> List[QuizWithStats]:
        """Creator dashboard: own quizzes with response aggregates"""
        query = db.query(Quiz).filter(Quiz.creator_id == identity.id)
        if status is not None:
            query = query.filter(Quiz.status == status)

        result = []
        for quiz in query.order_by(Quiz.created_at.desc()).all():
            response_count = db.query(Response).filter(Response.quiz_id == quiz.id).count()
            stats = QuizService.response_statistics(db, quiz.id)
            result.append(
                QuizWithStats(
                    **QuizResponse.model_validate(quiz).model_dump(),
                    response_count=response_count,
                    average_score=stats.get("average_score", 0.0),
                    average_percentage=stats.get("average_percentage", 0.0),
                )
            )
        return result
