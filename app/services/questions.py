"""Question service"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import NotFoundException, ValidationException
from app.models.quiz import Question, QuestionType, Quiz
from app.models.user import Identity
from app.schemas.questions import QuestionCreate, QuestionOrder, QuestionResponse, QuestionUpdate
from app.services.access import QuizAccessPolicy
from app.services.lifecycle import QuizLifecycleManager
from app.services.quizzes import QuizService
from app.utils.validators import validate_question_definition

logger = logging.getLogger(__name__)


class QuestionService:
    @staticmethod
    def _ordered(db: Session, quiz_id: str) -> List[Question]:
        return (
            db.query(Question)
            .filter(Question.quiz_id == quiz_id)
            .order_by(Question.order_index)
            .all()
        )

    @staticmethod
    def _next_order_index(db: Session, quiz_id: str) -> int:
        last = db.query(func.max(Question.order_index)).filter(Question.quiz_id == quiz_id).scalar()
        return 0 if last is None else last + 1

    @staticmethod
    def _ensure_order_free(
        db: Session, quiz_id: str, order_index: int, exclude_id: Optional[str] = None
    ) -> None:
        query = db.query(Question).filter(
            Question.quiz_id == quiz_id, Question.order_index == order_index
        )
        if exclude_id is not None:
            query = query.filter(Question.id != exclude_id)
        if query.first() is not None:
            raise ValidationException(
                f"Order index {order_index} is already used in this quiz",
                details={"order_index": order_index},
            )

    @staticmethod
    def _get_question(db: Session, question_id: str) -> Question:
        question = db.get(Question, question_id)
        if question is None:
            raise NotFoundException("Question", details={"question_id": question_id})
        return question

    @staticmethod
    def _get_owned_question(db: Session, question_id: str, identity: Identity, message: str):
        question = QuestionService._get_question(db, question_id)
        quiz = db.get(Quiz, question.quiz_id)
        if quiz is None:
            raise NotFoundException("Associated quiz")
        QuizAccessPolicy.require_owner(quiz, identity, message)
        return question, quiz

    @staticmethod
    def add_question(
        db: Session, quiz_id: str, question_data: QuestionCreate, identity: Identity
    ) -> Question:
        """Add a question to a quiz and refresh the quiz totals"""
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only add questions to your own quizzes"
        )

        if question_data.order_index is None:
            order_index = QuestionService._next_order_index(db, quiz.id)
        else:
            order_index = question_data.order_index
            QuestionService._ensure_order_free(db, quiz.id, order_index)

        question = Question(
            quiz_id=quiz.id,
            type=question_data.type,
            content=question_data.content,
            options=question_data.options,
            correct_answer=question_data.correct_answer,
            points=question_data.points,
            explanation=question_data.explanation,
            order_index=order_index,
            media=question_data.media.model_dump() if question_data.media else None,
        )
        with transaction(db):
            db.add(question)
            QuizLifecycleManager(db).recompute_stats(quiz)

        logger.info(
            f"Question added to quiz {quiz.id}",
            extra={"quiz_id": quiz.id, "question_id": question.id, "type": question.type.value},
        )
        return question

    @staticmethod
    def get_questions(db: Session, quiz_id: str, identity: Identity) -> List[QuestionResponse]:
        """Ordered questions of a quiz as ``identity`` may see them"""
        quiz = QuizService.get_quiz(db, quiz_id)
        QuizAccessPolicy.require_access(quiz, identity)
        return [
            QuizAccessPolicy.present_question(q, quiz, identity.id)
            for q in QuestionService._ordered(db, quiz.id)
        ]

    @staticmethod
    def get_question(db: Session, question_id: str, identity: Identity) -> QuestionResponse:
        question = QuestionService._get_question(db, question_id)
        quiz = db.get(Quiz, question.quiz_id)
        if quiz is None:
            raise NotFoundException("Associated quiz")
        QuizAccessPolicy.require_access(quiz, identity, "Access denied to this question")
        return QuizAccessPolicy.present_question(question, quiz, identity.id)

    @staticmethod
    def update_question(
        db: Session, question_id: str, question_data: QuestionUpdate, identity: Identity
    ) -> Question:
        """
        Apply a partial update

        Type, options and correct answer are merged with the stored values and
        validated together before anything is written.
        """
        question, quiz = QuestionService._get_owned_question(
            db, question_id, identity, "You can only update questions in your own quizzes"
        )
        changes = question_data.model_fields_set

        new_type = question_data.type or question.type
        if "options" in changes:
            options = question_data.options
        elif new_type == question.type or new_type == QuestionType.MCQ:
            options = question.options
        else:
            # Type changed away from mcq: let the new type pick its defaults
            options = None
        correct_answer = question_data.correct_answer or question.correct_answer

        try:
            options = validate_question_definition(QuestionType(new_type), options, correct_answer)
        except ValueError as e:
            raise ValidationException(str(e))

        if question_data.order_index is not None:
            QuestionService._ensure_order_free(
                db, quiz.id, question_data.order_index, exclude_id=question.id
            )

        with transaction(db):
            question.type = new_type
            question.options = options
            question.correct_answer = correct_answer
            if question_data.content is not None:
                question.content = question_data.content
            if question_data.points is not None:
                question.points = question_data.points
            if question_data.order_index is not None:
                question.order_index = question_data.order_index
            if "explanation" in changes:
                question.explanation = question_data.explanation
            if "media" in changes:
                question.media = question_data.media.model_dump() if question_data.media else None
            QuizLifecycleManager(db).recompute_stats(quiz)

        logger.info(
            f"Question updated: {question.id}",
            extra={"quiz_id": quiz.id, "question_id": question.id, "fields": sorted(changes)},
        )
        return question

    @staticmethod
    def delete_question(db: Session, question_id: str, identity: Identity) -> str:
        """Remove a question and refresh quiz totals; returns the quiz id"""
        question, quiz = QuestionService._get_owned_question(
            db, question_id, identity, "You can only delete questions from your own quizzes"
        )
        with transaction(db):
            db.delete(question)
            QuizLifecycleManager(db).recompute_stats(quiz)

        logger.info(
            f"Question deleted: {question_id}",
            extra={"quiz_id": quiz.id, "question_id": question_id},
        )
        return quiz.id

    @staticmethod
    def reorder_questions(
        db: Session, quiz_id: str, orders: List[QuestionOrder], identity: Identity
    ) -> List[Question]:
        """Move questions to new positions; the resulting indices must stay unique"""
        quiz = QuizService.get_owned_quiz(
            db, quiz_id, identity, "You can only reorder questions in your own quizzes"
        )
        questions = {q.id: q for q in QuestionService._ordered(db, quiz.id)}

        final_index = {qid: q.order_index for qid, q in questions.items()}
        for order in orders:
            if order.question_id not in questions:
                raise NotFoundException(
                    "Question", details={"question_id": order.question_id, "quiz_id": quiz.id}
                )
            final_index[order.question_id] = order.order_index

        if len(set(final_index.values())) != len(final_index):
            raise ValidationException("Question order indices must be unique within a quiz")

        with transaction(db):
            for qid, index in final_index.items():
                questions[qid].order_index = index

        logger.info(f"Questions reordered for quiz {quiz.id}", extra={"quiz_id": quiz.id})
        return QuestionService._ordered(db, quiz.id)
