"""
Question endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.cache import invalidate_leaderboard
from app.core.database import get_db
from app.core.security import get_current_user, require_creator
from app.models.user import Identity
from app.schemas.base import Message
from app.schemas.questions import QuestionCreate, QuestionReorder, QuestionResponse, QuestionUpdate
from app.services.questions import QuestionService

router = APIRouter()


@router.get(
    "/quiz/{quiz_id}",
    response_model=List[QuestionResponse],
    response_model_exclude_none=True,
)
async def get_quiz_questions(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Questions of a quiz in display order"""
    return QuestionService.get_questions(db, quiz_id, current_user)


@router.get("/{question_id}", response_model=QuestionResponse, response_model_exclude_none=True)
async def get_question(
    question_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return QuestionService.get_question(db, question_id, current_user)


@router.post(
    "/quiz/{quiz_id}",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(
    quiz_id: str,
    question_create: QuestionCreate,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Add question to own quiz"""
    question = QuestionService.add_question(db, quiz_id, question_create, current_user)
    await invalidate_leaderboard(quiz_id)
    return question


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: str,
    question_update: QuestionUpdate,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Update question in own quiz"""
    question = QuestionService.update_question(db, question_id, question_update, current_user)
    await invalidate_leaderboard(question.quiz_id)
    return question


@router.delete("/{question_id}", response_model=Message)
async def delete_question(
    question_id: str,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    quiz_id = QuestionService.delete_question(db, question_id, current_user)
    await invalidate_leaderboard(quiz_id)
    return Message(message="Question deleted successfully")


@router.patch("/quiz/{quiz_id}/reorder", response_model=List[QuestionResponse])
async def reorder_questions(
    quiz_id: str,
    reorder: QuestionReorder,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Move questions to new order indices"""
    return QuestionService.reorder_questions(db, quiz_id, reorder.question_orders, current_user)
