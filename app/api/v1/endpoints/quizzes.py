"""
Quiz endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.cache import cache_manager, invalidate_leaderboard, leaderboard_key
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ForbiddenException
from app.core.security import get_current_user, require_creator
from app.models.quiz import QuizStatus
from app.models.user import Identity
from app.schemas.base import Message, Pagination
from app.schemas.leaderboard import LeaderboardEntry, LeaderboardQuiz, LeaderboardResponse
from app.schemas.quizzes import (
    QuizCreate,
    QuizDetailResponse,
    QuizListResponse,
    QuizResponse,
    QuizStatisticsResponse,
    QuizUpdate,
    QuizWithStats,
)
from app.services.access import QuizAccessPolicy
from app.services.quizzes import QuizService
from app.services.ranking import LeaderboardService

router = APIRouter()


@router.get("/", response_model=QuizListResponse)
async def get_quizzes(
    status_filter: Optional[QuizStatus] = Query(None, alias="status"),
    is_public: Optional[bool] = Query(None, alias="isPublic"),
    creator_id: Optional[str] = Query(None, alias="creatorId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List quizzes visible to the caller"""
    quizzes, total = QuizService.list_quizzes(
        db, current_user, status_filter, is_public, creator_id, page, limit
    )
    return QuizListResponse(
        quizzes=[QuizResponse.model_validate(q) for q in quizzes],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/my-quizzes", response_model=List[QuizWithStats])
async def get_user_quizzes(
    status_filter: Optional[QuizStatus] = Query(None, alias="status"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Caller's own quizzes with response counts and averages"""
    return QuizService.get_user_quizzes(db, current_user, status_filter)


@router.post("/", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    quiz_create: QuizCreate,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Create new quiz (creators only)"""
    return QuizService.create_quiz(db, quiz_create, current_user)


@router.get("/{quiz_id}", response_model=QuizDetailResponse, response_model_exclude_none=True)
async def get_quiz(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get quiz with its questions"""
    return QuizService.get_quiz_detail(db, quiz_id, current_user)


@router.put("/{quiz_id}", response_model=QuizResponse)
async def update_quiz(
    quiz_id: str,
    quiz_update: QuizUpdate,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Update quiz"""
    quiz = QuizService.update_quiz(db, quiz_id, quiz_update, current_user)
    await invalidate_leaderboard(quiz_id)
    return quiz


@router.delete("/{quiz_id}", response_model=Message)
async def delete_quiz(
    quiz_id: str,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Delete quiz with its questions and responses"""
    QuizService.delete_quiz(db, quiz_id, current_user)
    await invalidate_leaderboard(quiz_id)
    return Message(message="Quiz deleted successfully")


@router.get("/{quiz_id}/statistics", response_model=QuizStatisticsResponse)
async def get_quiz_statistics(
    quiz_id: str,
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """Response and question aggregates (owner only)"""
    quiz, statistics = QuizService.get_statistics(db, quiz_id, current_user)
    return QuizStatisticsResponse(quiz=QuizResponse.model_validate(quiz), statistics=statistics)


@router.get("/{quiz_id}/leaderboard", response_model=LeaderboardResponse)
async def get_quiz_leaderboard(
    quiz_id: str,
    limit: int = Query(settings.DEFAULT_LEADERBOARD_LIMIT, ge=1, le=100),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Best completed attempts: score descending, faster time first on ties"""
    quiz = QuizService.get_quiz(db, quiz_id)
    if not QuizAccessPolicy.can_view_leaderboard(quiz, current_user.id):
        raise ForbiddenException("Access denied to this quiz leaderboard")

    key = leaderboard_key(quiz.id, limit)
    cached = await cache_manager.get(key)
    if cached is not None:
        return cached

    entries = LeaderboardService.get_leaderboard(db, quiz.id, limit)
    payload = LeaderboardResponse(
        quiz=LeaderboardQuiz.model_validate(quiz),
        leaderboard=[LeaderboardEntry.model_validate(r) for r in entries],
    )
    await cache_manager.set(key, payload.model_dump(mode="json", by_alias=True))
    return payload
