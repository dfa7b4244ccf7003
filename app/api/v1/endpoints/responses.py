"""
Response endpoints
Submitting attempts and reading them back
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.cache import invalidate_leaderboard
from app.core.database import get_db
from app.core.security import get_current_user, require_creator
from app.models.user import Identity
from app.schemas.base import Message, Pagination
from app.schemas.responses import (
    RankedResponse,
    RankedResponseListResponse,
    ResponseDetail,
    ResponseListResponse,
    ResponseOut,
    ResponseWithRank,
    SubmissionCreate,
    SubmissionResult,
)
from app.services.responses import ResponseService

router = APIRouter()


@router.post(
    "/quiz/{quiz_id}/submit",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
async def submit_quiz_response(
    quiz_id: str,
    submission: SubmissionCreate,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Grade and record an attempt"""
    response = ResponseService.submit(db, quiz_id, submission, current_user)
    await invalidate_leaderboard(quiz_id)
    return response


@router.get("/quiz/{quiz_id}/my-response", response_model=ResponseWithRank)
async def get_my_quiz_response(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Caller's latest attempt at a quiz with its rank"""
    response, rank = ResponseService.get_my_quiz_response(db, quiz_id, current_user)
    return ResponseWithRank(response=ResponseOut.model_validate(response), rank=rank)


@router.get("/my-responses", response_model=RankedResponseListResponse)
async def get_user_responses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ranked, total = ResponseService.get_user_responses(db, current_user, page, limit)
    return RankedResponseListResponse(
        responses=[
            RankedResponse(**ResponseOut.model_validate(r).model_dump(), rank=rank)
            for r, rank in ranked
        ],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/quiz/{quiz_id}", response_model=ResponseListResponse)
async def get_quiz_responses(
    quiz_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: Identity = Depends(require_creator),
    db: Session = Depends(get_db),
):
    """All attempts at an own quiz, best first"""
    responses, total = ResponseService.get_quiz_responses(db, quiz_id, current_user, page, limit)
    return ResponseListResponse(
        responses=[ResponseOut.model_validate(r) for r in responses],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{response_id}", response_model=ResponseDetail)
async def get_response(
    response_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Attempt with per-question feedback"""
    return ResponseService.get_response_detail(db, response_id, current_user)


@router.delete("/{response_id}", response_model=Message)
async def delete_response(
    response_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Withdraw own attempt so the quiz can be retaken"""
    quiz_id = ResponseService.delete_response(db, response_id, current_user)
    await invalidate_leaderboard(quiz_id)
    return Message(message="Response deleted successfully")
