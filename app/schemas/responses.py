"""Submission and response schemas"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, Field

from app.models.quiz import QuestionType
from app.schemas.base import CamelModel, Pagination


class SubmissionCreate(CamelModel):
    """Answers keyed by question id, plus the moment the attempt started"""
    answers: Dict[str, str] = Field(..., min_length=1)
    start_time: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("startTime", "startedAt", "start_time")
    )


class FeedbackEntry(CamelModel):
    question_id: str
    user_answer: str = ""
    correct_answer: Optional[str] = None
    is_correct: bool = False
    points: int = 0
    explanation: Optional[str] = None


class ResponseOut(CamelModel):
    id: str
    quiz_id: str
    user_id: str
    attempt_number: int
    answers: Dict[str, str]
    score: int
    total_points: int
    percentage: float
    time_taken: Optional[int] = None
    is_completed: bool
    feedback: List[FeedbackEntry] = []
    started_at: Optional[datetime] = None
    submitted_at: datetime


class SubmissionResult(CamelModel):
    """What the taker sees right after submitting"""
    id: str
    score: int
    total_points: int
    percentage: float
    time_taken: Optional[int] = None
    submitted_at: datetime
    feedback: List[FeedbackEntry]


class ResponseWithRank(CamelModel):
    response: ResponseOut
    rank: int


class RankedResponse(ResponseOut):
    rank: int


class ResponseListResponse(CamelModel):
    responses: List[ResponseOut]
    pagination: Pagination


class RankedResponseListResponse(CamelModel):
    responses: List[RankedResponse]
    pagination: Pagination


class QuestionSummary(CamelModel):
    id: str
    content: str
    type: QuestionType
    options: Optional[Dict[str, str]] = None
    points: int


class DetailedFeedbackItem(CamelModel):
    question: QuestionSummary
    user_answer: str = ""
    correct_answer: Optional[str] = None
    is_correct: bool = False
    points_earned: int = 0
    explanation: Optional[str] = None


class ResponseDetail(CamelModel):
    response: ResponseOut
    detailed_feedback: List[DetailedFeedbackItem]
    rank: int
