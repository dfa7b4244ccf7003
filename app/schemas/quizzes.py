"""Quiz schemas"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from app.models.quiz import QuizStatus
from app.schemas.base import CamelModel, Pagination
from app.schemas.questions import QuestionResponse


class QuizBase(CamelModel):
    """Base quiz schema"""
    description: Optional[str] = Field(None, max_length=1000)
    time_limit: Optional[int] = Field(None, ge=1, le=480)  # minutes

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class QuizCreate(QuizBase):
    """Quiz creation schema"""
    title: str = Field(..., min_length=1, max_length=255)
    max_attempts: int = Field(1, ge=1)
    is_public: bool = False
    status: QuizStatus = QuizStatus.DRAFT

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v


class QuizUpdate(QuizBase):
    """Quiz update schema"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    max_attempts: Optional[int] = Field(None, ge=1)
    is_public: Optional[bool] = None
    status: Optional[QuizStatus] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v


class QuizResponse(CamelModel):
    """Quiz response schema"""
    id: str
    title: str
    description: Optional[str] = None
    creator_id: str
    status: QuizStatus
    time_limit: Optional[int] = None
    max_attempts: int
    is_public: bool
    total_questions: int
    total_points: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuizDetailResponse(CamelModel):
    quiz: QuizResponse
    questions: List[QuestionResponse] = []


class QuizListResponse(CamelModel):
    quizzes: List[QuizResponse]
    pagination: Pagination


class QuizWithStats(QuizResponse):
    response_count: int = 0
    average_score: float = 0.0
    average_percentage: float = 0.0


class QuizStatistics(CamelModel):
    total_responses: int = 0
    average_score: float = 0.0
    average_percentage: float = 0.0
    average_time: float = 0.0
    highest_score: int = 0
    lowest_score: int = 0
    pass_rate: float = 0.0
    total_questions: int = 0
    total_points: int = 0
    question_types: Dict[str, int] = {}


class QuizStatisticsResponse(CamelModel):
    quiz: QuizResponse
    statistics: QuizStatistics
