"""Question schemas"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from app.models.quiz import QuestionType
from app.schemas.base import CamelModel
from app.utils.validators import validate_question_definition


class Media(CamelModel):
    type: str = Field(..., pattern="^(image|video|audio)$")
    url: str
    description: Optional[str] = None


class QuestionBase(CamelModel):
    """Fields shared by create and update payloads"""
    content: Optional[str] = None
    options: Optional[Dict[str, str]] = None
    correct_answer: Optional[str] = None
    points: Optional[int] = Field(None, ge=1, le=100)
    explanation: Optional[str] = Field(None, max_length=500)
    order_index: Optional[int] = Field(None, ge=0)
    media: Optional[Media] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Question content cannot be empty")
        return v

    @field_validator("explanation")
    @classmethod
    def strip_explanation(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class QuestionCreate(QuestionBase):
    """Question creation schema; options and answer key are checked here"""
    type: QuestionType = QuestionType.MCQ
    content: str
    correct_answer: str
    points: int = Field(1, ge=1, le=100)

    @model_validator(mode="after")
    def check_definition(self) -> "QuestionCreate":
        self.options = validate_question_definition(self.type, self.options, self.correct_answer)
        return self


class QuestionUpdate(QuestionBase):
    """Partial update; the merged definition is re-validated by the service"""
    type: Optional[QuestionType] = None


class QuestionResponse(CamelModel):
    """Question as returned to clients; answer fields are None for non-owners"""
    id: str
    quiz_id: str
    type: QuestionType
    content: str
    options: Optional[Dict[str, str]] = None
    correct_answer: Optional[str] = None
    points: int
    explanation: Optional[str] = None
    order_index: int
    media: Optional[Media] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuestionOrder(CamelModel):
    question_id: str
    order_index: int = Field(..., ge=0)


class QuestionReorder(CamelModel):
    question_orders: List[QuestionOrder] = Field(..., min_length=1)
