"""
Quiz, question and response models for QuizForge
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.core.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class QuizStatus(str, enum.Enum):
    """Quiz lifecycle states"""
    DRAFT = "draft"
    LIVE = "live"
    ARCHIVED = "archived"


class QuestionType(str, enum.Enum):
    """Supported question kinds"""
    MCQ = "mcq"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class Quiz(Base):
    """Quiz model"""
    __tablename__ = "quizzes"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    creator_id = Column(String(64), nullable=False, index=True)

    status = Column(
        Enum(QuizStatus, values_callable=_enum_values, name="quiz_status"),
        nullable=False,
        default=QuizStatus.DRAFT,
        index=True,
    )
    time_limit = Column(Integer, nullable=True)  # minutes
    max_attempts = Column(Integer, nullable=False, default=1)
    is_public = Column(Boolean, nullable=False, default=False, index=True)

    # Derived from the question set, see QuizLifecycleManager.recompute_stats
    total_questions = Column(Integer, nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    responses = relationship("Response", back_populates="quiz", cascade="all, delete-orphan")


class Question(Base):
    """Question model"""
    __tablename__ = "questions"
    __table_args__ = (Index("ix_questions_quiz_order", "quiz_id", "order_index"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    quiz_id = Column(String(32), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)

    type = Column(
        Enum(QuestionType, values_callable=_enum_values, name="question_type"),
        nullable=False,
        default=QuestionType.MCQ,
    )
    content = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)  # option key -> option text
    correct_answer = Column(String, nullable=False)
    points = Column(Integer, nullable=False, default=1)
    explanation = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    media = Column(JSON, nullable=True)  # {"type": image|video|audio, "url", "description"}

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")


class Response(Base):
    """One graded submission attempt"""
    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("quiz_id", "user_id", "attempt_number", name="uq_response_attempt"),
        Index("ix_responses_quiz_user", "quiz_id", "user_id"),
        Index("ix_responses_quiz_score", "quiz_id", "score"),
    )

    id = Column(String(32), primary_key=True, default=_new_id)
    quiz_id = Column(String(32), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False, default=1)

    answers = Column(JSON, nullable=False)  # question id -> submitted answer
    score = Column(Integer, nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)
    percentage = Column(Float, nullable=False, default=0.0)
    time_taken = Column(Integer, nullable=True)  # seconds
    is_completed = Column(Boolean, nullable=False, default=True)
    feedback = Column(JSON, nullable=False, default=list)

    started_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    # Relationships
    quiz = relationship("Quiz", back_populates="responses")
