"""Leaderboard schemas"""

from datetime import datetime
from typing import List, Optional

from app.schemas.base import CamelModel


class LeaderboardEntry(CamelModel):
    user_id: str
    score: int
    total_points: int
    percentage: float
    time_taken: Optional[int] = None
    submitted_at: datetime


class LeaderboardQuiz(CamelModel):
    id: str
    title: str
    total_questions: int
    total_points: int


class LeaderboardResponse(CamelModel):
    quiz: LeaderboardQuiz
    leaderboard: List[LeaderboardEntry]
