"""
Leaderboard and rank computation
"""

import logging
from typing import List

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.models.quiz import Response

logger = logging.getLogger(__name__)


class LeaderboardService:
    """Orders completed responses by score, then by speed"""

    @staticmethod
    def get_leaderboard(db: Session, quiz_id: str, limit: int = 10) -> List[Response]:
        """
        Top ``limit`` completed responses of a quiz

        Higher score first; on equal scores the faster time wins. Responses
        without a recorded time sort after timed ones with the same score, so
        an untimed attempt never outranks a timed one on the leaderboard.
        """
        return (
            db.query(Response)
            .filter(Response.quiz_id == quiz_id, Response.is_completed.is_(True))
            .order_by(
                Response.score.desc(),
                Response.time_taken.asc().nulls_last(),
                Response.submitted_at.asc(),
                Response.id.asc(),
            )
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_rank(db: Session, response: Response) -> int:
        """
        1 + number of responses in the same quiz that beat ``response``

        A response is beaten by a higher score, or by an equal score with a
        strictly lower time. Identical score and time share the same rank.
        A missing time never beats and is never beaten on the time tie-break.
        """
        beaten_by = [Response.score > response.score]
        if response.time_taken is not None:
            beaten_by.append(
                and_(
                    Response.score == response.score,
                    Response.time_taken < response.time_taken,
                )
            )

        better = (
            db.query(Response)
            .filter(
                Response.quiz_id == response.quiz_id,
                Response.id != response.id,
                or_(*beaten_by),
            )
            .count()
        )
        return better + 1
