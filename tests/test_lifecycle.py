"""Tests for submission gating, status changes and quiz totals."""

import pytest

from app.core.exceptions import (
    AttemptLimitExceededException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
)
from app.models.quiz import QuestionType, QuizStatus
from app.services.lifecycle import QuizLifecycleManager

from tests.factories import TAKER_ID, make_question, make_quiz, make_response


def test_missing_quiz_is_not_found(db, taker):
    with pytest.raises(NotFoundException):
        QuizLifecycleManager(db).check_submission(None, taker)


def test_forbidden_is_checked_before_status(db, taker):
    quiz = make_quiz(db, status=QuizStatus.DRAFT, is_public=False)
    with pytest.raises(ForbiddenException):
        QuizLifecycleManager(db).check_submission(quiz, taker)


def test_owner_cannot_submit_draft(db, creator):
    quiz = make_quiz(db, status=QuizStatus.DRAFT)
    with pytest.raises(InvalidStateException):
        QuizLifecycleManager(db).check_submission(quiz, creator)


def test_attempt_limit(db, taker):
    quiz = make_quiz(db, max_attempts=2)
    lifecycle = QuizLifecycleManager(db)

    make_response(db, quiz, TAKER_ID, score=1, attempt_number=1)
    assert lifecycle.check_submission(quiz, taker) is quiz

    make_response(db, quiz, TAKER_ID, score=1, attempt_number=2)
    with pytest.raises(AttemptLimitExceededException) as exc_info:
        lifecycle.check_submission(quiz, taker)
    assert exc_info.value.status_code == 400


def test_attempts_are_counted_per_user(db, taker):
    quiz = make_quiz(db, max_attempts=1)
    make_response(db, quiz, "someone-else", score=1)
    QuizLifecycleManager(db).check_submission(quiz, taker)


@pytest.mark.parametrize("current", list(QuizStatus))
@pytest.mark.parametrize("target", list(QuizStatus))
def test_every_transition_is_allowed(current, target):
    assert QuizLifecycleManager.can_transition(current, target)


def test_going_live_refreshes_totals(db):
    quiz = make_quiz(db, status=QuizStatus.DRAFT)
    make_question(db, quiz, 0, points=4)
    make_question(db, quiz, 1, type=QuestionType.SHORT_ANSWER, correct_answer="x", points=3)
    quiz.total_questions, quiz.total_points = 0, 0

    QuizLifecycleManager(db).change_status(quiz, QuizStatus.LIVE)

    assert quiz.status == QuizStatus.LIVE
    assert (quiz.total_questions, quiz.total_points) == (2, 7)


def test_recompute_on_empty_quiz(db):
    quiz = make_quiz(db)
    QuizLifecycleManager(db).recompute_stats(quiz)
    assert (quiz.total_questions, quiz.total_points) == (0, 0)


def test_single_attempt_quiz_forbids_retakes(db):
    with pytest.raises(InvalidStateException):
        QuizLifecycleManager.ensure_retake_allowed(make_quiz(db, max_attempts=1))
    QuizLifecycleManager.ensure_retake_allowed(make_quiz(db, title="Retry", max_attempts=3))
