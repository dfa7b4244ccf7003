"""Tests for leaderboard ordering and rank numbers."""

from app.services.ranking import LeaderboardService

from tests.factories import make_quiz, make_response


def test_leaderboard_orders_by_score_then_time(db):
    quiz = make_quiz(db)
    slow = make_response(db, quiz, "u1", score=8, time_taken=120)
    best = make_response(db, quiz, "u2", score=9, time_taken=300)
    fast = make_response(db, quiz, "u3", score=8, time_taken=60)
    untimed = make_response(db, quiz, "u4", score=8, time_taken=None)

    board = LeaderboardService.get_leaderboard(db, quiz.id)

    assert [r.id for r in board] == [best.id, fast.id, slow.id, untimed.id]


def test_leaderboard_skips_incomplete_and_other_quizzes(db):
    quiz = make_quiz(db)
    other = make_quiz(db, title="Other")
    done = make_response(db, quiz, "u1", score=1, time_taken=10)
    make_response(db, quiz, "u2", score=5, time_taken=10, is_completed=False)
    make_response(db, other, "u3", score=9, time_taken=10)

    assert [r.id for r in LeaderboardService.get_leaderboard(db, quiz.id)] == [done.id]


def test_leaderboard_honours_limit(db):
    quiz = make_quiz(db)
    for i in range(15):
        make_response(db, quiz, f"u{i}", score=i, time_taken=30)

    board = LeaderboardService.get_leaderboard(db, quiz.id)
    assert len(board) == 10
    assert board[0].score == 14
    assert len(LeaderboardService.get_leaderboard(db, quiz.id, limit=3)) == 3


def test_rank_counts_better_responses(db):
    quiz = make_quiz(db)
    top = make_response(db, quiz, "u1", score=10, time_taken=50)
    quick = make_response(db, quiz, "u2", score=7, time_taken=30)
    slow = make_response(db, quiz, "u3", score=7, time_taken=90)
    low = make_response(db, quiz, "u4", score=2, time_taken=10)

    ranks = [LeaderboardService.get_rank(db, r) for r in (top, quick, slow, low)]
    assert ranks == [1, 2, 3, 4]


def test_identical_results_share_rank(db):
    quiz = make_quiz(db)
    a = make_response(db, quiz, "u1", score=5, time_taken=40)
    b = make_response(db, quiz, "u2", score=5, time_taken=40)

    assert LeaderboardService.get_rank(db, a) == LeaderboardService.get_rank(db, b) == 1


def test_rank_is_monotonic_in_score(db):
    quiz = make_quiz(db)
    responses = [make_response(db, quiz, f"u{s}", score=s, time_taken=60) for s in (3, 9, 1, 6)]

    by_score = sorted(responses, key=lambda r: r.score, reverse=True)
    ranks = [LeaderboardService.get_rank(db, r) for r in by_score]
    assert ranks == sorted(ranks)


def test_untimed_response_ranks_by_score_only(db):
    quiz = make_quiz(db)
    make_response(db, quiz, "u1", score=5, time_taken=10)
    untimed = make_response(db, quiz, "u2", score=5, time_taken=None)

    assert LeaderboardService.get_rank(db, untimed) == 1
