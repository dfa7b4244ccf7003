"""Tests for the quiz endpoints."""

from app.models.quiz import Question, Quiz, QuizStatus, Response

from tests.factories import (
    CREATOR_ID,
    OTHER_CREATOR_ID,
    TAKER_ID,
    auth_headers,
    make_question,
    make_quiz,
    make_response,
)

API = "/api/v1"


async def test_requests_without_token_are_rejected(client):
    r = await client.get(f"{API}/quizzes/")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTHENTICATION_ERROR"


async def test_bad_token_is_rejected(client):
    r = await client.get(f"{API}/quizzes/", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401


async def test_creator_creates_draft_quiz(client, creator_headers):
    r = await client.post(
        f"{API}/quizzes/",
        json={"title": "  Capitals ", "maxAttempts": 2, "timeLimit": 15},
        headers=creator_headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "Capitals"
    assert body["creatorId"] == CREATOR_ID
    assert body["status"] == "draft"
    assert body["isPublic"] is False
    assert (body["totalQuestions"], body["totalPoints"]) == (0, 0)


async def test_takers_cannot_create_quizzes(client, taker_headers):
    r = await client.post(f"{API}/quizzes/", json={"title": "Mine"}, headers=taker_headers)
    assert r.status_code == 403


async def test_invalid_quiz_payload(client, creator_headers):
    r = await client.post(f"{API}/quizzes/", json={"title": "   "}, headers=creator_headers)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_list_only_shows_visible_quizzes(client, db, taker_headers, creator_headers):
    public_live = make_quiz(db, title="Open")
    make_quiz(db, title="Hidden draft", status=QuizStatus.DRAFT)
    make_quiz(db, title="Private", is_public=False)
    own_draft = make_quiz(db, title="Other's draft", creator_id=OTHER_CREATOR_ID, status=QuizStatus.DRAFT)

    r = await client.get(f"{API}/quizzes/", headers=taker_headers)
    assert r.status_code == 200
    assert [q["id"] for q in r.json()["quizzes"]] == [public_live.id]
    assert r.json()["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}

    # Filters narrow the visible set, never widen it
    r = await client.get(f"{API}/quizzes/?status=draft", headers=taker_headers)
    assert r.json()["quizzes"] == []

    r = await client.get(f"{API}/quizzes/", headers=auth_headers(OTHER_CREATOR_ID, "creator"))
    assert {q["id"] for q in r.json()["quizzes"]} == {public_live.id, own_draft.id}

    r = await client.get(f"{API}/quizzes/?isPublic=false", headers=creator_headers)
    assert [q["title"] for q in r.json()["quizzes"]] == ["Private"]


async def test_non_owner_sees_questions_without_answers(client, db, capitals_quiz, taker_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.get(f"{API}/quizzes/{quiz.id}", headers=taker_headers)

    assert r.status_code == 200
    questions = r.json()["questions"]
    assert [q["id"] for q in questions] == [q1.id, q2.id]
    for question in questions:
        assert "correctAnswer" not in question
        assert "explanation" not in question


async def test_owner_sees_answers(client, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.get(f"{API}/quizzes/{quiz.id}", headers=creator_headers)
    questions = r.json()["questions"]
    assert questions[0]["correctAnswer"] == "a"
    assert questions[1]["explanation"] == "Trick question"


async def test_draft_quiz_is_hidden_from_others(client, db, taker_headers):
    quiz = make_quiz(db, status=QuizStatus.DRAFT)
    r = await client.get(f"{API}/quizzes/{quiz.id}", headers=taker_headers)
    assert r.status_code == 403


async def test_unknown_quiz_is_not_found(client, taker_headers):
    r = await client.get(f"{API}/quizzes/does-not-exist", headers=taker_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


async def test_owner_updates_quiz(client, db, creator_headers):
    quiz = make_quiz(db, status=QuizStatus.DRAFT, is_public=False)
    make_question(db, quiz, 0, points=3)

    r = await client.put(
        f"{API}/quizzes/{quiz.id}",
        json={"status": "live", "isPublic": True, "description": "Europe"},
        headers=creator_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "live"
    assert body["isPublic"] is True
    assert body["description"] == "Europe"
    assert body["totalPoints"] == 3


async def test_live_quiz_can_go_back_to_draft(client, db, creator_headers):
    quiz = make_quiz(db)
    r = await client.put(f"{API}/quizzes/{quiz.id}", json={"status": "draft"}, headers=creator_headers)
    assert r.json()["status"] == "draft"


async def test_other_creator_cannot_update(client, db):
    quiz = make_quiz(db)
    r = await client.put(
        f"{API}/quizzes/{quiz.id}",
        json={"title": "Taken over"},
        headers=auth_headers(OTHER_CREATOR_ID, "creator"),
    )
    assert r.status_code == 403


async def test_delete_cascades_to_questions_and_responses(client, db, creator_headers):
    quiz = make_quiz(db, max_attempts=5)
    for i in range(3):
        make_question(db, quiz, i)
    for i in range(5):
        make_response(db, quiz, f"user-{i}", score=i)
    keep = make_quiz(db, title="Survivor")
    make_question(db, keep, 0)
    quiz_id, keep_id = quiz.id, keep.id

    r = await client.delete(f"{API}/quizzes/{quiz_id}", headers=creator_headers)
    assert r.status_code == 200

    db.expire_all()
    assert db.query(Quiz).filter(Quiz.id == quiz_id).count() == 0
    assert db.query(Question).filter(Question.quiz_id == quiz_id).count() == 0
    assert db.query(Response).filter(Response.quiz_id == quiz_id).count() == 0
    assert db.query(Question).filter(Question.quiz_id == keep_id).count() == 1


async def test_statistics_for_owner(client, db, creator_headers):
    quiz = make_quiz(db, max_attempts=3)
    make_question(db, quiz, 0, points=5)
    make_question(db, quiz, 1, points=5)
    first = make_response(db, quiz, "u1", score=10, time_taken=30)
    first.percentage = 100.0
    second = make_response(db, quiz, "u2", score=4, time_taken=90)
    second.percentage = 40.0
    db.commit()

    r = await client.get(f"{API}/quizzes/{quiz.id}/statistics", headers=creator_headers)
    assert r.status_code == 200
    stats = r.json()["statistics"]
    assert stats["totalResponses"] == 2
    assert stats["averageScore"] == 7
    assert stats["averageTime"] == 60
    assert stats["highestScore"] == 10
    assert stats["lowestScore"] == 4
    assert stats["passRate"] == 50
    assert stats["totalQuestions"] == 2
    assert stats["questionTypes"] == {"mcq": 2}


async def test_statistics_are_owner_only(client, db):
    quiz = make_quiz(db)
    r = await client.get(
        f"{API}/quizzes/{quiz.id}/statistics", headers=auth_headers(OTHER_CREATOR_ID, "creator")
    )
    assert r.status_code == 403


async def test_my_quizzes_carry_response_aggregates(client, db, creator_headers):
    quiz = make_quiz(db, max_attempts=2)
    make_question(db, quiz, 0, points=10)
    make_response(db, quiz, TAKER_ID, score=6)
    make_quiz(db, creator_id=OTHER_CREATOR_ID, title="Not mine")

    r = await client.get(f"{API}/quizzes/my-quizzes", headers=creator_headers)
    assert r.status_code == 200
    body = r.json()
    assert [q["id"] for q in body] == [quiz.id]
    assert body[0]["responseCount"] == 1
    assert body[0]["averageScore"] == 6


async def test_leaderboard(client, db, taker_headers):
    quiz = make_quiz(db, max_attempts=3)
    make_question(db, quiz, 0, points=10)
    make_response(db, quiz, "slow", score=8, time_taken=100)
    make_response(db, quiz, "fast", score=8, time_taken=20)
    make_response(db, quiz, "top", score=10, time_taken=500)

    r = await client.get(f"{API}/quizzes/{quiz.id}/leaderboard?limit=2", headers=taker_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["quiz"]["id"] == quiz.id
    assert [e["userId"] for e in body["leaderboard"]] == ["top", "fast"]


async def test_private_leaderboard_is_owner_only(client, db, taker_headers, creator_headers):
    quiz = make_quiz(db, is_public=False)
    r = await client.get(f"{API}/quizzes/{quiz.id}/leaderboard", headers=taker_headers)
    assert r.status_code == 403

    r = await client.get(f"{API}/quizzes/{quiz.id}/leaderboard", headers=creator_headers)
    assert r.status_code == 200
    assert r.json()["leaderboard"] == []
