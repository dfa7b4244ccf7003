"""Tests for the question endpoints."""

from app.models.quiz import Quiz, QuizStatus

from tests.factories import OTHER_CREATOR_ID, auth_headers, make_question, make_quiz

API = "/api/v1"


async def test_add_question_updates_quiz_totals(client, db, creator_headers):
    quiz = make_quiz(db, status=QuizStatus.DRAFT)

    r = await client.post(
        f"{API}/questions/quiz/{quiz.id}",
        json={
            "type": "mcq",
            "content": "Capital of Italy?",
            "options": {"a": "Paris", "b": "Rome"},
            "correctAnswer": "b",
            "points": 4,
        },
        headers=creator_headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["orderIndex"] == 0
    assert body["correctAnswer"] == "b"

    r = await client.post(
        f"{API}/questions/quiz/{quiz.id}",
        json={"type": "true_false", "content": "The sky is green", "correctAnswer": "false"},
        headers=creator_headers,
    )
    assert r.status_code == 201
    assert r.json()["orderIndex"] == 1
    assert r.json()["options"] == {"true": "True", "false": "False"}

    db.expire_all()
    stored = db.get(Quiz, quiz.id)
    assert (stored.total_questions, stored.total_points) == (2, 5)


async def test_add_question_rejects_bad_answer_key(client, db, creator_headers):
    quiz = make_quiz(db)
    r = await client.post(
        f"{API}/questions/quiz/{quiz.id}",
        json={"content": "Pick", "options": {"a": "1", "b": "2"}, "correctAnswer": "c"},
        headers=creator_headers,
    )
    assert r.status_code == 422


async def test_add_question_rejects_taken_order_index(client, db, creator_headers):
    quiz = make_quiz(db)
    make_question(db, quiz, 0)
    r = await client.post(
        f"{API}/questions/quiz/{quiz.id}",
        json={"type": "short_answer", "content": "Name it", "correctAnswer": "x", "orderIndex": 0},
        headers=creator_headers,
    )
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_only_owner_adds_questions(client, db):
    quiz = make_quiz(db)
    r = await client.post(
        f"{API}/questions/quiz/{quiz.id}",
        json={"type": "short_answer", "content": "Name it", "correctAnswer": "x"},
        headers=auth_headers(OTHER_CREATOR_ID, "creator"),
    )
    assert r.status_code == 403


async def test_list_questions_strips_answers_for_takers(client, capitals_quiz, taker_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.get(f"{API}/questions/quiz/{quiz.id}", headers=taker_headers)
    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == [q1.id, q2.id]
    assert all("correctAnswer" not in q for q in r.json())

    r = await client.get(f"{API}/questions/{q1.id}", headers=taker_headers)
    assert r.status_code == 200
    assert "correctAnswer" not in r.json()


async def test_update_question_revalidates_and_recomputes(client, db, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz

    r = await client.put(
        f"{API}/questions/{q1.id}", json={"correctAnswer": "z"}, headers=creator_headers
    )
    assert r.status_code == 422

    r = await client.put(
        f"{API}/questions/{q1.id}",
        json={"correctAnswer": "b", "points": 10},
        headers=creator_headers,
    )
    assert r.status_code == 200
    assert r.json()["correctAnswer"] == "b"

    db.expire_all()
    assert db.get(Quiz, quiz.id).total_points == 11


async def test_change_type_to_short_answer_drops_options(client, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.put(
        f"{API}/questions/{q1.id}",
        json={"type": "short_answer", "correctAnswer": "Paris"},
        headers=creator_headers,
    )
    assert r.status_code == 200
    assert r.json()["type"] == "short_answer"
    assert r.json().get("options") is None


async def test_delete_question_recomputes(client, db, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.delete(f"{API}/questions/{q1.id}", headers=creator_headers)
    assert r.status_code == 200

    db.expire_all()
    stored = db.get(Quiz, quiz.id)
    assert (stored.total_questions, stored.total_points) == (1, 1)


async def test_reorder_questions(client, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz
    r = await client.patch(
        f"{API}/questions/quiz/{quiz.id}/reorder",
        json={
            "questionOrders": [
                {"questionId": q1.id, "orderIndex": 1},
                {"questionId": q2.id, "orderIndex": 0},
            ]
        },
        headers=creator_headers,
    )
    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == [q2.id, q1.id]


async def test_reorder_rejects_collisions_and_strangers(client, capitals_quiz, creator_headers):
    quiz, q1, q2 = capitals_quiz
    url = f"{API}/questions/quiz/{quiz.id}/reorder"

    r = await client.patch(
        url, json={"questionOrders": [{"questionId": q1.id, "orderIndex": 1}]}, headers=creator_headers
    )
    assert r.status_code == 422

    r = await client.patch(
        url, json={"questionOrders": [{"questionId": "ghost", "orderIndex": 7}]}, headers=creator_headers
    )
    assert r.status_code == 404
