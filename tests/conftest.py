"""Shared fixtures: an isolated in-memory store and an HTTP client per test."""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_ENABLED"] = "false"
os.environ["AUTH_MODE"] = "jwt"
os.environ["SECRET_KEY"] = "test-secret-key"

from typing import Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, build_engine, get_db
from app.main import app
from app.models.quiz import QuestionType
from app.models.user import Identity, UserRole

from tests.factories import CREATOR_ID, TAKER_ID, auth_headers, make_question, make_quiz


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
async def client(session_factory):
    # A fresh session per request, like get_db in production
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def creator() -> Identity:
    return Identity(id=CREATOR_ID, role=UserRole.CREATOR)


@pytest.fixture
def taker() -> Identity:
    return Identity(id=TAKER_ID, role=UserRole.TAKER)


@pytest.fixture
def creator_headers() -> Dict[str, str]:
    return auth_headers(CREATOR_ID, "creator")


@pytest.fixture
def taker_headers() -> Dict[str, str]:
    return auth_headers(TAKER_ID, "taker")


@pytest.fixture
def capitals_quiz(db):
    """One mcq worth 5 and one true_false worth 1"""
    quiz = make_quiz(db)
    q1 = make_question(db, quiz, 0, content="Capital of France?", points=5)
    q2 = make_question(
        db,
        quiz,
        1,
        type=QuestionType.TRUE_FALSE,
        content="Rome is in Spain",
        options={"true": "True", "false": "False"},
        correct_answer="true",
        points=1,
        explanation="Trick question",
    )
    return quiz, q1, q2
