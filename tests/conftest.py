from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from genshin_quiz.db.database import Base, build_engine, get_db
from genshin_quiz.utils.authentication import create_access_token, hash_password
from genshin_quiz.utils.lifecycle import utcnow
from genshin_quiz.v1 import models  # noqa: F401
from genshin_quiz.v1.repositories.quiz import QuizRepository
from genshin_quiz.v1.repositories.user import UserRepository
from genshin_quiz.v1.services.voting import VotingEngine


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def quizzes(db):
    return QuizRepository(db)


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def voting(db):
    return VotingEngine(db)


@pytest.fixture
def user(users):
    return users.create({"name": "Traveler", "email": "traveler@teyvat.com", "password": "x"})


@pytest.fixture
def other_user(users):
    return users.create({"name": "Paimon", "email": "paimon@teyvat.com", "password": "x"})


@pytest.fixture
def open_vote(voting):
    return voting.create(
        {
            "title": "Pick one",
            "max_choices": 1,
            "start_time": utcnow() - timedelta(hours=1),
            "end_time": None,
        },
        [{"title": "X"}, {"title": "Y"}],
    )


@pytest.fixture
def client(session_factory):
    from genshin_quiz.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def make(user_id: int) -> dict:
        token = create_access_token({"sub": str(user_id)})
        return {"Authorization": f"Bearer {token}"}

    return make


@pytest.fixture
def member(users):
    return users.create(
        {"name": "Lumine", "email": "lumine@teyvat.com", "password": hash_password("secret123")}
    )


@pytest.fixture
def admin(users):
    return users.create(
        {
            "name": "Zhongli",
            "email": "zhongli@liyue.com",
            "password": hash_password("rexlapis"),
            "role": "admin",
        }
    )
