import os
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ["APP_ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["AUTO_CREATE_TABLES"] = "false"

from app.db.base import Base  # noqa: E402
from app.models.question import Question, QuestionSet  # noqa: E402
from tests.helpers import T0, FrozenClock  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def make_question_set(db):
    """문제 n 개짜리 문제집. created_at 을 1분 간격으로 고정해서 순서를 보장한다."""

    def _make(count: int, name: str = "set"):
        qset = QuestionSet(name=name, created_at=T0)
        db.add(qset)
        db.flush()

        questions = []
        for i in range(count):
            q = Question(
                question_set_id=qset.id,
                question_text=f"Q{i + 1}",
                answer_text=f"A{i + 1}",
                created_at=T0 + timedelta(minutes=i),
            )
            db.add(q)
            questions.append(q)
        db.flush()
        return qset, questions

    return _make
