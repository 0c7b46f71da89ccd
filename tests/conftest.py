import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000000"

import random
import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import Lesson, Profile
from app.utils.rate_limiter import rate_limiter

NOW = datetime(2026, 3, 10, 9, 30)


def quiz_content(n_questions=5, category="Saving"):
    return {
        "type": "quiz_lesson",
        "questions": [
            {
                "id": f"q{i}",
                "question": f"Question {i}?",
                "options": ["A", "B", "C", "D"],
                "correct_answer": i % 4,
                "explanation": "Because.",
                "difficulty": "easy",
                "category": category,
            }
            for i in range(n_questions)
        ],
    }


def paged_content(n_pages=3):
    return {
        "type": "paged",
        "pages": [{"title": f"Page {i}", "content": "Spend less than you earn."} for i in range(n_pages)],
    }


@pytest.fixture(autouse=True)
def reset_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def make_profile(db):
    def _make(coins=0, streak=0, longest=0, **kwargs):
        profile = Profile(
            id=kwargs.pop("id", uuid.uuid4()),
            username=kwargs.pop("username", "saver"),
            dough_coins=coins,
            streak_days=streak,
            longest_streak=longest,
            **kwargs
        )
        db.add(profile)
        db.commit()
        return profile.id

    return _make


@pytest.fixture
def make_lesson(db):
    def _make(content=None, category="Saving", xp_reward=20, order_index=0, **kwargs):
        lesson = Lesson(
            title=kwargs.pop("title", f"{category} basics"),
            description="Learn the basics",
            category=category,
            difficulty=kwargs.pop("difficulty", "beginner"),
            order_index=order_index,
            content=content if content is not None else quiz_content(),
            xp_reward=xp_reward,
            **kwargs
        )
        db.add(lesson)
        db.commit()
        return lesson.id

    return _make
