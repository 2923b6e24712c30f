import os
import tempfile
from datetime import datetime, timedelta, timezone

# Настройки читаются при импорте приложения, поэтому окружение задаем до него
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB_NAME", "quiz_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RABBITMQ_LOGGING"] = "false"
os.environ["CONSOLE_LOGGING"] = "false"
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "quiz_api_tests", "application.log"))

import jwt
import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from quiz_api.core.config import settings
from quiz_api.db.database import get_database


@pytest.fixture
def db():
    return AsyncMongoMockClient()["quiz_test"]


@pytest.fixture
async def client(db):
    async def override_get_database():
        return db

    app.dependency_overrides[get_database] = override_get_database
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_token(user_id, roles=None, expires_in=timedelta(hours=1)):
    payload = {
        "sub": str(user_id),
        "roles": roles or ["user"],
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(user_id, roles=None):
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}


@pytest.fixture
async def user(db):
    doc = {
        "_id": ObjectId(),
        "firstname": "Ivan",
        "lastname": "Petrov",
        "username": "ivan",
        "email": "ivan@example.com",
        "bio": "quiz fan",
        "image": "https://cdn.example.com/ivan.png",
    }
    await db.users.insert_one(doc)
    return doc


@pytest.fixture
async def taxonomy(db):
    category = {"_id": ObjectId(), "title": "Geography", "image": "geo.png"}
    level = {"_id": ObjectId(), "title": "Easy"}
    topic = {"_id": ObjectId(), "title": "Capitals"}
    await db.categories.insert_one(category)
    await db.levels.insert_one(level)
    await db.topics.insert_one(topic)
    return {"category": category, "level": level, "topic": topic}


@pytest.fixture
async def questions(db, taxonomy):
    refs = {
        "category": taxonomy["category"]["_id"],
        "level": taxonomy["level"]["_id"],
        "topic": taxonomy["topic"]["_id"],
    }
    q1 = {
        "_id": ObjectId(),
        "question": "Capital of France?",
        "type": "multiple-choice",
        "options": [
            {"_id": ObjectId(), "text": "Paris", "isCorrect": True},
            {"_id": ObjectId(), "text": "Lyon", "isCorrect": False},
        ],
        "coins": 10,
        **refs,
    }
    q2 = {
        "_id": ObjectId(),
        "question": "The ___ says meow",
        "type": "fill-in-the-blank",
        "blanks": [{"_id": ObjectId(), "position": 1, "correctAnswers": ["cat"]}],
        "coins": 5,
        **refs,
    }
    await db.questions.insert_many([q1, q2])
    return {"q1": q1, "q2": q2}
