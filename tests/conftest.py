import os
import uuid

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db, create_indexes
from main import app


@pytest.fixture
def mongo_db():
    db = mongomock.MongoClient()[f"test_{uuid.uuid4().hex}"]
    create_indexes(db)
    return db


@pytest.fixture
def client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email="ada@example.com", password="secret1", name="Ada"):
    resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def user(client):
    return register(client)


@pytest.fixture
def auth(user):
    return {"Authorization": f"Bearer {user['token']}"}
