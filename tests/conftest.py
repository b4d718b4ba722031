import os

os.environ.setdefault("PORT", "9000")
os.environ.setdefault("DATABASE_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "storefront_test")
os.environ.setdefault("JWT_SECRET", "test-secret")

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import database
from database import USERS
from main import app

PASSWORD = "Str0ng!Pass"


@pytest.fixture
def db():
    test_db = mongomock.MongoClient()["storefront_test"]
    database.ensure_indexes(test_db)
    return test_db


@pytest.fixture
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email, password=PASSWORD, username=None):
    return client.post(
        "/api/users/register",
        json={"username": username or email.split("@")[0], "email": email, "password": password},
    )


def login(client, email, password=PASSWORD):
    return client.post("/api/users/login", json={"email": email, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, email):
    """Register and log in, returning auth headers."""
    assert register(client, email).status_code == 201
    res = login(client, email)
    assert res.status_code == 200
    return bearer(res.json()["token"])


def user_id(db, email):
    return db[USERS].find_one({"email": email})["_id"]


@pytest.fixture
def alice(client):
    return signup(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return signup(client, "bob@example.com")


@pytest.fixture
def admin(client, db):
    headers = signup(client, "admin@example.com")
    db[USERS].update_one({"email": "admin@example.com"}, {"$set": {"isAdmin": True}})
    return headers


@pytest.fixture
def super_admin(client, db):
    headers = signup(client, "root@example.com")
    db[USERS].update_one({"email": "root@example.com"}, {"$set": {"isSuperAdmin": True}})
    return headers


def missing_id():
    return str(ObjectId())
