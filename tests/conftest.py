import time

import jwt
import pytest
from fastapi.testclient import TestClient

from catalog_api.api.main import create_app
from catalog_api.config import Settings
from catalog_api.core.auth.identity_store import InMemoryIdentityStore
from catalog_api.core.store.memory import MemoryDatabase

TEST_SECRET = "test-signing-secret"

CATEGORIES = [
    {"id": "c1", "name": "Books", "created_at": "2024-01-01T00:00:00Z"},
    {"id": "c2", "name": "Games", "created_at": "2024-01-02T00:00:00Z"},
    {"id": "c3", "name": "Music", "created_at": "2024-01-03T00:00:00Z"},
]

PRODUCTS = [
    {"id": "p1", "name": "Dune", "price": 12, "category": "c1", "created_at": "2024-02-01T00:00:00Z"},
    {"id": "p2", "name": "Neuromancer", "price": 9.5, "category": "c1", "created_at": "2024-02-02T00:00:00Z"},
    {"id": "p3", "name": "Chess", "price": 30, "category": "c2", "created_at": "2024-02-03T00:00:00Z"},
    {"id": "p4", "name": "Go", "price": 45, "category": "c2", "created_at": "2024-02-04T00:00:00Z"},
    {"id": "p5", "name": "Vinyl", "price": 120, "category": "c3", "created_at": "2024-02-05T00:00:00Z"},
]

IDENTITIES = {"u-admin": "admin", "u-seller": "seller", "u-user": "user"}


def make_token(sub, role=None, *, expires_in=3600, secret=TEST_SECRET, **extra):
    claims = {"sub": sub, "exp": int(time.time()) + expires_in, **extra}
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def settings():
    return Settings(jwt_secret=TEST_SECRET)


@pytest.fixture()
def database():
    db = MemoryDatabase(("categories", "products"))
    db.seed({"categories": CATEGORIES, "products": PRODUCTS})
    return db


@pytest.fixture()
def identity_store():
    return InMemoryIdentityStore(IDENTITIES)


@pytest.fixture()
def app(settings, database, identity_store):
    return create_app(settings, database, identity_store)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture(scope="session")
def admin_headers():
    return bearer(make_token("u-admin"))


@pytest.fixture(scope="session")
def seller_headers():
    return bearer(make_token("u-seller"))


@pytest.fixture(scope="session")
def user_headers():
    return bearer(make_token("u-user"))
