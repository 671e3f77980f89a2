"""
Shared pytest fixtures.
Each test gets its own file-backed SQLite database; the app's get_db
dependency is pointed at it.
"""
import os
import tempfile

# Settings are read at import time, so configure before importing shopfront
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="shopfront-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from shopfront.database import Base, build_engine, get_db
from shopfront.main import app
from shopfront import models  # noqa: F401


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client):
    """Register through the API and return (token, user json)"""
    def _register(username, role="customer", password="secret123", **extra):
        payload = {
            "username": username,
            "email": f"{username}@shop.io",
            "password": password,
            "role": role,
            "firstName": username.title(),
            "lastName": "Tester",
        }
        payload.update(extra)
        response = client.post("/api/user/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]
    return _register


@pytest.fixture
def shopkeeper_headers(register_user):
    token, _ = register_user("keeper", role="shopkeeper", storeName="Corner Store")
    return bearer(token)


@pytest.fixture
def customer_headers(register_user):
    token, _ = register_user("buyer")
    return bearer(token)


PEN = {
    "name": "Pen",
    "description": "Blue pen",
    "price": 10,
    "quantity": 5,
    "category": "stationery",
    "sku": "P1",
}


@pytest.fixture
def make_product(client, shopkeeper_headers):
    def _make(**overrides):
        payload = dict(PEN)
        payload.update(overrides)
        response = client.post("/api/products", json=payload, headers=shopkeeper_headers)
        assert response.status_code == 201, response.text
        return response.json()["product"]
    return _make
