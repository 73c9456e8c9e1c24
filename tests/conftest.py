"""Pytest fixtures — SQLite database per test, app dependencies overridden."""
import os

# Settings are read at import time; these must be in place before the app loads.
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GOOGLE_CLIENT_ID"] = ""
os.environ["AMAZON_CLIENT_ID"] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from todo_api.database import Base, enable_sqlite_foreign_keys, get_db
from todo_api.dependencies import get_token_issuer
from todo_api.main import app
from todo_api.repositories.todos import SqlAlchemyTodoRepository
from todo_api.repositories.users import SqlAlchemyUserRepository

# Import all models so they register with Base.metadata
from todo_api.models.user import User  # noqa: F401
from todo_api.models.todo import Todo  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def users(db):
    return SqlAlchemyUserRepository(db)


@pytest.fixture(scope="function")
def todos(db):
    return SqlAlchemyTodoRepository(db)


@pytest.fixture(scope="function")
def tokens():
    """The same issuer the app signs with."""
    return get_token_issuer()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def register_user(
    client: TestClient,
    email: str = "a@x.com",
    name: str = "Test User",
    password: str = "pw123456",
) -> dict:
    """Helper — POST /auth/register and return response JSON."""
    resp = client.post("/auth/register", json={
        "email": email,
        "name": name,
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_todo(client: TestClient, token: str, title: str = "Test Todo", **fields) -> dict:
    """Helper — POST /todos and return response JSON."""
    resp = client.post("/todos", json={"title": title, **fields}, headers=auth_headers(token))
    assert resp.status_code == 201, resp.text
    return resp.json()
