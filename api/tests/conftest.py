from __future__ import annotations

import os

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789abcdefghijklmnop")
os.environ["WAYFARER_RUN_MIGRATIONS"] = "0"

from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from wayfarer import models
from wayfarer.auth import create_access_token
from wayfarer.db import Base, SessionLocal, engine
from wayfarer.main import app
from wayfarer.services import accounts


@pytest.fixture(autouse=True)
def schema() -> Generator[None, None, None]:
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(schema) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db(schema) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    """Factory registering users with every dependent row."""
    counter = {"n": 0}

    def _make(
        username: str | None = None,
        role: str = models.ROLE_MEMBER,
        private: bool = False,
    ) -> models.User:
        counter["n"] += 1
        name = username or f"traveller{counter['n']}"
        user = accounts.register_user(
            db, f"{name}@example.com", name.title(), username=name, role=role
        )
        if private:
            user.account_settings.account_private = True
            db.commit()
            db.refresh(user)
        return user

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[models.User], dict[str, str]]:
    def _headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
