import os
import itertools
import tempfile
from datetime import datetime, timedelta, timezone

# The engine is created at import time -> point it to a throwaway SQLite file first
_DB_DIR = tempfile.mkdtemp(prefix="moviestream-tests-")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from moviestream.api.main import app
from moviestream.api.role import UserRole
from moviestream.api.security import hash_password
from moviestream.db.database_session import Base, SessionLocal, engine
from moviestream.db.models.movies import Movie
from moviestream.db.models.users import User


DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
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
def make_user(db):
    counter = itertools.count(1)

    def _make(email=None, role=UserRole.USER, password=DEFAULT_PASSWORD, full_name=None, image=None, is_active=True):
        n = next(counter)
        user = User(
            email=email or f"user{n}@example.com",
            full_name=full_name or f"User {n}",
            image=image,
            hashed_password=hash_password(password),
            is_active=is_active,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_movie(db):
    """Creates movies whose creation time grows with every call (the last one is the newest)."""
    counter = itertools.count()
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(**fields):
        n = next(counter)
        fields.setdefault("name", f"Movie {n}")
        fields.setdefault("created_at", base_time + timedelta(minutes=n))
        movie = Movie(**fields)
        db.add(movie)
        db.commit()
        db.refresh(movie)
        return movie

    return _make


@pytest.fixture
def login(client):
    """Returns a helper turning credentials into bearer auth headers."""
    def _login(email, password=DEFAULT_PASSWORD) -> dict:
        response = client.post("/auth/token", data={"username": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def user_headers(login, make_user):
    user = make_user(email="reviewer@example.com", full_name="Rita Reviewer", image="/avatars/rita.png")
    return login(user.email)


@pytest.fixture
def admin_headers(login, make_user):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN, full_name="Ada Admin")
    return login(admin.email)
