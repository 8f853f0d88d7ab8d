import os
import tempfile

# Must be set before the application modules read their settings
TEST_DATABASE_PATH = os.path.join(tempfile.gettempdir(), "bookreviews_test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DATABASE_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_EXPIRES_IN"] = "1h"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

import auth
import models
from database import Base, SessionLocal, engine
from main import app


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()


@pytest.fixture(scope="function")
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client():
    with TestClient(app) as c:
        yield c


def create_user(db_session, name="Reader", email="reader@example.com", password="password123", role="user"):
    user = models.User(
        name=name,
        email=email,
        password_hash=auth.hash_password(password),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {auth.create_access_token(user.id, user.role)}"}


def create_book(db_session, title="Dracula", author="Bram Stoker", **fields):
    book = models.Book(title=title, author=author, description=fields.pop("description", ""), **fields)
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def user(db_session):
    return create_user(db_session)


@pytest.fixture
def admin(db_session):
    return create_user(db_session, name="Admin", email="admin@example.com", role="admin")


@pytest.fixture
def user_headers(user):
    return bearer(user)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)
