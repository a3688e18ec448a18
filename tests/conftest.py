import os
import tempfile
from pathlib import Path

# Configure before the app modules read their environment
os.environ.setdefault("KH_SECRET_KEY", "test-secret-key")
os.environ.setdefault("KH_DB_PATH", str(Path(tempfile.gettempdir()) / "knowledgehub-test.db"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from knowledgehub.db.database import create_db_engine, get_db, init_db
from knowledgehub.main import app
from knowledgehub.routes import auth
from knowledgehub.services import users as users_service

AUTHOR_EMAIL = "author@example.com"
AUTHOR_PASSWORD = "correct horse battery staple"


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def author(db):
    return users_service.create_user(db, AUTHOR_EMAIL, "Ada Author", AUTHOR_PASSWORD)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    auth.limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def author_client(client, author):
    """Client whose JSON write requests are made as the signed-in author."""
    app.dependency_overrides[auth.require_author] = lambda: author
    return client


def login(client, email=AUTHOR_EMAIL, password=AUTHOR_PASSWORD, next="/admin/posts"):
    """Run the real login form flow and return the final response."""
    client.get("/admin/login")
    csrf_token = client.cookies.get(auth.CSRF_COOKIE_NAME)
    return client.post(
        "/admin/login",
        data={"email": email, "password": password, "next": next, "csrf_token": csrf_token},
        follow_redirects=False,
    )
