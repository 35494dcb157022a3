import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from hackconnect import models  # noqa: F401
from hackconnect.database import get_session
from hackconnect.models import User
from hackconnect.tokens import hash_password, issue_access_token

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Hashing is slow on purpose; reuse one hash for every fixture user
TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Factory creating users named user1, user2, ... unless told otherwise."""
    counter = {"n": 0}

    def _make_user(name: str = None, **fields) -> User:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = User(
            name=name,
            email=fields.pop("email", f"{name.lower().replace(' ', '.')}@example.com"),
            password_hash=TEST_PASSWORD_HASH,
            **fields
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(session: Session):
    """Bearer headers for a given user."""
    def _auth_headers(user: User) -> dict:
        token = issue_access_token(session, user.id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
