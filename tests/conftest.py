# Settings are read at import time, so configure the environment first
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentbnb.main import app
from rentbnb.database import Base, get_db
from rentbnb import auth, models

# --- Test Database Setup ---
# One in-memory database shared by every connection of the test engine
engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Provides a session on freshly created tables for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Provides a TestClient whose requests share the test session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# --- Helpers ---

def auth_headers_for(user: models.User) -> dict:
    return {"Authorization": f"Bearer {auth.create_access_token(user.id)}"}


def make_user(db_session, email: str, name: str = None) -> models.User:
    # No password: these users authenticate with tokens minted in the test
    user = models.User(email=email, name=name or email.split("@")[0])
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_listing(db_session, owner: models.User, **overrides) -> models.Listing:
    data = dict(
        title="Beach house",
        description="Two minutes from the sea.",
        image_src=["https://img.example/1.jpg", "https://img.example/2.jpg"],
        category="Beach",
        room_count=3,
        bathroom_count=2,
        guest_count=6,
        location_value="PT",
        price=12000,
    )
    data.update(overrides)
    listing = models.Listing(user_id=owner.id, **data)
    db_session.add(listing)
    db_session.commit()
    db_session.refresh(listing)
    return listing


@pytest.fixture
def host(db_session):
    return make_user(db_session, "host@example.com", "Hana Host")


@pytest.fixture
def guest(db_session):
    return make_user(db_session, "guest@example.com", "Gil Guest")


@pytest.fixture
def listing(db_session, host):
    return make_listing(db_session, host)
