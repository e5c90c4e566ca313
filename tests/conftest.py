"""Pytest configuration and fixtures."""

import os

# Settings are cached on first import, so the test environment is fixed here
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    os.environ["DATABASE_URL"] = os.environ["DATABASE_URL"].replace(
        "/recipe_import", "/recipe_import_test"
    )
else:
    # Running locally - use SQLite
    os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["STORAGE_URL"] = "https://storage.test"
os.environ["STORAGE_BUCKET"] = "recipe-images"
os.environ["ENVIRONMENT"] = "test"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.api.dependencies import get_services  # noqa: E402
from src.config import get_settings  # noqa: E402
from src.database import Base, SessionLocal, get_db, init_db  # noqa: E402
from src.main import app  # noqa: E402
from src.services.container import build_services  # noqa: E402
from tests.fakes import FakeExtractionClient, FakeImageClient, FakeWeb  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    url = get_settings().database_url
    if "postgresql" in url:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(url):
            create_database(url)

    init_db()
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = SessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def fake_web():
    return FakeWeb()


@pytest.fixture
def extraction_client():
    return FakeExtractionClient()


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def services(fake_web, extraction_client, image_client):
    """Service graph wired to the fakes."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_web.handler))
    return build_services(get_settings(), http_client, extraction_client, image_client)


@pytest.fixture(scope="function")
def client(db, services):
    """Create a test client with database and service overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "test@example.com", "password": "testpass123", "name": "Test User"},
    )
    assert response.status_code == 201
    data = response.json()

    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def other_auth_headers(client):
    """A second account, for ownership checks."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "other@example.com", "password": "otherpass123", "name": "Other User"},
    )
    assert response.status_code == 201
    data = response.json()

    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def recipe_payload():
    """Extractor output for a complete recipe, camelCase as the tool schema asks."""
    return {
        "title": "Spaghetti Carbonara",
        "description": "Klassische römische Pasta.",
        "category": "Hauptspeise",
        "tags": ["Schnell"],
        "cookingTime": 25,
        "servings": 4,
        "difficulty": "Mittel",
        "imageUrl": "https://recipes.example.com/img/carbonara.png",
        "ingredients": [
            {"name": "Spaghetti", "amount": 400, "unit": "g"},
            {"name": "Eier", "amount": "4", "unit": "Stück"},
            {"name": "Guanciale", "amount": "150", "unit": "g", "notes": "gewürfelt"},
        ],
        "instructions": [
            {"stepNumber": 3, "description": "Pasta kochen."},
            {"stepNumber": 7, "description": "Eier mit Käse verrühren."},
            {"stepNumber": 9, "description": "Alles vermengen."},
        ],
    }
