"""
Pytest configuration and fixtures for Libris tests.
"""

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from libris.api.main import create_app
from libris.api.dependencies import Settings, ServiceContainer
from libris.circulation import (
    CategoryService,
    FavoriteService,
    InventoryLedger,
    LoanService,
    ReviewService,
)
from libris.storage import BookRepository, Database, UserRepository


# Fixed "today" for the service-level tests
TODAY = date(2025, 3, 14)


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings(database_url: str) -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url=database_url,
        database_echo=False,
        secret_key="test-secret-key",
        environment="test",
        debug=False,
    )


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def db(tmp_path) -> Database:
    """
    File-backed SQLite database.

    A file (not :memory:) so that worker threads in the concurrency tests
    get connections of their own.
    """
    database = Database(sqlite_path=tmp_path / "libris-test.db")
    yield database
    database.dispose()


@pytest.fixture
def book_repo(db) -> BookRepository:
    return BookRepository(db)


@pytest.fixture
def user_repo(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def ledger(db) -> InventoryLedger:
    return InventoryLedger(db)


@pytest.fixture
def loan_service(db, ledger) -> LoanService:
    return LoanService(db, ledger, clock=lambda: TODAY)


@pytest.fixture
def review_service(db) -> ReviewService:
    return ReviewService(db)


@pytest.fixture
def category_service(db) -> CategoryService:
    return CategoryService(db)


@pytest.fixture
def favorite_service(db) -> FavoriteService:
    return FavoriteService(db)


@pytest.fixture
def make_book(book_repo):
    """Factory for catalog entries."""
    def _make(title: str = "Dune", author: str = "Frank Herbert", quantity: int = 1, **kwargs):
        return book_repo.create(title=title, author=author, quantity=quantity, **kwargs)
    return _make


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(db):
    """Create FastAPI application bound to the test database."""
    settings = get_test_settings(db.database_url)
    application = create_app(settings, services=ServiceContainer(settings, database=db))
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup(client: AsyncClient, email: str, password: str = "secret123") -> dict:
    """Register a user; returns auth headers plus the user id."""
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": password, "name": email.split("@")[0]},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "user_id": data["user"]["id"],
        "headers": {"Authorization": f"Bearer {data['session']['access_token']}"},
    }


@pytest_asyncio.fixture
async def alice(client) -> dict:
    return await signup(client, "alice@example.com")


@pytest_asyncio.fixture
async def bob(client) -> dict:
    return await signup(client, "bob@example.com")


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def sample_book_data() -> dict:
    """Sample book data for testing."""
    return {
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "isbn": "9780441478125",
        "description": "An envoy on a planet of ambisexual people.",
        "image_url": "https://example.com/cover.jpg",
        "quantity": 1,
    }


@pytest.fixture
def next_week() -> str:
    """Expected return date a week from the real today (API tests)."""
    return (date.today() + timedelta(days=7)).isoformat()
