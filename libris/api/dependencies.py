"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- The storage handle and service instances
- Authentication (bearer token -> user id)
"""

import os
from typing import Optional
from functools import lru_cache
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from libris.errors import AuthenticationError


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./libris.db"
    database_echo: bool = False

    # Auth
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # CORS
    cors_allowed_origins: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", cls.cors_allowed_origins),
            environment=os.getenv("LIBRIS_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Container
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    One container per application; every service shares the same
    Database handle and holds no other mutable state.
    """

    def __init__(self, settings: Settings, database=None):
        self.settings = settings
        self._database = database
        self._book_repository = None
        self._user_repository = None
        self._ledger = None
        self._loan_service = None
        self._review_service = None
        self._category_service = None
        self._favorite_service = None
        self._identity_gate = None

    @property
    def database(self):
        """Get database handle."""
        if self._database is None:
            from ..storage.database import Database
            self._database = Database(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
        return self._database

    @property
    def book_repository(self):
        """Get book repository instance."""
        if self._book_repository is None:
            from ..storage.book_repository import BookRepository
            self._book_repository = BookRepository(self.database)
        return self._book_repository

    @property
    def user_repository(self):
        """Get user repository instance."""
        if self._user_repository is None:
            from ..storage.user_repository import UserRepository
            self._user_repository = UserRepository(self.database)
        return self._user_repository

    @property
    def ledger(self):
        """Get inventory ledger instance."""
        if self._ledger is None:
            from ..circulation.inventory import InventoryLedger
            self._ledger = InventoryLedger(self.database)
        return self._ledger

    @property
    def loan_service(self):
        """Get loan service instance."""
        if self._loan_service is None:
            from ..circulation.loans import LoanService
            self._loan_service = LoanService(self.database, self.ledger)
        return self._loan_service

    @property
    def review_service(self):
        """Get review service instance."""
        if self._review_service is None:
            from ..circulation.reviews import ReviewService
            self._review_service = ReviewService(self.database)
        return self._review_service

    @property
    def category_service(self):
        """Get category service instance."""
        if self._category_service is None:
            from ..circulation.categories import CategoryService
            self._category_service = CategoryService(self.database)
        return self._category_service

    @property
    def favorite_service(self):
        """Get favorite service instance."""
        if self._favorite_service is None:
            from ..circulation.favorites import FavoriteService
            self._favorite_service = FavoriteService(self.database)
        return self._favorite_service

    @property
    def identity_gate(self):
        """Get identity gate instance."""
        if self._identity_gate is None:
            from ..security import TokenIdentityGate
            self._identity_gate = TokenIdentityGate(
                secret_key=self.settings.secret_key,
                algorithm=self.settings.jwt_algorithm,
                expire_minutes=self.settings.access_token_expire_minutes,
            )
        return self._identity_gate

    def close(self) -> None:
        if self._database is not None:
            self._database.dispose()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the application's service container, creating it on first use."""
    container: Optional[ServiceContainer] = getattr(request.app.state, "services", None)
    if container is None:
        settings = getattr(request.app.state, "settings", None) or get_settings()
        container = ServiceContainer(settings)
        request.app.state.services = container
    return container


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_book_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for book repository."""
    return container.book_repository


def get_user_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for user repository."""
    return container.user_repository


def get_ledger(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for inventory ledger."""
    return container.ledger


def get_loan_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for loan service."""
    return container.loan_service


def get_review_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for review service."""
    return container.review_service


def get_category_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for category service."""
    return container.category_service


def get_favorite_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for favorite service."""
    return container.favorite_service


def get_identity_gate(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for identity gate."""
    return container.identity_gate


# =============================================================================
# Authentication Dependencies
# =============================================================================

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def get_current_user_id(
    token: Optional[str] = Depends(oauth2_scheme),
    gate=Depends(get_identity_gate),
) -> str:
    """
    Resolve the bearer token to a user id.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid.
    """
    if not token:
        raise AuthenticationError("No authorization header")
    return gate.verify(token)
