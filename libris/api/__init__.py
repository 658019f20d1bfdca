"""
Libris - FastAPI Backend.

HTTP surface for the library circulation service.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    get_current_user_id,
    ServiceContainer,
)
from .schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    BookListResponse,
    LoanCreate,
    LoanResponse,
    ReviewCreate,
    ReviewResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "get_current_user_id",
    "ServiceContainer",
    # Schemas
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "LoanCreate",
    "LoanResponse",
    "ReviewCreate",
    "ReviewResponse",
    "HealthResponse",
    "ErrorResponse",
]
