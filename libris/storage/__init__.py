"""
Storage Module for Libris

Persistent storage for the catalog and circulation records:
- SQLAlchemy models with the integrity constraints
- Engine/session management
- Catalog and user repositories
"""

from libris.storage.models import (
    Base,
    User,
    BookModel,
    CategoryModel,
    LoanModel,
    ReviewModel,
    FavoriteModel,
)
from libris.storage.database import Database
from libris.storage.book_repository import (
    BookRepository,
    StoredBook,
)
from libris.storage.user_repository import UserRepository

__all__ = [
    # Models
    "Base",
    "User",
    "BookModel",
    "CategoryModel",
    "LoanModel",
    "ReviewModel",
    "FavoriteModel",
    # Database
    "Database",
    # Repositories
    "BookRepository",
    "StoredBook",
    "UserRepository",
]
