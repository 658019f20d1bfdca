"""
API Routes for Libris

Route modules:
- auth: Signup, login, current user, user directory
- books: Catalog CRUD and restocking
- categories: Category CRUD with guarded delete
- loans: Borrow and return
- reviews: One review per user per book
- favorites: Idempotent favorite flags
- analytics: Dashboard statistics
"""

from libris.api.routes.auth import router as auth_router
from libris.api.routes.auth import users_router
from libris.api.routes.books import router as books_router
from libris.api.routes.categories import router as categories_router
from libris.api.routes.loans import router as loans_router
from libris.api.routes.reviews import router as reviews_router
from libris.api.routes.favorites import router as favorites_router
from libris.api.routes.analytics import router as analytics_router

__all__ = [
    "auth_router",
    "users_router",
    "books_router",
    "categories_router",
    "loans_router",
    "reviews_router",
    "favorites_router",
    "analytics_router",
]
