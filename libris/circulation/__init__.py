"""
Circulation Module for Libris

Consistency rules around book availability and user actions:
- Inventory ledger (atomic copy counts)
- Loan state machine (active -> returned)
- Review guard (one review per user and book)
- Category integrity guard (no deleting categories in use)
- Favorite toggle (idempotent set)
"""

from libris.circulation.inventory import InventoryLedger
from libris.circulation.loans import (
    LoanService,
    LoanStatus,
    StoredLoan,
)
from libris.circulation.reviews import (
    ReviewService,
    StoredReview,
    validate_rating,
)
from libris.circulation.categories import (
    CategoryService,
    StoredCategory,
)
from libris.circulation.favorites import (
    FavoriteService,
    StoredFavorite,
)
from libris.circulation.dates import parse_iso_date

__all__ = [
    # Inventory
    "InventoryLedger",
    # Loans
    "LoanService",
    "LoanStatus",
    "StoredLoan",
    # Reviews
    "ReviewService",
    "StoredReview",
    "validate_rating",
    # Categories
    "CategoryService",
    "StoredCategory",
    # Favorites
    "FavoriteService",
    "StoredFavorite",
    # Dates
    "parse_iso_date",
]
