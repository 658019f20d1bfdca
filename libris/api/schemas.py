"""
API Schemas for Libris

Pydantic models for request validation and response serialization:
- Auth and user models
- Book and category models
- Loan, review and favorite models
- Dashboard models

Design Decisions:
1. Dates and ratings arrive loosely typed and are validated by the
   circulation services, so clients get the stable INVALID_DATE /
   INVALID_RATING codes instead of a generic 422.
2. Separate Request/Response: Clear distinction between inputs and outputs
3. Responses read straight from the Stored* dataclasses (from_attributes)
"""

from datetime import date, datetime
from typing import Optional, Any

from pydantic import BaseModel, EmailStr, Field, ConfigDict

from libris.circulation.loans import LoanStatus


# =============================================================================
# Auth Schemas
# =============================================================================

class UserCreate(BaseModel):
    """Signup request."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseModel):
    """Public user profile."""

    id: str
    email: str
    name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SignupResponse(BaseModel):
    user: UserResponse
    session: Token


# =============================================================================
# Book Schemas
# =============================================================================

class BookBase(BaseModel):
    """Base book fields."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: Optional[str] = Field(None, max_length=20)
    category_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)


class BookCreate(BookBase):
    """Book creation request."""

    quantity: int = Field(1, ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Dune",
                "author": "Frank Herbert",
                "isbn": "9780441172719",
                "quantity": 2,
            }
        }
    )


class BookUpdate(BaseModel):
    """Book update request (partial). Copies are changed via restock/loans only."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=500)
    isbn: Optional[str] = Field(None, max_length=20)
    category_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)


class RestockRequest(BaseModel):
    copies: int = Field(..., ge=1, le=10000)


class BookResponse(BookBase):
    """Book response model."""

    id: str
    quantity: int
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_favorite: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)


class BookListResponse(BaseModel):
    """Paginated book list response."""

    books: list[BookResponse]
    total: int
    page: int
    page_size: int
    has_more: bool


# =============================================================================
# Category Schemas
# =============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    book_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Loan Schemas
# =============================================================================

class LoanCreate(BaseModel):
    """Borrow request."""

    book_id: str
    expected_return_date: Any = Field(..., description="YYYY-MM-DD, today or later")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "book_id": "3f1c9a4e-6d1b-4c8e-9a57-2a7f0e1b8c11",
                "expected_return_date": "2026-11-01",
            }
        }
    )


class LoanReturn(BaseModel):
    """Return request."""

    returned_at: Any = Field(None, description="YYYY-MM-DD, defaults to today")


class LoanResponse(BaseModel):
    id: str
    book_id: str
    user_id: str
    expected_return_date: date
    returned_at: Optional[date] = None
    status: LoanStatus
    created_at: Optional[datetime] = None

    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Review Schemas
# =============================================================================

class ReviewCreate(BaseModel):
    book_id: str
    rating: Any = Field(..., description="Integer from 1 to 5")
    comment: Optional[str] = None


class ReviewUpdate(BaseModel):
    rating: Any = Field(..., description="Integer from 1 to 5")
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    book_id: str
    user_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Favorite Schemas
# =============================================================================

class FavoriteSet(BaseModel):
    favorite: bool = True


class FavoriteStateResponse(BaseModel):
    book_id: str
    favorite: bool


class FavoriteResponse(BaseModel):
    user_id: str
    book_id: str
    created_at: Optional[datetime] = None
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Dashboard Schemas
# =============================================================================

class PopularBook(BaseModel):
    id: str
    title: str
    image_url: Optional[str] = None
    average_rating: float
    review_count: int


class RecentLoan(BaseModel):
    id: str
    user_id: str
    book_title: str
    status: LoanStatus
    created_at: Optional[str] = None


class DashboardResponse(BaseModel):
    """Library overview numbers."""

    total_books: int
    total_users: int
    active_loans: int
    total_reviews: int
    popular_books: list[PopularBook]
    recent_loans: list[RecentLoan]


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Book out of stock",
                "detail": "No available copies of book 'abc123'",
                "code": "OUT_OF_STOCK",
                "timestamp": "2026-01-20T12:00:00Z",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
