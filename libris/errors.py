"""
Error taxonomy for Libris.

Every failure surfaced by the circulation core carries a stable code and
an HTTP status so API clients can tell "no stock" from "you already
borrowed this" from "not your review".
"""

from typing import Optional


class LibrisError(Exception):
    """Base exception for Libris errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NotFoundError(LibrisError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ForbiddenError(LibrisError):
    """Caller does not own the resource."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            detail=detail,
        )


class OutOfStockError(LibrisError):
    """No copies of the book are available."""

    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__(
            message="Book out of stock",
            code="OUT_OF_STOCK",
            status_code=409,
            detail=f"No available copies of book '{book_id}'",
        )


class DuplicateActiveLoanError(LibrisError):
    """User already has an active loan for this book."""

    def __init__(self, user_id: str, book_id: str):
        super().__init__(
            message="You already have an active loan for this book",
            code="DUPLICATE_ACTIVE_LOAN",
            status_code=409,
            detail=f"User '{user_id}' already borrowed book '{book_id}'",
        )


class DuplicateReviewError(LibrisError):
    """User already reviewed this book."""

    def __init__(self, user_id: str, book_id: str):
        super().__init__(
            message="You have already reviewed this book",
            code="DUPLICATE_REVIEW",
            status_code=409,
            detail=f"User '{user_id}' already reviewed book '{book_id}'",
        )


class InvalidRatingError(LibrisError):
    """Rating outside of 1..5."""

    def __init__(self, rating):
        super().__init__(
            message="Rating must be an integer between 1 and 5",
            code="INVALID_RATING",
            status_code=400,
            detail=f"Got {rating!r}",
        )


class InvalidDateError(LibrisError):
    """Malformed or out-of-range date."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_DATE",
            status_code=400,
            detail=detail,
        )


class InvalidStateError(LibrisError):
    """Transition not allowed from the current state."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_STATE",
            status_code=409,
            detail=detail,
        )


class CategoryInUseError(LibrisError):
    """Category still referenced by books."""

    def __init__(self, category_id: str, book_count: Optional[int] = None):
        detail = f"Category '{category_id}' is assigned to books"
        if book_count:
            detail = f"Category '{category_id}' is assigned to {book_count} book(s)"
        super().__init__(
            message="Category is in use and cannot be deleted",
            code="CATEGORY_IN_USE",
            status_code=409,
            detail=detail,
        )


class BookInUseError(LibrisError):
    """Book has loan history and cannot be deleted."""

    def __init__(self, book_id: str):
        super().__init__(
            message="Book has loans and cannot be deleted",
            code="BOOK_IN_USE",
            status_code=409,
            detail=f"Book '{book_id}' is referenced by loan records",
        )


class ConflictError(LibrisError):
    """Generic uniqueness conflict (e.g. email already registered)."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            detail=detail,
        )


class AuthenticationError(LibrisError):
    """Missing or invalid credentials."""

    def __init__(self, message: str = "Could not validate credentials", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
        )


class StorageUnavailableError(LibrisError):
    """Storage transport failure. The only retryable kind."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Storage unavailable",
            code="STORAGE_UNAVAILABLE",
            status_code=503,
            detail=detail,
        )
