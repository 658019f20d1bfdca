"""
Book API Routes

Catalog CRUD plus restocking. Copies are only ever changed through the
inventory ledger (restock, borrow, return).
"""

from typing import Optional

from fastapi import APIRouter, Query, Depends, status
from loguru import logger

from libris.api.dependencies import (
    get_book_repository,
    get_current_user_id,
    get_ledger,
)
from libris.api.schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    BookListResponse,
    RestockRequest,
    ErrorResponse,
)
from libris.errors import NotFoundError


router = APIRouter(prefix="/books", tags=["books"])

SORT_FIELDS = "^(created_at|updated_at|title|author|quantity)$"


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
def create_book(
    book: BookCreate,
    _: str = Depends(get_current_user_id),
    repo=Depends(get_book_repository),
):
    """Add a title to the catalog with its initial number of copies."""
    logger.info(f"Creating book: {book.title} by {book.author}")
    data = book.model_dump(exclude={"title", "author", "quantity", "category_id"})
    return repo.create(
        title=book.title,
        author=book.author,
        quantity=book.quantity,
        category_id=book.category_id,
        **data,
    )


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def get_book(
    book_id: str,
    user_id: str = Depends(get_current_user_id),
    repo=Depends(get_book_repository),
):
    """Get a book by ID, flagged with the caller's favorite state."""
    book = repo.get(book_id, user_id=user_id)
    if not book:
        raise NotFoundError("Book", book_id)
    return book


@router.get(
    "",
    response_model=BookListResponse,
)
def list_books(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    author: Optional[str] = Query(None, description="Filter by author"),
    search: Optional[str] = Query(None, description="Match title, author or ISBN"),
    available: bool = Query(False, description="Only books with copies on the shelf"),
    sort_by: str = Query("created_at", pattern=SORT_FIELDS),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    user_id: str = Depends(get_current_user_id),
    repo=Depends(get_book_repository),
):
    """List books with pagination and filtering options."""
    logger.debug(f"Listing books: page={page}, size={page_size}")

    filters = {
        "category_id": category_id,
        "author": author,
        "search": search,
        "available": available,
    }

    books, total = repo.list_books(
        page=page,
        limit=page_size,
        filters=filters,
        sort_by=sort_by,
        sort_order=sort_order,
        user_id=user_id,
    )

    return BookListResponse(
        books=books,
        total=total,
        page=page,
        page_size=page_size,
        has_more=(page * page_size) < total,
    )


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Book or category not found"},
    },
)
def update_book(
    book_id: str,
    book: BookUpdate,
    _: str = Depends(get_current_user_id),
    repo=Depends(get_book_repository),
):
    """
    Update catalog fields of a book.

    Supports partial updates - only provided fields are modified.
    """
    logger.info(f"Updating book: {book_id}")
    updated = repo.update(book_id, **book.model_dump(exclude_unset=True))
    if not updated:
        raise NotFoundError("Book", book_id)
    return updated


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "Book has loans"},
    },
)
def delete_book(
    book_id: str,
    _: str = Depends(get_current_user_id),
    repo=Depends(get_book_repository),
):
    """Delete a book together with its reviews and favorites."""
    logger.info(f"Deleting book: {book_id}")
    if not repo.delete(book_id):
        raise NotFoundError("Book", book_id)
    return None


# =============================================================================
# Inventory
# =============================================================================

@router.post(
    "/{book_id}/restock",
    response_model=BookResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def restock_book(
    book_id: str,
    request: RestockRequest,
    user_id: str = Depends(get_current_user_id),
    ledger=Depends(get_ledger),
    repo=Depends(get_book_repository),
):
    """Add copies of a book to the shelf."""
    ledger.restock_book(book_id, request.copies)
    return repo.get(book_id, user_id=user_id)
