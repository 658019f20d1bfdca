"""
Review API Routes

One review per user per book; only the author may edit or delete it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from libris.api.dependencies import get_current_user_id, get_review_service
from libris.api.schemas import ReviewCreate, ReviewUpdate, ReviewResponse, ErrorResponse


router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=list[ReviewResponse])
def list_reviews(
    book_id: Optional[str] = Query(None, description="Reviews of this book"),
    mine: bool = Query(False, description="Only the caller's reviews"),
    limit: int = Query(100, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_review_service),
):
    return service.list_reviews(
        book_id=book_id,
        user_id=user_id if mine else None,
        limit=limit,
    )


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Rating outside 1..5"},
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "Already reviewed"},
    },
)
def create_review(
    review: ReviewCreate,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_review_service),
):
    return service.create_review(user_id, review.book_id, review.rating, review.comment)


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Rating outside 1..5"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Review not found"},
    },
)
def update_review(
    review_id: str,
    review: ReviewUpdate,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_review_service),
):
    return service.update_review(review_id, user_id, review.rating, review.comment)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Review not found"},
    },
)
def delete_review(
    review_id: str,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_review_service),
):
    service.delete_review(review_id, user_id)
    return None
