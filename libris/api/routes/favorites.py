"""
Favorite API Routes

PUT sets the flag to the requested state, so retries are harmless.
"""

from fastapi import APIRouter, Depends

from libris.api.dependencies import get_current_user_id, get_favorite_service
from libris.api.schemas import (
    FavoriteSet,
    FavoriteStateResponse,
    FavoriteResponse,
    ErrorResponse,
)


router = APIRouter(prefix="/book-favorites", tags=["favorites"])


@router.get("", response_model=list[FavoriteResponse])
def list_favorites(
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_favorite_service),
):
    """The caller's favorite books, newest first."""
    return service.list_favorites(user_id)


@router.put(
    "/{book_id}",
    response_model=FavoriteStateResponse,
    responses={404: {"model": ErrorResponse, "description": "Book not found"}},
)
def set_favorite(
    book_id: str,
    body: FavoriteSet,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_favorite_service),
):
    favorite = service.set_favorite(user_id, book_id, body.favorite)
    return FavoriteStateResponse(book_id=book_id, favorite=favorite)
