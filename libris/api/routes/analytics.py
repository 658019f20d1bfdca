"""
Analytics API Routes for Libris

Library dashboard:
- Totals (books, users, active loans, reviews)
- Best rated books
- Latest loans
"""

from fastapi import APIRouter, Query, Depends
from loguru import logger

from libris.api.dependencies import get_book_repository, get_current_user_id
from libris.api.schemas import DashboardResponse
from libris.storage.book_repository import BookRepository

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
)
def get_dashboard(
    recent: int = Query(10, ge=1, le=100, description="Number of recent loans"),
    popular: int = Query(5, ge=1, le=50, description="Number of popular books"),
    repo: BookRepository = Depends(get_book_repository),
):
    """
    Library overview.

    Popular books are ranked by average rating, then by number of reviews.
    """
    logger.info("Fetching dashboard stats")
    stats = repo.get_stats(recent_limit=recent, popular_limit=popular)
    return DashboardResponse(**stats)
