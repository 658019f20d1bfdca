"""
Review Guard for Libris

At most one review per (user, book), enforced by the unique
(book_id, user_id) constraint; only the author may edit or delete.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from libris.errors import (
    DuplicateReviewError,
    ForbiddenError,
    InvalidRatingError,
    NotFoundError,
)
from libris.storage.database import Database
from libris.storage.models import BookModel, ReviewModel

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating) -> int:
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError(rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidRatingError(rating)
    return rating


@dataclass
class StoredReview:
    """Data class for review data transfer."""

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

    @classmethod
    def from_model(cls, model: ReviewModel, book: Optional[BookModel] = None) -> "StoredReview":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            book_id=model.book_id,
            user_id=model.user_id,
            rating=model.rating,
            comment=model.comment,
            created_at=model.created_at,
            updated_at=model.updated_at,
            book_title=book.title if book else None,
            book_author=book.author if book else None,
            book_image_url=book.image_url if book else None,
        )


class ReviewService:
    """
    Create, edit, delete and list reviews.

    Usage:
        reviews = ReviewService(db)
        review = reviews.create_review(user_id, book_id, 4, "Great read")
        reviews.update_review(review.id, user_id, 5, "Even better the second time")
    """

    def __init__(self, db: Database):
        self.db = db

    def create_review(
        self,
        user_id: str,
        book_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> StoredReview:
        """
        Review a book.

        Raises:
            InvalidRatingError: rating not an integer in 1..5
            NotFoundError: unknown book
            DuplicateReviewError: user already reviewed this book
        """
        rating = validate_rating(rating)

        try:
            with self.db.transaction() as session:
                book = session.get(BookModel, book_id)
                if book is None:
                    raise NotFoundError("Book", book_id)

                review = ReviewModel(
                    id=str(uuid.uuid4()),
                    book_id=book_id,
                    user_id=user_id,
                    rating=rating,
                    comment=comment,
                )
                session.add(review)
                session.flush()
                stored = StoredReview.from_model(review, book)
        except IntegrityError as e:
            logger.warning(f"Duplicate review rejected: user={user_id} book={book_id}")
            raise DuplicateReviewError(user_id, book_id) from e

        logger.info(f"Review created: {stored.id} user={user_id} book={book_id} rating={rating}")
        return stored

    def update_review(
        self,
        review_id: str,
        user_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> StoredReview:
        """
        Edit rating and comment. Book and user references never change.

        Raises:
            NotFoundError: unknown review
            ForbiddenError: caller is not the author
            InvalidRatingError: rating not an integer in 1..5
        """
        with self.db.transaction() as session:
            review = self._owned(session, review_id, user_id, action="update")
            review.rating = validate_rating(rating)
            review.comment = comment
            review.updated_at = datetime.utcnow()
            session.flush()
            stored = StoredReview.from_model(review, review.book)

        logger.info(f"Review updated: {review_id} rating={stored.rating}")
        return stored

    def delete_review(self, review_id: str, user_id: str) -> None:
        """
        Delete a review.

        Raises:
            NotFoundError: unknown review
            ForbiddenError: caller is not the author
        """
        with self.db.transaction() as session:
            review = self._owned(session, review_id, user_id, action="delete")
            session.delete(review)

        logger.info(f"Review deleted: {review_id}")

    def get_review(self, review_id: str) -> StoredReview:
        with self.db.get_session() as session:
            review = session.get(ReviewModel, review_id)
            if review is None:
                raise NotFoundError("Review", review_id)
            return StoredReview.from_model(review, review.book)

    def list_reviews(
        self,
        book_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[StoredReview]:
        """
        List reviews, newest first.

        Args:
            book_id: Only reviews of this book
            user_id: Only reviews by this user
            limit: Max results
        """
        with self.db.get_session() as session:
            query = select(ReviewModel, BookModel).join(
                BookModel, ReviewModel.book_id == BookModel.id
            )
            if book_id:
                query = query.where(ReviewModel.book_id == book_id)
            if user_id:
                query = query.where(ReviewModel.user_id == user_id)

            rows = session.execute(
                query.order_by(ReviewModel.created_at.desc()).limit(limit)
            ).all()

            return [StoredReview.from_model(review, book) for review, book in rows]

    @staticmethod
    def _owned(session, review_id: str, user_id: str, action: str) -> ReviewModel:
        review = session.get(ReviewModel, review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        if review.user_id != user_id:
            logger.warning(f"User {user_id} tried to {action} review {review_id}")
            raise ForbiddenError(f"Not authorized to {action} this review")
        return review
