"""
Unit tests for the review guard.
"""

import pytest

from libris.circulation.reviews import validate_rating
from libris.errors import (
    DuplicateReviewError,
    ForbiddenError,
    InvalidRatingError,
    NotFoundError,
)


class TestValidateRating:

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_valid(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "4", None, True])
    def test_invalid(self, rating):
        with pytest.raises(InvalidRatingError):
            validate_rating(rating)


class TestCreateReview:

    def test_create(self, review_service, make_book):
        book = make_book()

        review = review_service.create_review("user-1", book.id, 4, "Spice!")

        assert review.rating == 4
        assert review.comment == "Spice!"
        assert review.book_title == "Dune"

    def test_second_review_for_same_book_rejected(self, review_service, make_book):
        book = make_book()
        review_service.create_review("user-1", book.id, 4)

        with pytest.raises(DuplicateReviewError) as exc_info:
            review_service.create_review("user-1", book.id, 2)

        assert exc_info.value.code == "DUPLICATE_REVIEW"
        assert len(review_service.list_reviews(book_id=book.id)) == 1

    def test_different_users_may_review(self, review_service, make_book):
        book = make_book()
        review_service.create_review("user-1", book.id, 4)
        review_service.create_review("user-2", book.id, 5)

        assert len(review_service.list_reviews(book_id=book.id)) == 2

    def test_invalid_rating_not_stored(self, review_service, make_book):
        book = make_book()

        with pytest.raises(InvalidRatingError):
            review_service.create_review("user-1", book.id, 7)

        assert review_service.list_reviews(book_id=book.id) == []

    def test_unknown_book(self, review_service):
        with pytest.raises(NotFoundError):
            review_service.create_review("user-1", "missing", 3)


class TestUpdateDeleteReview:

    def test_owner_updates_rating_and_comment(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 2, "meh")

        updated = review_service.update_review(review.id, "user-1", 5, "grew on me")

        assert updated.rating == 5
        assert updated.comment == "grew on me"
        assert updated.book_id == book.id
        assert updated.user_id == "user-1"

    def test_non_owner_cannot_update(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 2)

        with pytest.raises(ForbiddenError):
            review_service.update_review(review.id, "user-2", 5)

        assert review_service.get_review(review.id).rating == 2

    def test_ownership_checked_before_rating(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 2)

        with pytest.raises(ForbiddenError):
            review_service.update_review(review.id, "user-2", 99)

    def test_owner_invalid_rating(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 2)

        with pytest.raises(InvalidRatingError):
            review_service.update_review(review.id, "user-1", 0)

        assert review_service.get_review(review.id).rating == 2

    def test_update_unknown_review(self, review_service):
        with pytest.raises(NotFoundError):
            review_service.update_review("missing", "user-1", 3)

    def test_non_owner_cannot_delete(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 3)

        with pytest.raises(ForbiddenError):
            review_service.delete_review(review.id, "user-2")

        assert review_service.get_review(review.id).id == review.id

    def test_owner_deletes_then_may_review_again(self, review_service, make_book):
        book = make_book()
        review = review_service.create_review("user-1", book.id, 3)

        review_service.delete_review(review.id, "user-1")

        with pytest.raises(NotFoundError):
            review_service.get_review(review.id)
        again = review_service.create_review("user-1", book.id, 4)
        assert again.rating == 4


class TestListReviews:

    def test_filter_by_user(self, review_service, make_book):
        dune = make_book(title="Dune")
        emma = make_book(title="Emma", author="Jane Austen")
        review_service.create_review("user-1", dune.id, 5)
        review_service.create_review("user-1", emma.id, 3)
        review_service.create_review("user-2", dune.id, 1)

        mine = review_service.list_reviews(user_id="user-1")

        assert sorted(r.book_title for r in mine) == ["Dune", "Emma"]

    def test_reviews_removed_with_book(self, review_service, book_repo, make_book):
        book = make_book()
        review_service.create_review("user-1", book.id, 5)

        assert book_repo.delete(book.id) is True
        assert review_service.list_reviews(user_id="user-1") == []
