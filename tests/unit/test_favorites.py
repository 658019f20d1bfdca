"""
Unit tests for favorite flags.
"""

import pytest

from libris.errors import NotFoundError


class TestSetFavorite:

    def test_set_is_idempotent(self, favorite_service, make_book):
        book = make_book()

        assert favorite_service.set_favorite("user-1", book.id, True) is True
        assert favorite_service.set_favorite("user-1", book.id, True) is True

        assert favorite_service.favorite_book_ids("user-1") == {book.id}
        assert len(favorite_service.list_favorites("user-1")) == 1

    def test_clear_is_idempotent(self, favorite_service, make_book):
        book = make_book()
        favorite_service.set_favorite("user-1", book.id, True)

        assert favorite_service.set_favorite("user-1", book.id, False) is False
        assert favorite_service.set_favorite("user-1", book.id, False) is False

        assert favorite_service.favorite_book_ids("user-1") == set()

    def test_clear_never_set(self, favorite_service, make_book):
        book = make_book()

        assert favorite_service.set_favorite("user-1", book.id, False) is False

    def test_unknown_book(self, favorite_service):
        with pytest.raises(NotFoundError):
            favorite_service.set_favorite("user-1", "missing", True)

    def test_per_user(self, favorite_service, make_book):
        book = make_book()
        favorite_service.set_favorite("user-1", book.id, True)

        assert favorite_service.favorite_book_ids("user-1") == {book.id}
        assert favorite_service.favorite_book_ids("user-2") == set()


class TestFavoritesInCatalog:

    def test_books_flagged_for_caller(self, favorite_service, book_repo, make_book):
        dune = make_book(title="Dune")
        make_book(title="Emma", author="Jane Austen")
        favorite_service.set_favorite("user-1", dune.id, True)

        books, total = book_repo.list_books(user_id="user-1", sort_by="title", sort_order="asc")

        assert total == 2
        assert [(b.title, b.is_favorite) for b in books] == [("Dune", True), ("Emma", False)]
        assert book_repo.get(dune.id, user_id="user-2").is_favorite is False

    def test_list_includes_book_fields(self, favorite_service, make_book):
        book = make_book(image_url="https://example.com/dune.jpg")
        favorite_service.set_favorite("user-1", book.id, True)

        [favorite] = favorite_service.list_favorites("user-1")

        assert favorite.book_title == "Dune"
        assert favorite.book_image_url == "https://example.com/dune.jpg"
