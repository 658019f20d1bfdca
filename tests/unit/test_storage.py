"""
Unit tests for the storage layer (catalog, users, database handle).
"""

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from libris.circulation import InventoryLedger, LoanService, ReviewService
from libris.errors import BookInUseError, ConflictError, StorageUnavailableError
from libris.storage import BookModel, Database


class TestDatabase:

    def test_in_memory_default(self):
        db = Database()
        try:
            assert db.database_url == "sqlite:///:memory:"
            assert db.ping() is True
        finally:
            db.dispose()

    def test_async_driver_is_stripped(self, tmp_path):
        db = Database(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
        try:
            assert db.database_url.startswith("sqlite:///")
            assert db.dialect == "sqlite"
        finally:
            db.dispose()

    def test_unreachable_storage_on_reads(self, tmp_path):
        db = Database(sqlite_path=tmp_path / "missing-dir" / "x.db", create_tables=False)
        loans = LoanService(db, InventoryLedger(db))
        try:
            with pytest.raises(StorageUnavailableError):
                loans.list_loans("user-1")
            with pytest.raises(StorageUnavailableError):
                loans.get_loan("loan-1")
            with pytest.raises(StorageUnavailableError):
                ReviewService(db).list_reviews()
            with pytest.raises(StorageUnavailableError) as exc_info:
                InventoryLedger(db).get_available("book-1")
            assert exc_info.value.status_code == 503
            assert db.ping() is False
        finally:
            db.dispose()

    def test_quantity_cannot_go_negative(self, db, make_book):
        book = make_book(quantity=0)

        with pytest.raises(IntegrityError):
            with db.transaction() as session:
                session.execute(
                    update(BookModel)
                    .where(BookModel.id == book.id)
                    .values(quantity=-1)
                )


class TestBookRepository:

    def test_create_and_get(self, book_repo, sample_book_data):
        data = dict(sample_book_data)
        book = book_repo.create(
            title=data.pop("title"),
            author=data.pop("author"),
            quantity=data.pop("quantity"),
            **data,
        )

        fetched = book_repo.get(book.id)

        assert fetched.title == "The Left Hand of Darkness"
        assert fetched.quantity == 1
        assert fetched.available is True
        assert fetched.is_favorite is None
        assert book_repo.get_by_isbn("978-0441478125").id == book.id

    def test_isbn_stored_without_dashes(self, book_repo, make_book):
        book = make_book(isbn="978-0441478125")

        assert book.isbn == "9780441478125"
        assert book_repo.get_by_isbn("978-0441478125").id == book.id
        assert book_repo.get_by_isbn("9780441478125").id == book.id

        book_repo.update(book.id, isbn="978 0441 013593")
        assert book_repo.get_by_isbn("9780441013593").id == book.id

    def test_negative_quantity_rejected(self, book_repo):
        with pytest.raises(ValueError):
            book_repo.create(title="Dune", author="Frank Herbert", quantity=-1)

    def test_update_ignores_quantity(self, book_repo, make_book):
        book = make_book(quantity=2)

        updated = book_repo.update(book.id, title="Dune Messiah", quantity=50)

        assert updated.title == "Dune Messiah"
        assert updated.quantity == 2

    def test_update_unknown(self, book_repo):
        assert book_repo.update("missing", title="x") is None

    def test_list_search_and_pagination(self, book_repo, make_book):
        for i in range(5):
            make_book(title=f"Foundation {i}", author="Isaac Asimov", quantity=i)
        make_book(title="Emma", author="Jane Austen")

        books, total = book_repo.list_books(page=1, limit=2, filters={"search": "foundation"})
        assert total == 5
        assert len(books) == 2

        _, available_total = book_repo.list_books(filters={"author": "asimov", "available": True})
        assert available_total == 4

    def test_delete_cascades_favorites(self, book_repo, favorite_service, make_book):
        book = make_book()
        favorite_service.set_favorite("user-1", book.id, True)

        assert book_repo.delete(book.id) is True
        assert favorite_service.favorite_book_ids("user-1") == set()
        assert book_repo.delete(book.id) is False

    def test_delete_with_loan_history_refused(self, book_repo, loan_service, make_book):
        from tests.conftest import TODAY

        book = make_book()
        loan = loan_service.open_loan("user-1", book.id, TODAY.isoformat())
        loan_service.return_loan(loan.id, TODAY.isoformat())

        with pytest.raises(BookInUseError):
            book_repo.delete(book.id)
        assert book_repo.get(book.id) is not None

    def test_stats(self, book_repo, loan_service, review_service, user_repo, make_book):
        from tests.conftest import TODAY

        dune = make_book(title="Dune", quantity=2)
        emma = make_book(title="Emma", author="Jane Austen")
        user_repo.create("reader@example.com", "hash")
        loan_service.open_loan("user-1", dune.id, TODAY.isoformat())
        review_service.create_review("user-1", dune.id, 5)
        review_service.create_review("user-2", dune.id, 4)
        review_service.create_review("user-1", emma.id, 3)

        stats = book_repo.get_stats()

        assert stats["total_books"] == 2
        assert stats["total_users"] == 1
        assert stats["active_loans"] == 1
        assert stats["total_reviews"] == 3
        assert stats["popular_books"][0]["title"] == "Dune"
        assert stats["popular_books"][0]["average_rating"] == 4.5
        assert stats["popular_books"][0]["review_count"] == 2
        assert stats["recent_loans"][0]["book_title"] == "Dune"


class TestUserRepository:

    def test_email_is_case_insensitive_and_unique(self, user_repo):
        user = user_repo.create("Reader@Example.com", "hash", name="Reader")

        assert user_repo.get_by_email("reader@example.com").id == user.id
        with pytest.raises(ConflictError):
            user_repo.create("reader@example.com", "other")

    def test_list_all(self, user_repo):
        user_repo.create("a@example.com", "hash")
        user_repo.create("b@example.com", "hash")

        assert {u.email for u in user_repo.list_all()} == {"a@example.com", "b@example.com"}
