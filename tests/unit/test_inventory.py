"""
Unit tests for the inventory ledger.
"""

import pytest

from libris.circulation.inventory import InventoryLedger
from libris.errors import NotFoundError, OutOfStockError


class TestDecrement:
    """Taking copies off the shelf."""

    def test_decrement_returns_remaining(self, ledger, make_book):
        book = make_book(quantity=2)

        assert ledger.decrement_book(book.id) == 1
        assert ledger.get_available(book.id) == 1

    def test_decrement_last_copy_then_out_of_stock(self, ledger, make_book):
        book = make_book(quantity=1)

        assert ledger.decrement_book(book.id) == 0
        with pytest.raises(OutOfStockError) as exc_info:
            ledger.decrement_book(book.id)

        assert exc_info.value.code == "OUT_OF_STOCK"
        assert ledger.get_available(book.id) == 0

    def test_decrement_zero_stock_book(self, ledger, make_book):
        book = make_book(quantity=0)

        with pytest.raises(OutOfStockError):
            ledger.decrement_book(book.id)

    def test_decrement_unknown_book(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.decrement_book("missing")

    def test_failed_decrement_leaves_count_untouched(self, db, ledger, make_book):
        book = make_book(quantity=1)

        with pytest.raises(RuntimeError):
            with db.transaction() as session:
                ledger.decrement(session, book.id)
                raise RuntimeError("caller failed after decrement")

        # Rolled back with the caller's transaction
        assert ledger.get_available(book.id) == 1


class TestIncrement:
    """Putting copies back."""

    def test_increment(self, ledger, make_book):
        book = make_book(quantity=0)

        assert ledger.increment_book(book.id) == 1
        assert ledger.increment_book(book.id) == 2

    def test_increment_unknown_book(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.increment_book("missing")

    def test_restock_adds_copies(self, ledger, make_book):
        book = make_book(quantity=1)

        assert ledger.restock_book(book.id, 4) == 5

    @pytest.mark.parametrize("copies", [0, -3])
    def test_restock_rejects_non_positive(self, ledger, make_book, copies):
        book = make_book(quantity=1)

        with pytest.raises(ValueError):
            ledger.restock_book(book.id, copies)
        assert ledger.get_available(book.id) == 1


class TestAvailable:

    def test_available_unknown_book(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.get_available("missing")

    def test_ledger_is_stateless_between_instances(self, db, make_book):
        book = make_book(quantity=3)

        InventoryLedger(db).decrement_book(book.id)

        assert InventoryLedger(db).get_available(book.id) == 2
