"""
Inventory Ledger for Libris

Owns the available-copy count of every book. Each mutation is a single
conditional UPDATE at the storage layer, so concurrent borrowers of the
last copy can never both succeed and no update is ever lost.

The session-level methods join the caller's transaction (used by the loan
service); the *_book wrappers run in a transaction of their own.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from libris.errors import NotFoundError, OutOfStockError, StorageUnavailableError
from libris.storage.database import Database
from libris.storage.models import BookModel

# Bounded retries for the return-side increment on transient lock errors
INCREMENT_ATTEMPTS = 3


class InventoryLedger:
    """
    Atomic counter operations on books.quantity.

    Usage:
        ledger = InventoryLedger(db)
        remaining = ledger.decrement_book(book_id)   # may raise OutOfStockError
        ledger.increment_book(book_id)
    """

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Session-level operations (caller owns the transaction)
    # ------------------------------------------------------------------

    def decrement(self, session: Session, book_id: str) -> int:
        """
        Take one copy.

        Args:
            session: Open session; the change commits with the caller
            book_id: Book ID

        Returns:
            New available count

        Raises:
            OutOfStockError: count was already 0
            NotFoundError: no such book
        """
        stmt = (
            update(BookModel)
            .where(BookModel.id == book_id, BookModel.quantity > 0)
            .values(quantity=BookModel.quantity - 1)
            .returning(BookModel.quantity)
            .execution_options(synchronize_session=False)
        )
        remaining = session.execute(stmt).scalar_one_or_none()

        if remaining is None:
            self._require_book(session, book_id)
            logger.warning(f"Out of stock: book={book_id}")
            raise OutOfStockError(book_id)

        logger.debug(f"Decremented book={book_id} -> {remaining}")
        return remaining

    def increment(self, session: Session, book_id: str) -> int:
        """
        Put one copy back.

        Retried on transient storage errors; a successful increment is
        never reapplied.

        Returns:
            New available count
        """
        return self._add(session, book_id, 1, attempts=INCREMENT_ATTEMPTS)

    def restock(self, session: Session, book_id: str, copies: int) -> int:
        """
        Add copies to the shelf (catalog stock adjustment).

        Args:
            copies: Number of copies to add (>= 1)
        """
        if copies < 1:
            raise ValueError("copies must be >= 1")
        return self._add(session, book_id, copies, attempts=1)

    def available(self, session: Session, book_id: str) -> int:
        """Current available count (plain read, may be stale by one write)."""
        quantity = session.execute(
            select(BookModel.quantity).where(BookModel.id == book_id)
        ).scalar_one_or_none()
        if quantity is None:
            raise NotFoundError("Book", book_id)
        return quantity

    # ------------------------------------------------------------------
    # Standalone wrappers
    # ------------------------------------------------------------------

    def decrement_book(self, book_id: str) -> int:
        with self.db.transaction() as session:
            return self.decrement(session, book_id)

    def increment_book(self, book_id: str) -> int:
        with self.db.transaction() as session:
            return self.increment(session, book_id)

    def restock_book(self, book_id: str, copies: int) -> int:
        with self.db.transaction() as session:
            count = self.restock(session, book_id, copies)
        logger.info(f"Restocked book={book_id} +{copies} -> {count}")
        return count

    def get_available(self, book_id: str) -> int:
        with self.db.get_session() as session:
            return self.available(session, book_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _add(self, session: Session, book_id: str, amount: int, attempts: int) -> int:
        stmt = (
            update(BookModel)
            .where(BookModel.id == book_id)
            .values(quantity=BookModel.quantity + amount)
            .returning(BookModel.quantity)
            .execution_options(synchronize_session=False)
        )

        last_error: Optional[OperationalError] = None
        for attempt in range(1, attempts + 1):
            try:
                # A failed attempt rolls back to its savepoint only; the
                # enclosing transaction stays usable for the next attempt.
                with session.begin_nested():
                    count = session.execute(stmt).scalar_one_or_none()
            except OperationalError as e:
                last_error = e
                logger.warning(
                    f"Increment of book={book_id} failed (attempt {attempt}/{attempts}): {e.orig}"
                )
                continue

            if count is None:
                raise NotFoundError("Book", book_id)
            return count

        raise StorageUnavailableError(detail=str(last_error.orig)) from last_error

    @staticmethod
    def _require_book(session: Session, book_id: str) -> None:
        exists = session.execute(
            select(BookModel.id).where(BookModel.id == book_id)
        ).first()
        if exists is None:
            raise NotFoundError("Book", book_id)
