"""
Loan State Machine for Libris

Loans move one way: active -> returned.

Design Decisions:
1. Open = decrement + insert in one transaction; the partial unique index
   on (user_id, book_id) WHERE status='active' is the authoritative
   duplicate guard, the pre-check only orders errors.
2. Return = conditional status flip + increment in one transaction; the
   flip only matches active rows, so a second return can never add a copy.
3. The clock is injectable so "date in the past" is testable.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from libris.errors import (
    DuplicateActiveLoanError,
    InvalidDateError,
    InvalidStateError,
    NotFoundError,
)
from libris.storage.database import Database
from libris.storage.models import BookModel, LoanModel, LOAN_ACTIVE, LOAN_RETURNED
from .dates import DateLike, parse_iso_date
from .inventory import InventoryLedger


class LoanStatus(str, Enum):
    """Loan lifecycle state."""
    ACTIVE = LOAN_ACTIVE
    RETURNED = LOAN_RETURNED


@dataclass
class StoredLoan:
    """Data class for loan data transfer."""

    id: str
    book_id: str
    user_id: str
    expected_return_date: date
    status: LoanStatus
    returned_at: Optional[date] = None
    created_at: Optional[datetime] = None

    # Book display fields (joined on read)
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_image_url: Optional[str] = None

    @classmethod
    def from_model(cls, model: LoanModel, book: Optional[BookModel] = None) -> "StoredLoan":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            book_id=model.book_id,
            user_id=model.user_id,
            expected_return_date=model.expected_return_date,
            status=LoanStatus(model.status),
            returned_at=model.returned_at,
            created_at=model.created_at,
            book_title=book.title if book else None,
            book_author=book.author if book else None,
            book_image_url=book.image_url if book else None,
        )

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE

    def is_overdue(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return self.is_active and today > self.expected_return_date


class LoanService:
    """
    Opens, closes and lists loans.

    Usage:
        loans = LoanService(db, ledger)
        loan = loans.open_loan(user_id, book_id, "2026-11-01")
        loans.return_loan(loan.id, "2026-10-20")
    """

    def __init__(
        self,
        db: Database,
        ledger: Optional[InventoryLedger] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.db = db
        self.ledger = ledger or InventoryLedger(db)
        self.clock = clock

    def open_loan(
        self,
        user_id: str,
        book_id: str,
        expected_return_date: DateLike,
    ) -> StoredLoan:
        """
        Borrow a book.

        Raises:
            InvalidDateError: malformed date or date in the past
            DuplicateActiveLoanError: pair already has an active loan
            OutOfStockError: no copies left
            NotFoundError: unknown book
        """
        due = parse_iso_date(expected_return_date, "expected return date")
        today = self.clock()
        if due < today:
            raise InvalidDateError(
                "Expected return date cannot be in the past",
                detail=f"{due.isoformat()} is before {today.isoformat()}",
            )

        try:
            with self.db.transaction() as session:
                if self._find_active(session, user_id, book_id) is not None:
                    raise DuplicateActiveLoanError(user_id, book_id)

                remaining = self.ledger.decrement(session, book_id)

                loan = LoanModel(
                    id=str(uuid.uuid4()),
                    book_id=book_id,
                    user_id=user_id,
                    expected_return_date=due,
                    returned_at=None,
                    status=LOAN_ACTIVE,
                )
                session.add(loan)
                session.flush()
                book = session.get(BookModel, book_id)
                stored = StoredLoan.from_model(loan, book)
        except IntegrityError as e:
            # Lost the race against a concurrent open for the same pair;
            # the rollback also undid the decrement.
            logger.warning(f"Concurrent duplicate loan rejected: user={user_id} book={book_id}")
            raise DuplicateActiveLoanError(user_id, book_id) from e

        logger.info(f"Loan opened: {stored.id} user={user_id} book={book_id} remaining={remaining}")
        return stored

    def return_loan(self, loan_id: str, return_date: DateLike) -> StoredLoan:
        """
        Close an active loan and put the copy back.

        Raises:
            InvalidDateError: malformed return date
            NotFoundError: unknown loan
            InvalidStateError: loan already returned
        """
        returned_on = parse_iso_date(return_date, "return date")

        with self.db.transaction() as session:
            book_id = session.execute(
                update(LoanModel)
                .where(LoanModel.id == loan_id, LoanModel.status == LOAN_ACTIVE)
                .values(status=LOAN_RETURNED, returned_at=returned_on)
                .returning(LoanModel.book_id)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()

            if book_id is None:
                existing = session.get(LoanModel, loan_id)
                if existing is None:
                    raise NotFoundError("Loan", loan_id)
                logger.warning(f"Return rejected, loan {loan_id} is {existing.status}")
                raise InvalidStateError(
                    "Loan already returned",
                    detail=f"Loan '{loan_id}' is {existing.status}",
                )

            count = self.ledger.increment(session, book_id)

            loan = session.get(LoanModel, loan_id)
            stored = StoredLoan.from_model(loan, session.get(BookModel, book_id))

        logger.info(f"Loan returned: {loan_id} book={book_id} available={count}")
        return stored

    def get_loan(self, loan_id: str) -> StoredLoan:
        with self.db.get_session() as session:
            loan = session.get(LoanModel, loan_id)
            if loan is None:
                raise NotFoundError("Loan", loan_id)
            return StoredLoan.from_model(loan, loan.book)

    def list_loans(self, user_id: str, status: Optional[LoanStatus] = None) -> list[StoredLoan]:
        """
        List a user's loans, newest first, with book display fields.

        Args:
            user_id: Borrower
            status: Optional status filter
        """
        with self.db.get_session() as session:
            query = (
                select(LoanModel, BookModel)
                .join(BookModel, LoanModel.book_id == BookModel.id)
                .where(LoanModel.user_id == user_id)
            )
            if status is not None:
                query = query.where(LoanModel.status == LoanStatus(status).value)

            rows = session.execute(
                query.order_by(LoanModel.created_at.desc(), LoanModel.id.desc())
            ).all()

            return [StoredLoan.from_model(loan, book) for loan, book in rows]

    @staticmethod
    def _find_active(session: Session, user_id: str, book_id: str) -> Optional[str]:
        return session.execute(
            select(LoanModel.id).where(
                LoanModel.user_id == user_id,
                LoanModel.book_id == book_id,
                LoanModel.status == LOAN_ACTIVE,
            )
        ).scalar_one_or_none()
