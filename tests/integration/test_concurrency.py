"""
Consistency under concurrent callers.

Each worker thread runs against the same file-backed SQLite database,
so every guarantee here comes from the storage layer, not from Python
locks.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from libris.errors import (
    DuplicateActiveLoanError,
    DuplicateReviewError,
    InvalidStateError,
    LibrisError,
    OutOfStockError,
)
from tests.conftest import TODAY


DUE = TODAY.isoformat()


def run_concurrently(count: int, fn):
    """Run fn(i) for i in range(count) on separate threads; collect results or errors."""
    barrier = threading.Barrier(count)

    def worker(i):
        barrier.wait()
        try:
            return fn(i)
        except LibrisError as e:
            return e

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


class TestConcurrentDecrements:

    @pytest.mark.parametrize("workers,stock", [(8, 3), (6, 1), (4, 6)])
    def test_exactly_min_n_k_succeed(self, ledger, make_book, workers, stock):
        book = make_book(quantity=stock)

        results = run_concurrently(workers, lambda i: ledger.decrement_book(book.id))

        successes = [r for r in results if isinstance(r, int)]
        failures = [r for r in results if isinstance(r, OutOfStockError)]
        assert len(successes) == min(workers, stock)
        assert len(failures) == workers - min(workers, stock)
        assert sorted(successes, reverse=True) == list(range(stock - 1, stock - 1 - len(successes), -1))
        assert ledger.get_available(book.id) == stock - len(successes)

    def test_concurrent_borrowers_of_last_copies(self, loan_service, ledger, make_book):
        book = make_book(quantity=2)

        results = run_concurrently(
            6, lambda i: loan_service.open_loan(f"user-{i}", book.id, DUE)
        )

        opened = [r for r in results if not isinstance(r, LibrisError)]
        errors = [r for r in results if isinstance(r, LibrisError)]
        assert len(opened) == 2
        assert all(isinstance(e, OutOfStockError) for e in errors)
        assert ledger.get_available(book.id) == 0


class TestConcurrentDuplicates:

    def test_one_active_loan_per_pair(self, loan_service, ledger, make_book):
        book = make_book(quantity=5)

        results = run_concurrently(
            5, lambda i: loan_service.open_loan("same-user", book.id, DUE)
        )

        opened = [r for r in results if not isinstance(r, LibrisError)]
        rejected = [r for r in results if isinstance(r, DuplicateActiveLoanError)]
        assert len(opened) == 1
        assert len(rejected) == 4
        # Rejected opens gave their copy back with the rollback
        assert ledger.get_available(book.id) == 4
        assert len(loan_service.list_loans("same-user")) == 1

    def test_one_review_per_pair(self, review_service, make_book):
        book = make_book()

        results = run_concurrently(
            5, lambda i: review_service.create_review("same-user", book.id, (i % 5) + 1)
        )

        created = [r for r in results if not isinstance(r, LibrisError)]
        rejected = [r for r in results if isinstance(r, DuplicateReviewError)]
        assert len(created) == 1
        assert len(rejected) == 4
        assert len(review_service.list_reviews(book_id=book.id)) == 1


class TestConcurrentReturns:

    def test_return_applies_once(self, loan_service, ledger, make_book):
        book = make_book(quantity=1)
        loan = loan_service.open_loan("user-1", book.id, DUE)

        results = run_concurrently(5, lambda i: loan_service.return_loan(loan.id, DUE))

        returned = [r for r in results if not isinstance(r, LibrisError)]
        rejected = [r for r in results if isinstance(r, InvalidStateError)]
        assert len(returned) == 1
        assert len(rejected) == 4
        assert ledger.get_available(book.id) == 1
