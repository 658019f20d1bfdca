"""
Loan API Routes

Borrow and return books. The caller is always the borrower; the user id
comes from the bearer token, never from the request body.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from libris.api.dependencies import get_current_user_id, get_loan_service
from libris.api.schemas import LoanCreate, LoanResponse, LoanReturn, ErrorResponse
from libris.circulation.loans import LoanStatus
from libris.errors import ForbiddenError


router = APIRouter(prefix="/loans", tags=["loans"])


@router.get("", response_model=list[LoanResponse])
def list_my_loans(
    status_filter: Optional[LoanStatus] = Query(None, alias="status"),
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_loan_service),
):
    """The caller's loans, newest first."""
    return service.list_loans(user_id, status=status_filter)


@router.post(
    "",
    response_model=LoanResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid expected return date"},
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "Out of stock or already borrowed"},
    },
)
def borrow_book(
    loan: LoanCreate,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_loan_service),
):
    """
    Borrow one copy of a book.

    Fails with OUT_OF_STOCK when no copies are left and with
    DUPLICATE_ACTIVE_LOAN when the caller already has this book.
    """
    return service.open_loan(user_id, loan.book_id, loan.expected_return_date)


@router.put(
    "/{loan_id}/return",
    response_model=LoanResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Loan belongs to another user"},
        404: {"model": ErrorResponse, "description": "Loan not found"},
        409: {"model": ErrorResponse, "description": "Loan already returned"},
    },
)
def return_book(
    loan_id: str,
    body: Optional[LoanReturn] = None,
    user_id: str = Depends(get_current_user_id),
    service=Depends(get_loan_service),
):
    """Return a borrowed book. The return date defaults to today."""
    loan = service.get_loan(loan_id)
    if loan.user_id != user_id:
        logger.warning(f"User {user_id} tried to return loan {loan_id} of {loan.user_id}")
        raise ForbiddenError("Not authorized to return this loan")

    returned_at = body.returned_at if body and body.returned_at is not None else service.clock()
    return service.return_loan(loan_id, returned_at)
