"""
Transaction API endpoints.

The API layer is thin: it commits or rolls back and leaves
the balance bookkeeping to the TransactionService. Domain
errors are turned into HTTP responses by the handler
registered in main.py.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finance_tracker.api.deps import get_current_user_id
from finance_tracker.errors import FinanceError
from finance_tracker.models.base import get_db
from finance_tracker.services.transaction_service import TransactionService
from finance_tracker.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    DeleteResponse,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record a transaction and update the account balance."""
    service = TransactionService(db)
    try:
        txn = service.create_transaction(user_id, request)
        db.commit()
        return txn
    except FinanceError:
        db.rollback()
        raise


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    request: TransactionUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Partially update a transaction.

    Only the fields present in the body change. Balances of the
    old and new account are reconciled in the same commit.
    """
    service = TransactionService(db)
    try:
        txn = service.update_transaction(user_id, transaction_id, request)
        db.commit()
        return txn
    except FinanceError:
        db.rollback()
        raise


@router.delete("/{transaction_id}", response_model=DeleteResponse)
def delete_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a transaction and reverse its balance effect."""
    service = TransactionService(db)
    try:
        success = service.delete_transaction(user_id, transaction_id)
        db.commit()
        return DeleteResponse(success=success)
    except FinanceError:
        db.rollback()
        raise


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get transaction details."""
    return TransactionService(db).get_transaction(user_id, transaction_id)


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    account_id: int | None = None,
    category_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List transactions, newest first."""
    return TransactionService(db).list_transactions(
        user_id,
        account_id=account_id,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
