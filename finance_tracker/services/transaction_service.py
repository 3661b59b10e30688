"""
Transaction service: the balance maintainer.

Every account carries a cached balance. This service is the
only code that writes it, and it enforces one rule:

    account.balance == sum of the balance effects of every
                       transaction touching the account

Instead of re-summing history on each write, each operation
applies the minimal delta:

- create: add the new transaction's effect
- update: add (new effect - old effect), account by account
- delete: subtract the old effect

The transaction row, the balance adjustments and the audit
record are written in the caller's unit of work. Nothing is
committed here; the caller commits or rolls back the whole
thing.
"""

import json
import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from finance_tracker.clock import local_today
from finance_tracker.errors import (
    NotFoundError,
    InvalidArgumentError,
    ConstraintViolationError,
    InfrastructureError,
)
from finance_tracker.models.account import Account
from finance_tracker.models.audit_log import AuditLog
from finance_tracker.models.category import Category
from finance_tracker.models.enums import AuditAction
from finance_tracker.models.transaction import Transaction
from finance_tracker.money import to_money
from finance_tracker.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)

# Fields a partial update may change but never clear
NON_NULLABLE_FIELDS = ("account_id", "amount", "description", "transaction_date")


def _snapshot(txn: Transaction) -> dict:
    return {
        "account_id": txn.account_id,
        "destination_account_id": txn.destination_account_id,
        "category_id": txn.category_id,
        "recurring_rule_id": txn.recurring_rule_id,
        "amount": str(txn.amount),
        "description": txn.description,
        "notes": txn.notes,
        "transaction_date": txn.transaction_date.isoformat(),
    }


def _difference(
    old: dict[int, Decimal], new: dict[int, Decimal]
) -> dict[int, Decimal]:
    """Per-account delta that turns the old effect into the new one."""
    delta: dict[int, Decimal] = defaultdict(Decimal)
    for account_id, amount in new.items():
        delta[account_id] += amount
    for account_id, amount in old.items():
        delta[account_id] -= amount
    return dict(delta)


class TransactionService:

    def __init__(self, db: Session):
        self.db = db

    # --- Validation ---

    def get_usable_account(self, user_id: int, account_id: int) -> Account:
        """Return an account the user may post to."""
        account = self.db.get(Account, account_id)
        if (
            not account
            or account.user_id != user_id
            or account.deleted_at is not None
        ):
            raise NotFoundError(f"Account {account_id} not found")
        if not account.is_active:
            raise InvalidArgumentError(f"Account {account_id} is not active")
        return account

    def get_owned_category(self, user_id: int, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if not category or category.user_id != user_id:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def _check_destination(
        self, user_id: int, account_id: int, destination_account_id: int | None
    ) -> None:
        if destination_account_id is None:
            return
        if destination_account_id == account_id:
            raise InvalidArgumentError(
                f"Transfer destination {destination_account_id} "
                f"is the same as the source account"
            )
        self.get_usable_account(user_id, destination_account_id)

    # --- Balance maintenance ---

    def _apply_deltas(self, deltas: dict[int, Decimal]) -> None:
        """
        Add each delta to its account's balance, skipping zeros.

        The addition runs inside the UPDATE statement, so it
        applies to the stored balance rather than to a value read
        earlier in the session: a change another session commits
        in between is kept. Accounts are updated in ascending id
        order so two writers touching the same pair of accounts
        take their row locks in the same order.
        """
        now = datetime.utcnow()
        touched = set()
        for account_id in sorted(deltas):
            delta = to_money(deltas[account_id])
            if delta == 0:
                continue
            result = self.db.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(balance=Account.balance + delta, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # Never treat a missing account as a zero-balance no-op
                raise NotFoundError(f"Account {account_id} not found")
            touched.add(account_id)
            logger.debug("balance account=%s delta=%s", account_id, delta)

        # Loaded copies hold the pre-update balance
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, Account) and obj.id in touched:
                self.db.expire(obj, ["balance", "updated_at"])

    def _audit(
        self,
        txn: Transaction,
        action: AuditAction,
        old_values: dict | None,
        new_values: dict | None,
    ) -> None:
        self.db.add(AuditLog(
            user_id=txn.user_id,
            table_name=Transaction.__tablename__,
            record_id=txn.id,
            action=action,
            old_values=json.dumps(old_values) if old_values else None,
            new_values=json.dumps(new_values) if new_values else None,
        ))

    def _flush(self) -> None:
        """Flush, translating store errors into domain errors."""
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConstraintViolationError(str(e.orig)) from e
        except OperationalError as e:
            raise InfrastructureError(str(e.orig)) from e

    # --- Operations ---

    def create_transaction(
        self,
        user_id: int,
        request: TransactionCreate,
        recurring_rule_id: int | None = None,
    ) -> Transaction:
        """
        Record a transaction and apply its effect to the balance(s).

        All references are validated before anything is written.
        """
        self.get_usable_account(user_id, request.account_id)
        self._check_destination(
            user_id, request.account_id, request.destination_account_id
        )
        if request.category_id is not None:
            self.get_owned_category(user_id, request.category_id)

        txn = Transaction(
            user_id=user_id,
            account_id=request.account_id,
            destination_account_id=request.destination_account_id,
            category_id=request.category_id,
            recurring_rule_id=recurring_rule_id,
            amount=to_money(request.amount),
            description=request.description,
            notes=request.notes,
            transaction_date=request.transaction_date or local_today(),
        )
        self.db.add(txn)
        self._flush()

        self._apply_deltas(txn.balance_effect())
        self._audit(txn, AuditAction.INSERT, None, _snapshot(txn))
        self._flush()
        logger.info(
            "transaction created id=%s user=%s account=%s amount=%s",
            txn.id, user_id, txn.account_id, txn.amount,
        )
        return txn

    def update_transaction(
        self,
        user_id: int,
        transaction_id: int,
        request: TransactionUpdate,
    ) -> Transaction:
        """
        Apply a partial update and reconcile balances.

        If the account changed, the old account loses the old
        amount and the new account gains the new amount. If only
        the amount changed, the account gets the difference. A
        zero difference writes no balance, but the transaction's
        updated_at still moves.
        """
        txn = self.get_transaction(user_id, transaction_id)
        changes = request.provided()

        for name in NON_NULLABLE_FIELDS:
            if name in changes and changes[name] is None:
                raise InvalidArgumentError(
                    f"{name} cannot be cleared on transaction {transaction_id}"
                )

        # Validate every new reference before touching anything
        new_account_id = changes.get("account_id", txn.account_id)
        new_destination_id = changes.get(
            "destination_account_id", txn.destination_account_id
        )
        if new_account_id != txn.account_id:
            self.get_usable_account(user_id, new_account_id)
        if (
            new_destination_id is not None
            and new_destination_id != txn.destination_account_id
        ):
            self.get_usable_account(user_id, new_destination_id)
        if new_destination_id is not None and new_destination_id == new_account_id:
            raise InvalidArgumentError(
                f"Transfer destination {new_destination_id} "
                f"is the same as the source account"
            )
        if changes.get("category_id") is not None:
            self.get_owned_category(user_id, changes["category_id"])

        old_effect = txn.balance_effect()
        old_values = _snapshot(txn)

        for name, value in changes.items():
            if name == "amount":
                value = to_money(value)
            setattr(txn, name, value)
        txn.updated_at = datetime.utcnow()

        self._apply_deltas(_difference(old_effect, txn.balance_effect()))
        self._audit(txn, AuditAction.UPDATE, old_values, _snapshot(txn))
        self._flush()
        logger.info(
            "transaction updated id=%s user=%s fields=%s",
            txn.id, user_id, sorted(changes),
        )
        return txn

    def delete_transaction(self, user_id: int, transaction_id: int) -> bool:
        """Reverse a transaction's effect and delete the row."""
        txn = self.get_transaction(user_id, transaction_id)

        reversal = {k: -v for k, v in txn.balance_effect().items()}
        self._apply_deltas(reversal)
        self._audit(txn, AuditAction.DELETE, _snapshot(txn), None)
        self.db.delete(txn)
        self._flush()
        logger.info(
            "transaction deleted id=%s user=%s", transaction_id, user_id
        )
        return True

    def get_transaction(self, user_id: int, transaction_id: int) -> Transaction:
        """Get a transaction by ID."""
        txn = self.db.get(Transaction, transaction_id)
        if not txn or txn.user_id != user_id:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def list_transactions(
        self,
        user_id: int,
        account_id: int | None = None,
        category_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        """Return the user's transactions, newest first."""
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if account_id is not None:
            stmt = stmt.where(or_(
                Transaction.account_id == account_id,
                Transaction.destination_account_id == account_id,
            ))
        if category_id is not None:
            stmt = stmt.where(Transaction.category_id == category_id)
        if start_date is not None:
            stmt = stmt.where(Transaction.transaction_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Transaction.transaction_date <= end_date)

        transactions = self.db.execute(
            stmt.order_by(
                Transaction.transaction_date.desc(), Transaction.id.desc()
            ).limit(limit).offset(offset)
        ).scalars().all()
        return list(transactions)
