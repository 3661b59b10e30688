"""
Comprehensive tests for the TransactionService.

The property under test throughout: after any sequence of
creates, updates and deletes, every account's cached balance
equals the sum of the effects of its transactions.
"""

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from finance_tracker.errors import InvalidArgumentError, NotFoundError
from finance_tracker.models.account import Account
from finance_tracker.models.audit_log import AuditLog
from finance_tracker.models.enums import AccountType, AuditAction, CategoryType
from finance_tracker.models.transaction import Transaction
from finance_tracker.services.account_service import AccountService
from finance_tracker.services.category_service import CategoryService
from finance_tracker.services.transaction_service import TransactionService
from finance_tracker.schemas.account import AccountCreate, AccountUpdate
from finance_tracker.schemas.category import CategoryCreate
from finance_tracker.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
)

USER_ID = 1
OTHER_USER_ID = 2


def make_account(db_session, name="Checking", user_id=USER_ID):
    """Helper: create an empty bank account."""
    account = AccountService(db_session).create_account(user_id, AccountCreate(
        name=name, account_type=AccountType.BANK,
    ))
    db_session.commit()
    return account


def post(db_session, account, amount, **kwargs):
    """Helper: create and commit a transaction."""
    txn = TransactionService(db_session).create_transaction(
        kwargs.pop("user_id", USER_ID),
        TransactionCreate(
            account_id=account.id,
            amount=Decimal(amount),
            description=kwargs.pop("description", "Test"),
            transaction_date=kwargs.pop("transaction_date", date(2024, 1, 15)),
            **kwargs,
        ),
    )
    db_session.commit()
    return txn


def balance_of(db_session, account):
    db_session.refresh(account)
    return account.balance


def ledger_sum(db_session, account):
    """Sum of every transaction effect on the account, from the rows."""
    transactions = db_session.execute(select(Transaction)).scalars().all()
    return sum(
        (t.balance_effect().get(account.id, Decimal("0")) for t in transactions),
        Decimal("0"),
    )


# --- Create Tests ---

class TestCreateTransaction:

    def test_create_adds_amount_to_balance(self, db_session):
        account = make_account(db_session)

        post(db_session, account, "100.00")

        assert balance_of(db_session, account) == Decimal("100.00")

    def test_negative_amount_reduces_balance(self, db_session):
        account = make_account(db_session)
        post(db_session, account, "100.00")

        post(db_session, account, "-30.25")

        assert balance_of(db_session, account) == Decimal("69.75")

    @pytest.mark.parametrize("amount", ["0.01", "1000000.00", "-500.75"])
    def test_amount_round_trips_exactly(self, db_session, amount):
        account = make_account(db_session)
        txn = post(db_session, account, amount)
        db_session.expire_all()

        fetched = TransactionService(db_session).get_transaction(USER_ID, txn.id)

        assert isinstance(fetched.amount, Decimal)
        assert fetched.amount == Decimal(amount)
        assert isinstance(fetched.transaction_date, date)

    def test_transaction_date_defaults_to_today(self, db_session):
        account = make_account(db_session)
        txn = TransactionService(db_session).create_transaction(
            USER_ID,
            TransactionCreate(
                account_id=account.id, amount=Decimal("5.00"),
                description="Coffee",
            ),
        )

        assert txn.transaction_date is not None

    def test_unknown_account_rejected(self, db_session):
        service = TransactionService(db_session)

        with pytest.raises(NotFoundError, match="Account 999"):
            service.create_transaction(USER_ID, TransactionCreate(
                account_id=999, amount=Decimal("1.00"), description="X",
            ))

    def test_other_users_account_rejected(self, db_session):
        account = make_account(db_session, user_id=OTHER_USER_ID)
        service = TransactionService(db_session)

        with pytest.raises(NotFoundError):
            service.create_transaction(USER_ID, TransactionCreate(
                account_id=account.id, amount=Decimal("1.00"), description="X",
            ))

    def test_inactive_account_rejected(self, db_session):
        account = make_account(db_session)
        AccountService(db_session).update_account(
            USER_ID, account.id, AccountUpdate(is_active=False),
        )
        db_session.commit()

        with pytest.raises(InvalidArgumentError, match="not active"):
            post(db_session, account, "10.00")

    def test_deleted_account_rejected(self, db_session):
        account = make_account(db_session)
        AccountService(db_session).delete_account(USER_ID, account.id)
        db_session.commit()

        with pytest.raises(NotFoundError):
            post(db_session, account, "10.00")

    def test_unknown_category_rejected(self, db_session):
        account = make_account(db_session)

        with pytest.raises(NotFoundError, match="Category 42"):
            post(db_session, account, "10.00", category_id=42)

    def test_zero_amount_rejected_by_schema(self):
        with pytest.raises(ValueError, match="non-zero"):
            TransactionCreate(
                account_id=1, amount=Decimal("0"), description="Nothing",
            )

    def test_create_writes_audit_row(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "12.34")

        rows = db_session.execute(
            select(AuditLog).where(AuditLog.record_id == txn.id)
        ).scalars().all()

        assert len(rows) == 1
        assert rows[0].action == AuditAction.INSERT
        assert rows[0].table_name == "transactions"
        assert '"12.34"' in rows[0].new_values
        assert rows[0].old_values is None


# --- Transfer Tests ---

class TestTransfers:

    def test_transfer_moves_money_between_accounts(self, db_session):
        source = make_account(db_session, "Checking")
        destination = make_account(db_session, "Savings")
        post(db_session, source, "500.00")

        post(
            db_session, source, "-200.00",
            destination_account_id=destination.id,
        )

        assert balance_of(db_session, source) == Decimal("300.00")
        assert balance_of(db_session, destination) == Decimal("200.00")

    def test_transfer_to_same_account_rejected(self, db_session):
        account = make_account(db_session)

        with pytest.raises(InvalidArgumentError, match="same as the source"):
            post(
                db_session, account, "-10.00",
                destination_account_id=account.id,
            )

    def test_deleting_transfer_restores_both_balances(self, db_session):
        source = make_account(db_session, "Checking")
        destination = make_account(db_session, "Savings")
        txn = post(
            db_session, source, "-75.00",
            destination_account_id=destination.id,
        )

        TransactionService(db_session).delete_transaction(USER_ID, txn.id)
        db_session.commit()

        assert balance_of(db_session, source) == Decimal("0.00")
        assert balance_of(db_session, destination) == Decimal("0.00")


# --- Update Tests ---

class TestUpdateTransaction:

    def test_amount_change_applies_difference(self, db_session):
        account = make_account(db_session)
        post(db_session, account, "1000.00")
        txn = post(db_session, account, "-40.00")

        TransactionService(db_session).update_transaction(
            USER_ID, txn.id, TransactionUpdate(amount=Decimal("-65.00")),
        )
        db_session.commit()

        # B - A + A2
        assert balance_of(db_session, account) == Decimal("935.00")

    def test_moving_to_another_account(self, db_session):
        first = make_account(db_session, "First")
        second = make_account(db_session, "Second")
        txn = post(db_session, first, "80.00")

        TransactionService(db_session).update_transaction(
            USER_ID, txn.id,
            TransactionUpdate(account_id=second.id, amount=Decimal("90.00")),
        )
        db_session.commit()

        assert balance_of(db_session, first) == Decimal("0.00")
        assert balance_of(db_session, second) == Decimal("90.00")

    def test_description_only_change_bumps_updated_at(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "25.00")
        txn.updated_at = datetime(2020, 1, 1)
        db_session.commit()

        updated = TransactionService(db_session).update_transaction(
            USER_ID, txn.id, TransactionUpdate(description="Renamed"),
        )
        db_session.commit()

        assert updated.description == "Renamed"
        assert updated.updated_at > datetime(2020, 1, 1)
        assert balance_of(db_session, account) == Decimal("25.00")

    def test_absent_fields_are_kept(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "25.00", notes="keep me")

        updated = TransactionService(db_session).update_transaction(
            USER_ID, txn.id, TransactionUpdate(amount=Decimal("30.00")),
        )

        assert updated.notes == "keep me"
        assert updated.description == "Test"

    def test_explicit_null_clears_optional_field(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "25.00", notes="drop me")

        updated = TransactionService(db_session).update_transaction(
            USER_ID, txn.id, TransactionUpdate(notes=None),
        )

        assert updated.notes is None

    def test_clearing_amount_rejected(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "25.00")

        with pytest.raises(InvalidArgumentError, match="amount cannot be cleared"):
            TransactionService(db_session).update_transaction(
                USER_ID, txn.id, TransactionUpdate(amount=None),
            )

    def test_bad_new_account_leaves_everything_untouched(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "60.00")

        with pytest.raises(NotFoundError):
            TransactionService(db_session).update_transaction(
                USER_ID, txn.id,
                TransactionUpdate(account_id=9999, amount=Decimal("10.00")),
            )
        db_session.rollback()

        db_session.refresh(txn)
        assert txn.amount == Decimal("60.00")
        assert txn.account_id == account.id
        assert balance_of(db_session, account) == Decimal("60.00")

    def test_adding_destination_turns_into_transfer(self, db_session):
        source = make_account(db_session, "Checking")
        destination = make_account(db_session, "Savings")
        txn = post(db_session, source, "-50.00")

        TransactionService(db_session).update_transaction(
            USER_ID, txn.id,
            TransactionUpdate(destination_account_id=destination.id),
        )
        db_session.commit()

        assert balance_of(db_session, source) == Decimal("-50.00")
        assert balance_of(db_session, destination) == Decimal("50.00")

    def test_missing_transaction_not_found(self, db_session):
        with pytest.raises(NotFoundError, match="Transaction 12345"):
            TransactionService(db_session).update_transaction(
                USER_ID, 12345, TransactionUpdate(description="x"),
            )

    def test_update_writes_audit_row_with_old_values(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "10.00")

        TransactionService(db_session).update_transaction(
            USER_ID, txn.id, TransactionUpdate(amount=Decimal("11.00")),
        )
        db_session.commit()

        row = db_session.execute(
            select(AuditLog).where(
                AuditLog.record_id == txn.id,
                AuditLog.action == AuditAction.UPDATE,
            )
        ).scalar_one()
        assert '"10.00"' in row.old_values
        assert '"11.00"' in row.new_values


# --- Delete Tests ---

class TestDeleteTransaction:

    def test_delete_reverses_amount(self, db_session):
        account = make_account(db_session)
        post(db_session, account, "300.00")
        txn = post(db_session, account, "-120.00")

        result = TransactionService(db_session).delete_transaction(
            USER_ID, txn.id
        )
        db_session.commit()

        assert result is True
        assert balance_of(db_session, account) == Decimal("300.00")
        with pytest.raises(NotFoundError):
            TransactionService(db_session).get_transaction(USER_ID, txn.id)

    def test_delete_missing_transaction_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            TransactionService(db_session).delete_transaction(USER_ID, 777)

    def test_other_user_cannot_delete(self, db_session):
        account = make_account(db_session)
        txn = post(db_session, account, "5.00")

        with pytest.raises(NotFoundError):
            TransactionService(db_session).delete_transaction(
                OTHER_USER_ID, txn.id
            )


# --- Invariant and Listing ---

class TestBalanceInvariant:

    def test_balance_matches_ledger_after_mixed_operations(self, db_session):
        checking = make_account(db_session, "Checking")
        savings = make_account(db_session, "Savings")
        service = TransactionService(db_session)

        salary = post(db_session, checking, "2500.00")
        rent = post(db_session, checking, "-1200.00")
        post(db_session, checking, "-300.00", destination_account_id=savings.id)
        groceries = post(db_session, checking, "-87.45")

        service.update_transaction(
            USER_ID, rent.id, TransactionUpdate(amount=Decimal("-1250.00")),
        )
        service.update_transaction(
            USER_ID, groceries.id, TransactionUpdate(account_id=savings.id),
        )
        service.delete_transaction(USER_ID, salary.id)
        db_session.commit()

        for account in (checking, savings):
            assert balance_of(db_session, account) == ledger_sum(db_session, account)
        assert balance_of(db_session, checking) == Decimal("-1550.00")
        assert balance_of(db_session, savings) == Decimal("212.55")


class TestListTransactions:

    def test_filters_and_orders_newest_first(self, db_session):
        checking = make_account(db_session, "Checking")
        savings = make_account(db_session, "Savings")
        food = CategoryService(db_session).create_category(
            USER_ID,
            CategoryCreate(name="Food", category_type=CategoryType.EXPENSE),
        )
        db_session.commit()

        post(db_session, checking, "-10.00", transaction_date=date(2024, 1, 1))
        post(
            db_session, checking, "-20.00", category_id=food.id,
            transaction_date=date(2024, 2, 1),
        )
        post(
            db_session, checking, "-30.00",
            destination_account_id=savings.id,
            transaction_date=date(2024, 3, 1),
        )
        service = TransactionService(db_session)

        everything = service.list_transactions(USER_ID)
        assert [t.transaction_date.month for t in everything] == [3, 2, 1]

        into_savings = service.list_transactions(USER_ID, account_id=savings.id)
        assert [t.amount for t in into_savings] == [Decimal("-30.00")]

        by_category = service.list_transactions(USER_ID, category_id=food.id)
        assert len(by_category) == 1

        window = service.list_transactions(
            USER_ID, start_date=date(2024, 1, 15), end_date=date(2024, 2, 15),
        )
        assert [t.amount for t in window] == [Decimal("-20.00")]

        assert len(service.list_transactions(USER_ID, limit=2, offset=2)) == 1
        assert service.list_transactions(OTHER_USER_ID) == []


# --- Concurrent Writers ---

class TestConcurrentWriters:
    """
    A second session posts to the same account while the first is
    part-way through its own change. Neither change may be lost.
    """

    def run_interleaved(self, db_session, session_factory, monkeypatch,
                        account, operation):
        errors = []

        def post_from_other_session():
            other = session_factory()
            try:
                TransactionService(other).create_transaction(
                    USER_ID,
                    TransactionCreate(
                        account_id=account.id, amount=Decimal("-5.00"),
                        description="Concurrent", transaction_date=date(2024, 1, 20),
                    ),
                )
                other.commit()
            except Exception as e:
                other.rollback()
                errors.append(e)
            finally:
                other.close()

        original_audit = TransactionService._audit
        started = []

        def audit_then_let_other_session_in(service, *args):
            if service.db is db_session and not started:
                worker = threading.Thread(target=post_from_other_session)
                started.append(worker)
                worker.start()
                # Give the other session the chance to commit first
                worker.join(timeout=0.5)
            return original_audit(service, *args)

        monkeypatch.setattr(TransactionService, "_audit", audit_then_let_other_session_in)

        operation(TransactionService(db_session))
        db_session.commit()
        started[0].join(timeout=10)

        assert errors == []
        db_session.expire_all()

    def test_update_keeps_concurrent_posting(
        self, db_session, session_factory, monkeypatch
    ):
        account = make_account(db_session)
        txn = post(db_session, account, "-10.00")

        self.run_interleaved(
            db_session, session_factory, monkeypatch, account,
            lambda service: service.update_transaction(
                USER_ID, txn.id, TransactionUpdate(amount=Decimal("-20.00")),
            ),
        )

        assert balance_of(db_session, account) == Decimal("-25.00")
        assert balance_of(db_session, account) == ledger_sum(db_session, account)

    def test_delete_keeps_concurrent_posting(
        self, db_session, session_factory, monkeypatch
    ):
        account = make_account(db_session)
        txn = post(db_session, account, "-10.00")

        self.run_interleaved(
            db_session, session_factory, monkeypatch, account,
            lambda service: service.delete_transaction(USER_ID, txn.id),
        )

        assert balance_of(db_session, account) == Decimal("-5.00")
        assert balance_of(db_session, account) == ledger_sum(db_session, account)

    def test_loaded_account_sees_new_balance(self, db_session):
        account = make_account(db_session)
        assert account.balance == Decimal("0.00")

        TransactionService(db_session).create_transaction(
            USER_ID,
            TransactionCreate(
                account_id=account.id, amount=Decimal("42.00"),
                description="Paycheck", transaction_date=date(2024, 1, 1),
            ),
        )

        assert account.balance == Decimal("42.00")

    def test_missing_account_in_delta_rejected(self, db_session):
        with pytest.raises(NotFoundError, match="Account 9999"):
            TransactionService(db_session)._apply_deltas({9999: Decimal("1.00")})
