"""
Account service: manages accounts and their lifecycle.

Accounts never have their balance set directly. An opening
balance is posted as an ordinary transaction through the
TransactionService, so the balance invariant holds from the
very first write.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_tracker.clock import local_today
from finance_tracker.errors import NotFoundError, InvalidArgumentError
from finance_tracker.models.account import Account
from finance_tracker.models.recurring_rule import RecurringRule
from finance_tracker.schemas.account import AccountCreate, AccountUpdate
from finance_tracker.schemas.transaction import TransactionCreate
from finance_tracker.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening balance"


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.transaction_service = TransactionService(db)

    def create_account(self, user_id: int, request: AccountCreate) -> Account:
        """
        Open a new account.

        A non-zero initial_balance becomes an "Opening balance"
        transaction dated today.
        """
        account = Account(
            user_id=user_id,
            name=request.name,
            account_type=request.account_type,
            currency=request.currency.upper(),
            description=request.description,
        )
        self.db.add(account)
        self.db.flush()

        if request.initial_balance != 0:
            self.transaction_service.create_transaction(
                user_id,
                TransactionCreate(
                    account_id=account.id,
                    amount=request.initial_balance,
                    description=OPENING_BALANCE_DESCRIPTION,
                    transaction_date=local_today(),
                ),
            )

        logger.info("account created id=%s user=%s", account.id, user_id)
        return account

    def get_account(self, user_id: int, account_id: int) -> Account:
        """Get a non-deleted account owned by the user."""
        account = self.db.get(Account, account_id)
        if (
            not account
            or account.user_id != user_id
            or account.deleted_at is not None
        ):
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def list_accounts(
        self, user_id: int, include_inactive: bool = True
    ) -> list[Account]:
        stmt = select(Account).where(
            Account.user_id == user_id,
            Account.deleted_at.is_(None),
        )
        if not include_inactive:
            stmt = stmt.where(Account.is_active.is_(True))
        accounts = self.db.execute(stmt.order_by(Account.id)).scalars().all()
        return list(accounts)

    def update_account(
        self, user_id: int, account_id: int, request: AccountUpdate
    ) -> Account:
        """
        Change descriptive fields. Balance is not among them.

        Deactivating is refused while an active recurring rule
        uses the account, for the same reason as delete.
        """
        account = self.get_account(user_id, account_id)
        changes = request.provided()
        for name in ("name", "account_type", "currency", "is_active"):
            if name in changes and changes[name] is None:
                raise InvalidArgumentError(
                    f"{name} cannot be cleared on account {account_id}"
                )

        if changes.get("is_active") is False and account.is_active:
            self._check_no_active_rules(account_id, "deactivated")

        for name, value in changes.items():
            if name == "currency":
                value = value.upper()
            setattr(account, name, value)
        self.db.flush()
        return account

    def delete_account(self, user_id: int, account_id: int) -> Account:
        """
        Soft-delete an account.

        Refused while an active recurring rule still posts to or
        from it: the next sweep would fail on every run.
        """
        account = self.get_account(user_id, account_id)
        self._check_no_active_rules(account_id, "deleted")

        account.is_active = False
        account.deleted_at = datetime.utcnow()
        self.db.flush()
        logger.info("account deleted id=%s user=%s", account_id, user_id)
        return account

    def _check_no_active_rules(self, account_id: int, action: str) -> None:
        active_rule = self.db.execute(
            select(RecurringRule.id).where(
                RecurringRule.is_active.is_(True),
                (RecurringRule.account_id == account_id)
                | (RecurringRule.destination_account_id == account_id),
            ).limit(1)
        ).scalar_one_or_none()
        if active_rule is not None:
            raise InvalidArgumentError(
                f"Account {account_id} cannot be {action}: it is used by "
                f"active recurring rule {active_rule}"
            )
