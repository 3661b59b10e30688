"""
Recurrence service: turns recurring rules into transactions.

A sweep selects every active rule whose next_due_date is on
or before today and, for each one:

1. Computes the next date (a bad frequency fails here, before
   anything is written)
2. Materializes a transaction dated next_due_date through the
   TransactionService, so balances stay consistent
3. Moves next_due_date forward, deactivating the rule once it
   passes end_date
4. Repeats until the rule is in the future or inactive
5. Commits

Each rule is its own unit of work. A rule that fails is
rolled back, logged and reported; the sweep carries on with
the next one.

Date arithmetic
---------------
monthly and yearly steps keep the rule's anchor day (the day
of start_date) and clamp it to the last day of the target
month:

    2024-01-31 -> 2024-02-29 -> 2024-03-31 -> 2024-04-30
    2024-02-29 -> 2025-02-28 -> ... -> 2028-02-29 (yearly)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from finance_tracker.clock import local_today
from finance_tracker.errors import (
    FinanceError,
    InvalidArgumentError,
    NotFoundError,
    ConstraintViolationError,
    InfrastructureError,
)
from finance_tracker.models.enums import Frequency
from finance_tracker.models.recurring_rule import RecurringRule
from finance_tracker.models.transaction import Transaction
from finance_tracker.money import to_money
from finance_tracker.schemas.recurring import RecurringRuleCreate
from finance_tracker.schemas.transaction import TransactionCreate
from finance_tracker.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def _add_months(base: date, months: int, desired_day: int) -> date:
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    return date(year, month, min(desired_day, days_in_month(year, month)))


def next_due_date(
    current: date, frequency: str, anchor_day: int | None = None
) -> date:
    """
    Return the occurrence after `current`.

    anchor_day is the day of month monthly and yearly rules aim
    for; it defaults to current.day. Raises InvalidArgumentError
    for an unknown frequency.
    """
    anchor_day = anchor_day or current.day
    if frequency == Frequency.DAILY.value:
        return current + timedelta(days=1)
    if frequency == Frequency.WEEKLY.value:
        return current + timedelta(weeks=1)
    if frequency == Frequency.MONTHLY.value:
        return _add_months(current, 1, anchor_day)
    if frequency == Frequency.YEARLY.value:
        return _add_months(current, 12, anchor_day)
    raise InvalidArgumentError(f"Unknown frequency: {frequency!r}")


def _occurrence_request(rule: RecurringRule, occurrence: date) -> TransactionCreate:
    """The transaction one occurrence of a rule posts."""
    try:
        return TransactionCreate(
            account_id=rule.account_id,
            destination_account_id=rule.destination_account_id,
            category_id=rule.category_id,
            amount=rule.amount,
            description=rule.description,
            transaction_date=occurrence,
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidArgumentError(
            f"Recurring rule {rule.id} holds invalid data: {problems}"
        ) from e


def _as_finance_error(e: Exception) -> FinanceError:
    """Report store errors under the same kinds the API uses."""
    if isinstance(e, FinanceError):
        return e
    if isinstance(e, IntegrityError):
        return ConstraintViolationError(str(e.orig))
    return InfrastructureError(str(getattr(e, "orig", None) or e))


@dataclass
class SweepFailure:
    rule_id: int
    error: str
    message: str


@dataclass
class SweepResult:
    processed: int = 0
    occurrences: int = 0
    failures: list[SweepFailure] = field(default_factory=list)


class RecurrenceService:

    def __init__(self, db: Session):
        self.db = db
        self.transaction_service = TransactionService(db)

    # --- Rule management ---

    def create_rule(
        self, user_id: int, request: RecurringRuleCreate
    ) -> RecurringRule:
        """
        Create a recurring rule.

        The first occurrence is start_date. Accounts must be
        owned, not deleted and active, the same as for a
        transaction.
        """
        self.transaction_service.get_usable_account(user_id, request.account_id)
        if request.destination_account_id is not None:
            if request.destination_account_id == request.account_id:
                raise InvalidArgumentError(
                    f"Transfer destination {request.destination_account_id} "
                    f"is the same as the source account"
                )
            self.transaction_service.get_usable_account(
                user_id, request.destination_account_id
            )
        if request.category_id is not None:
            self.transaction_service.get_owned_category(
                user_id, request.category_id
            )

        rule = RecurringRule(
            user_id=user_id,
            name=request.name,
            account_id=request.account_id,
            destination_account_id=request.destination_account_id,
            category_id=request.category_id,
            amount=to_money(request.amount),
            description=request.description,
            frequency=request.frequency.value,
            start_date=request.start_date,
            end_date=request.end_date,
            next_due_date=request.start_date,
        )
        self.db.add(rule)
        self.db.flush()
        return rule

    def get_rule(self, user_id: int, rule_id: int) -> RecurringRule:
        rule = self.db.get(RecurringRule, rule_id)
        if not rule or rule.user_id != user_id:
            raise NotFoundError(f"Recurring rule {rule_id} not found")
        return rule

    def list_rules(
        self, user_id: int, active_only: bool = False
    ) -> list[RecurringRule]:
        stmt = select(RecurringRule).where(RecurringRule.user_id == user_id)
        if active_only:
            stmt = stmt.where(RecurringRule.is_active.is_(True))
        rules = self.db.execute(
            stmt.order_by(RecurringRule.next_due_date, RecurringRule.id)
        ).scalars().all()
        return list(rules)

    def deactivate_rule(self, user_id: int, rule_id: int) -> RecurringRule:
        """Stop a rule. There is no way back to active."""
        rule = self.get_rule(user_id, rule_id)
        rule.is_active = False
        self.db.flush()
        return rule

    # --- Sweep ---

    def process_due_rules(
        self, today: date | None = None, user_id: int | None = None
    ) -> SweepResult:
        """
        Materialize every due occurrence of every due rule.

        Commits after each rule. A second call on the same day
        finds nothing to do: every processed rule is now either
        inactive or due strictly after today.
        """
        today = today or local_today()
        logger.info("recurring sweep start: today=%s user=%s", today, user_id)

        stmt = select(RecurringRule.id).where(
            RecurringRule.is_active.is_(True),
            RecurringRule.next_due_date <= today,
        )
        if user_id is not None:
            stmt = stmt.where(RecurringRule.user_id == user_id)
        try:
            rule_ids = self.db.execute(
                stmt.order_by(RecurringRule.next_due_date, RecurringRule.id)
            ).scalars().all()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Cannot select due rules: {e}") from e

        result = SweepResult()
        for rule_id in rule_ids:
            try:
                posted = self._process_rule(rule_id, today)
                self.db.commit()
            except (FinanceError, SQLAlchemyError) as e:
                self.db.rollback()
                error = _as_finance_error(e)
                logger.warning(
                    "recurring rule %s failed: %s: %s",
                    rule_id, type(error).__name__, error,
                )
                result.failures.append(SweepFailure(
                    rule_id=rule_id,
                    error=type(error).__name__,
                    message=str(error),
                ))
                continue
            result.processed += 1
            result.occurrences += posted

        logger.info(
            "recurring sweep done: processed=%s occurrences=%s failed=%s",
            result.processed, result.occurrences, len(result.failures),
        )
        return result

    def _process_rule(self, rule_id: int, today: date) -> int:
        """Catch one rule up to today. Returns transactions posted."""
        rule = self.db.execute(
            select(RecurringRule)
            .where(RecurringRule.id == rule_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

        posted = 0
        # Re-checked under the lock: a concurrent sweep may have got here first
        while rule.is_active and rule.next_due_date <= today:
            occurrence = rule.next_due_date
            advanced = next_due_date(
                occurrence, rule.frequency, rule.start_date.day
            )

            if not self._already_posted(rule, occurrence):
                self.transaction_service.create_transaction(
                    rule.user_id,
                    _occurrence_request(rule, occurrence),
                    recurring_rule_id=rule.id,
                )
                posted += 1

            rule.next_due_date = advanced
            if rule.end_date is not None and advanced > rule.end_date:
                rule.is_active = False
                logger.info(
                    "recurring rule %s ended (end_date=%s)", rule.id, rule.end_date
                )
            rule.updated_at = datetime.utcnow()

        self.db.flush()
        return posted

    def _already_posted(self, rule: RecurringRule, occurrence: date) -> bool:
        existing = self.db.execute(
            select(Transaction.id).where(
                Transaction.recurring_rule_id == rule.id,
                Transaction.transaction_date == occurrence,
            ).limit(1)
        ).scalar_one_or_none()
        return existing is not None
