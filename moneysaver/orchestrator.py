"""
Main Orchestrator for MoneySaver

This module ties together the engine and the ledger store and defines
the flows the UI calls into:
1. Refresh (recurring materialization -> persist -> aggregate)
2. Add transaction (optionally marked recurring)
3. Goals (create, deposit, withdraw)

DESIGN DECISION: The core is stateless. Every flow returns explicit
values; the UI layer owns presentation state. Store I/O is the only
place a flow awaits.

Refresh favors availability over strict consistency: if persisting the
recurring output fails part-way, the cycle still aggregates whatever was
written and reports the failure in the snapshot.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

import structlog

from moneysaver.audit import AuditLogger, create_correlation_id
from moneysaver.config import get_settings
from moneysaver.engine import (
    aggregate,
    apply_delta,
    build_goal,
    build_recurring_rule,
    build_transaction,
    materialize,
)
from moneysaver.errors import InvalidTimestamp, RejectedError
from moneysaver.models.ledger import (
    Goal,
    GoalDraft,
    GoalTransactionKind,
    LedgerSnapshot,
    MaterializeResult,
    RecurringRule,
    Transaction,
    TransactionDraft,
    parse_timestamp,
)
from moneysaver.services.storage import (
    LedgerRepository,
    StorageError,
    StorageUnavailableError,
    create_store,
)


logger = structlog.get_logger(__name__)


def current_time() -> datetime:
    """Local time with its UTC offset attached."""
    return datetime.now().astimezone()


class RefreshFlow:
    """
    Orchestrates a refresh cycle, triggered by screen focus or
    pull-to-refresh.

    Flow:
    1. Read recurring rules
    2. Materialize this month's recurring transactions
    3. Persist new transactions (prepended) and updated rules
    4. Read transactions and goals
    5. Aggregate income / expense / balance

    Calls on one instance are serialized: a second trigger waits for the
    first to finish and then sees its writes, so a rule cannot generate
    twice in one month from the same process.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
        note_suffix: Optional[str] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()
        self._note_suffix = (
            note_suffix
            if note_suffix is not None
            else get_settings().app.recurring_note_suffix
        )
        self._lock = asyncio.Lock()

    @property
    def is_refreshing(self) -> bool:
        return self._lock.locked()

    async def refresh(
        self,
        now: Union[datetime, str, None] = None,
    ) -> LedgerSnapshot:
        """
        Run a full refresh cycle.

        Returns:
            LedgerSnapshot with transactions, goals and totals.
            Failed writes are listed in ``snapshot.errors``.

        Raises:
            StorageUnavailableError: If transactions or goals can't be read
        """
        async with self._lock:
            return await self._refresh(now)

    async def _refresh(self, now: Union[datetime, str, None]) -> LedgerSnapshot:
        correlation_id = create_correlation_id()
        self._audit_logger.log_refresh_started(correlation_id)

        errors: list[str] = []
        generated: list[Transaction] = []
        result = MaterializeResult()

        # Steps 1-3: recurring materialization (best effort)
        try:
            now = current_time() if now is None else parse_timestamp(now)
        except InvalidTimestamp as e:
            errors.append(str(e))
            self._audit_logger.log_error(
                error_type="invalid_timestamp",
                error_message=str(e),
                correlation_id=correlation_id,
            )
        else:
            try:
                rules = await self._repository.get_recurring_rule_records()
                result = materialize(now, rules, note_suffix=self._note_suffix)
                await self._persist(result, generated, correlation_id)
            except StorageError as e:
                errors.append(str(e))
                self._audit_logger.log_storage_error(
                    operation="recurring_refresh",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )

        for skipped in result.skipped:
            self._audit_logger.log_recurring_rule_skipped(
                rule_id=skipped.rule_id,
                reason=skipped.reason,
                correlation_id=correlation_id,
            )

        # Step 4: read back the (possibly updated) ledger
        try:
            transactions = await self._repository.get_transactions()
            goals = await self._repository.get_goals()
        except StorageUnavailableError as e:
            self._audit_logger.log_storage_error(
                operation="read_ledger",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        # Step 5: aggregate
        totals = aggregate(transactions)

        snapshot = LedgerSnapshot(
            transactions=transactions,
            goals=goals,
            income=totals.income,
            expense=totals.expense,
            balance=totals.balance,
            generated=generated,
            skipped_rules=result.skipped,
            errors=errors,
        )

        self._audit_logger.log_refresh_completed(
            transaction_count=len(transactions),
            goal_count=len(goals),
            generated_count=len(generated),
            balance=str(totals.balance),
            error_count=len(errors),
            correlation_id=correlation_id,
        )
        return snapshot

    async def _persist(
        self,
        result: MaterializeResult,
        persisted: list[Transaction],
        correlation_id: UUID,
    ) -> None:
        """
        Write each generated transaction, then its rule's new lastGenerated.

        Stops at the first failure. Pairs already written stay written
        and are collected in ``persisted``.
        """
        rules_by_id = {rule.id: rule for rule in result.changed_rules}

        for rule_id, transaction in zip(result.changed_rule_ids, result.new_transactions):
            await self._repository.prepend_transactions([transaction])
            await self._repository.update_recurring_rule(rules_by_id[rule_id])
            persisted.append(transaction)

            self._audit_logger.log_recurring_generated(
                rule_id=rule_id,
                transaction_id=transaction.id,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

    async def reset_ledger(self) -> None:
        """Clear all collections. Waits for any running refresh first."""
        async with self._lock:
            correlation_id = create_correlation_id()
            await self._repository.clear_all()
            self._audit_logger.log_ledger_cleared(correlation_id)


class TransactionFlow:
    """
    Handles the add-transaction form.

    A transaction marked recurring also creates a rule that repeats it
    on the same day of every following month.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()

    async def add_transaction(
        self,
        draft: Union[TransactionDraft, dict[str, Any]],
        recurring: bool = False,
        now: Union[datetime, str, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, Optional[RecurringRule]]:
        """
        Create and persist a transaction (and its rule, if recurring).

        Returns:
            (transaction, rule or None)

        Raises:
            pydantic.ValidationError: If the draft is invalid
            InvalidTimestamp: If ``now`` is malformed
            StorageUnavailableError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        if not isinstance(draft, TransactionDraft):
            draft = TransactionDraft.model_validate(draft)
        now = current_time() if now is None else parse_timestamp(now)

        transaction = build_transaction(draft, now)
        rule = build_recurring_rule(transaction, now) if recurring else None

        try:
            await self._repository.add_transaction(transaction)
            self._audit_logger.log_transaction_created(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

            if rule is not None:
                await self._repository.add_recurring_rule(rule)
                self._audit_logger.log_recurring_rule_created(
                    rule_id=rule.id,
                    day_of_month=rule.day_of_month,
                    correlation_id=correlation_id,
                )
        except StorageUnavailableError as e:
            self._audit_logger.log_storage_error(
                operation="add_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        return transaction, rule


class GoalFlow:
    """
    Handles savings goals: creation and deposit/withdraw.

    A rejected amount leaves the stored goal untouched.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()

    async def get_goals(self) -> list[Goal]:
        return await self._repository.get_goals()

    async def create_goal(
        self,
        draft: Union[GoalDraft, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """
        Create a goal with nothing saved yet.

        Raises:
            pydantic.ValidationError: If the draft is invalid
            StorageUnavailableError: If the write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        if not isinstance(draft, GoalDraft):
            draft = GoalDraft.model_validate(draft)

        goal = build_goal(draft)
        await self._repository.add_goal(goal)

        self._audit_logger.log_goal_created(
            goal_id=goal.id,
            name=goal.name,
            target_amount=str(goal.target_amount),
            correlation_id=correlation_id,
        )
        return goal

    async def apply_goal_transaction(
        self,
        goal_id: str,
        kind: Union[GoalTransactionKind, str],
        amount: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Goal, bool, str]:
        """
        Deposit into or withdraw from a goal.

        Returns:
            (goal, applied, message)

            On rejection ``applied`` is False and ``goal`` is the stored,
            unchanged goal.

        Raises:
            NotFoundError: If the goal doesn't exist
            StorageUnavailableError: If the read or write fails
        """
        correlation_id = correlation_id or create_correlation_id()
        goal = await self._repository.get_goal(goal_id)

        try:
            updated = apply_delta(goal, kind, amount)
        except RejectedError as e:
            self._audit_logger.log_goal_transaction_rejected(
                goal_id=goal_id,
                reason=str(e),
                correlation_id=correlation_id,
            )
            return goal, False, str(e)

        await self._repository.update_goal(updated)

        kind = GoalTransactionKind(kind)
        self._audit_logger.log_goal_adjusted(
            goal_id=goal.id,
            kind=kind.value,
            amount=str(amount),
            previous_amount=str(goal.current_amount),
            new_amount=str(updated.current_amount),
            correlation_id=correlation_id,
        )
        return updated, True, self._describe(goal, updated, kind)

    @staticmethod
    def _describe(before: Goal, after: Goal, kind: GoalTransactionKind) -> str:
        change = abs(after.current_amount - before.current_amount)
        if kind == GoalTransactionKind.DEPOSIT:
            message = f"Deposited {change:.2f} into {after.name}"
            if after.is_complete:
                message += " - goal reached!"
            return message
        message = f"Withdrew {change:.2f} from {after.name}"
        if after.current_amount == Decimal("0"):
            message += " - goal is now empty"
        return message


def create_app_components(
    backend: Optional[str] = None,
) -> tuple[RefreshFlow, TransactionFlow, GoalFlow, LedgerRepository]:
    """
    Factory function to create all application components.

    Args:
        backend: Override the configured storage backend
                 ("memory", "json" or "google_sheets").

    Returns:
        (refresh_flow, transaction_flow, goal_flow, repository)

    Raises:
        StorageUnavailableError: If the selected backend isn't configured.
            An in-memory ledger is only used when "memory" is selected.
    """
    try:
        store = create_store(backend)
    except ValueError as e:
        # Unknown backend or invalid settings (pydantic ValidationError)
        logger.error("storage_not_configured", backend=backend, error=str(e))
        raise StorageUnavailableError(f"Storage not configured: {e}") from e

    repository = LedgerRepository(store)
    audit_logger = AuditLogger()

    refresh_flow = RefreshFlow(repository, audit_logger=audit_logger)
    transaction_flow = TransactionFlow(repository, audit_logger=audit_logger)
    goal_flow = GoalFlow(repository, audit_logger=audit_logger)

    return refresh_flow, transaction_flow, goal_flow, repository
