"""
Core Ledger Models for MoneySaver

These models define the records held in the three ledger collections
(transactions, goals, recurring rules) plus the value objects produced
by the engine and the refresh flow.

DESIGN DECISION: Stored records use camelCase keys (``dayOfMonth``,
``lastGenerated``, ``targetAmount``) so existing JSON data keeps loading.
Python code works with snake_case attributes; pydantic aliases bridge the two.

Records are immutable. "Updating" a rule or goal means producing a new
copy with ``model_copy(update=...)`` and writing it back by id.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from moneysaver.errors import InvalidTimestamp


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a ledger entry."""
    EXPENSE = "expense"
    INCOME = "income"


class GoalTransactionKind(str, Enum):
    """Goal balance adjustments."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


# Categories offered by the add-transaction form. Free text is also accepted.
DEFAULT_CATEGORIES = [
    "Groceries",
    "Rent",
    "Entertainment",
    "Salary",
    "Transport",
    "Shopping",
    "Health",
    "Other",
]


# =============================================================================
# HELPERS
# =============================================================================

def new_id() -> str:
    """Generate an opaque unique record identifier."""
    return str(uuid4())


def record_id_of(record: Any) -> Optional[str]:
    """Id of a raw stored record, None if it has none."""
    return record.get("id") if isinstance(record, dict) else None


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    Accepts datetime, date (midnight) or string. A trailing ``Z`` is
    treated as UTC.

    Raises:
        InvalidTimestamp: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimestamp(value)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise InvalidTimestamp(value)


class LedgerRecord(BaseModel):
    """Base for stored records: camelCase on disk, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict using stored key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# STORED RECORDS
# =============================================================================

class Transaction(LedgerRecord):
    """
    A single income or expense entry.

    Sign is not enforced here: the aggregator sums whatever is stored.
    Entry-time validation lives on TransactionDraft.
    """

    id: str = Field(default_factory=new_id)
    amount: Decimal
    category: str = "Other"
    type: TransactionType
    note: str = ""
    date: datetime

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class RecurringRule(LedgerRecord):
    """
    Template that materializes one transaction per calendar month.

    ``last_generated`` only moves forward. It is set to the creation time
    so the originating transaction is not duplicated.
    """

    id: str = Field(default_factory=new_id)
    amount: Decimal
    category: str = "Other"
    type: TransactionType
    note: str = ""
    day_of_month: int = Field(default=1, ge=1, le=31)
    last_generated: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RecurringRule":
        """
        Load a rule from a stored record.

        Raises:
            InvalidTimestamp: If lastGenerated is present but malformed
            pydantic.ValidationError: If any other field is invalid
        """
        data = dict(record)
        for key in ("lastGenerated", "last_generated"):
            if data.get(key) not in (None, ""):
                data[key] = parse_timestamp(data[key])
            else:
                data.pop(key, None)
        if data.get("dayOfMonth") in (None, "", 0):
            data.pop("dayOfMonth", None)
        return cls.model_validate(data)


class Goal(LedgerRecord):
    """A savings target tracked as current-vs-target amount."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode='after')
    def validate_current_within_target(self) -> 'Goal':
        """Current amount can never exceed the target."""
        if self.current_amount > self.target_amount:
            raise ValueError("Current amount cannot exceed target amount")
        return self

    @property
    def progress_percent(self) -> Decimal:
        """Progress toward the target, capped at 100."""
        progress = self.current_amount / self.target_amount * 100
        return min(progress, Decimal("100"))

    @property
    def is_complete(self) -> bool:
        return self.current_amount >= self.target_amount


# =============================================================================
# FORM INPUT
# =============================================================================

class TransactionDraft(BaseModel):
    """Fields entered on the add-transaction form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., ge=0, description="Amount, never negative")
    category: str = Field(default="Other", min_length=1, max_length=100)
    type: TransactionType = TransactionType.EXPENSE
    note: str = Field(default="", max_length=500)


class GoalDraft(BaseModel):
    """Fields entered on the new-goal form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)


# =============================================================================
# ENGINE / FLOW RESULTS
# =============================================================================

class SkippedRule(BaseModel):
    """A stored rule the engine could not evaluate."""

    rule_id: Optional[str] = None
    reason: str


class MaterializeResult(BaseModel):
    """Output of one recurring-engine pass."""

    new_transactions: list[Transaction] = Field(default_factory=list)
    updated_rules: list[RecurringRule] = Field(default_factory=list)
    changed_rule_ids: list[str] = Field(default_factory=list)
    skipped: list[SkippedRule] = Field(default_factory=list)

    @property
    def changed_rules(self) -> list[RecurringRule]:
        """Only the rules whose lastGenerated moved."""
        changed = set(self.changed_rule_ids)
        return [rule for rule in self.updated_rules if rule.id in changed]


class LedgerTotals(BaseModel):
    """Aggregate income, expense and net balance."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


class LedgerSnapshot(BaseModel):
    """
    Everything the UI needs after a refresh.

    ``errors`` lists non-fatal problems hit along the way (for example a
    failed rule write). The totals still reflect whatever was persisted.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    generated: list[Transaction] = Field(default_factory=list)
    skipped_rules: list[SkippedRule] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    refreshed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_degraded(self) -> bool:
        """True if some store writes failed during the cycle."""
        return bool(self.errors)
