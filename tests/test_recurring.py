"""
Tests for the recurring engine

Test strategy:
1. Generation condition per rule (month, dayOfMonth, timezone)
2. At most one transaction per rule per month, even when re-run
3. Malformed rules are skipped without stopping the batch
"""

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from moneysaver.engine import (
    build_recurring_rule,
    build_transaction,
    materialize,
    needs_generation,
)
from moneysaver.errors import InvalidTimestamp
from moneysaver.models.ledger import (
    RecurringRule,
    TransactionDraft,
    TransactionType,
)


def make_rule(**kwargs) -> RecurringRule:
    data = {
        "id": "r1",
        "amount": Decimal("50"),
        "category": "Rent",
        "type": TransactionType.EXPENSE,
        "note": "Flat",
        "day_of_month": 1,
    }
    data.update(kwargs)
    return RecurringRule(**data)


def counter_ids():
    counter = itertools.count(1)
    return lambda: f"tx{next(counter)}"


class TestNeedsGeneration:
    """Tests for the per-rule generation condition."""

    def test_never_generated(self):
        """Test that a rule with no lastGenerated always triggers."""
        rule = make_rule(day_of_month=28, last_generated=None)
        assert needs_generation(rule, datetime(2024, 2, 1))

    def test_same_month(self):
        rule = make_rule(last_generated=datetime(2024, 2, 1))
        assert not needs_generation(rule, datetime(2024, 2, 28))

    def test_earlier_month_day_reached(self):
        rule = make_rule(day_of_month=10, last_generated=datetime(2024, 1, 10))
        assert needs_generation(rule, datetime(2024, 2, 10))

    def test_earlier_month_day_not_reached(self):
        """Test that the rule waits for its day of month."""
        rule = make_rule(day_of_month=10, last_generated=datetime(2024, 1, 10))
        assert not needs_generation(rule, datetime(2024, 2, 9))

    def test_same_month_number_different_year(self):
        rule = make_rule(last_generated=datetime(2023, 2, 1))
        assert needs_generation(rule, datetime(2024, 2, 1))

    def test_future_last_generated(self):
        """Test that a lastGenerated after now never triggers."""
        rule = make_rule(last_generated=datetime(2024, 3, 1))
        assert not needs_generation(rule, datetime(2024, 2, 15))

    def test_day_31_in_short_month(self):
        """Test that day 31 never triggers in a 29-day February."""
        rule = make_rule(day_of_month=31, last_generated=datetime(2024, 1, 31))
        assert not any(
            needs_generation(rule, datetime(2024, 2, day)) for day in range(1, 30)
        )
        assert needs_generation(rule, datetime(2024, 3, 31))

    def test_months_compared_in_callers_timezone(self):
        """Test that lastGenerated is read in now's timezone."""
        plus_two = timezone(timedelta(hours=2))
        # 2024-01-31 23:30 UTC is already February at +02:00
        rule = make_rule(
            last_generated=datetime(2024, 1, 31, 23, 30, tzinfo=timezone.utc)
        )
        assert not needs_generation(rule, datetime(2024, 2, 10, 12, tzinfo=plus_two))
        assert needs_generation(rule, datetime(2024, 3, 1, 12, tzinfo=plus_two))


class TestMaterialize:
    """Tests for a full recurring pass."""

    def test_generates_for_due_rule(self):
        """Test the basic monthly scenario."""
        rule = make_rule(last_generated=datetime(2024, 1, 1))
        now = datetime(2024, 2, 15)

        result = materialize(now, [rule], id_factory=counter_ids())

        assert len(result.new_transactions) == 1
        tx = result.new_transactions[0]
        assert tx.id == "tx1"
        assert tx.amount == Decimal("50")
        assert tx.category == "Rent"
        assert tx.type == TransactionType.EXPENSE
        assert tx.note == "Flat (Recurring)"
        assert tx.date == now
        assert result.changed_rule_ids == ["r1"]
        assert result.updated_rules[0].last_generated == now

    def test_never_generated_rule(self):
        """Test that a fresh rule generates exactly once and records now."""
        now = datetime(2024, 2, 3, 18, 0)
        result = materialize(now, [make_rule(day_of_month=20, last_generated=None)])

        assert len(result.new_transactions) == 1
        assert result.updated_rules[0].last_generated == now

    def test_day_not_reached_scenario(self):
        rule = make_rule(day_of_month=20, last_generated=datetime(2024, 1, 20))
        result = materialize(datetime(2024, 2, 10), [rule])
        assert result.new_transactions == []
        assert result.updated_rules[0].last_generated == datetime(2024, 1, 20)

    def test_rule_not_due_passes_through(self):
        rule = make_rule(day_of_month=25, last_generated=datetime(2024, 1, 25))
        result = materialize(datetime(2024, 2, 15), [rule])

        assert result.new_transactions == []
        assert result.changed_rule_ids == []
        assert result.updated_rules == [rule]

    def test_rules_keep_input_order(self):
        rules = [
            make_rule(id="a", last_generated=datetime(2024, 2, 1)),
            make_rule(id="b", last_generated=datetime(2024, 1, 1)),
            make_rule(id="c", last_generated=None),
        ]
        result = materialize(datetime(2024, 2, 15), rules)

        assert [r.id for r in result.updated_rules] == ["a", "b", "c"]
        assert result.changed_rule_ids == ["b", "c"]
        assert len(result.new_transactions) == 2

    def test_second_pass_is_idempotent(self):
        """Test that re-running in the same month generates nothing."""
        now = datetime(2024, 2, 15)
        rules = [make_rule(id="a"), make_rule(id="b", last_generated=datetime(2024, 1, 1))]

        first = materialize(now, rules)
        second = materialize(now + timedelta(days=3), first.updated_rules)

        assert len(first.new_transactions) == 2
        assert second.new_transactions == []
        assert second.updated_rules == first.updated_rules

    def test_missed_months_generate_once(self):
        """Test that a long gap yields a single transaction, not a backfill."""
        rule = make_rule(last_generated=datetime(2023, 6, 1))
        result = materialize(datetime(2024, 2, 15), [rule])
        assert len(result.new_transactions) == 1

    def test_last_generated_never_moves_backwards(self):
        rules = [
            make_rule(id="a", last_generated=datetime(2024, 5, 1)),
            make_rule(id="b", last_generated=datetime(2024, 1, 1)),
        ]
        now = datetime(2024, 2, 15)
        result = materialize(now, rules)

        for before, after in zip(rules, result.updated_rules):
            assert after.last_generated >= before.last_generated

    def test_accepts_stored_records(self, rent_rule_record, salary_rule_record):
        """Test that raw camelCase records are accepted."""
        result = materialize(
            "2024-02-15T09:30:00",
            [rent_rule_record, salary_rule_record],
        )
        assert result.changed_rule_ids == ["rec_rent"]
        assert result.new_transactions[0].amount == Decimal("1200")

    def test_custom_note_suffix(self):
        rule = make_rule(note="Gym")
        result = materialize(datetime(2024, 2, 15), [rule], note_suffix=" [auto]")
        assert result.new_transactions[0].note == "Gym [auto]"

    def test_malformed_rules_are_skipped(self, rent_rule_record):
        """Test that bad rules are reported and the rest still run."""
        rules = [
            {"id": "bad_ts", "amount": 10, "type": "expense", "lastGenerated": "soon"},
            {"id": "bad_amount", "amount": "lots", "type": "expense"},
            "not a record",
            rent_rule_record,
        ]
        result = materialize(datetime(2024, 2, 15), rules)

        assert [s.rule_id for s in result.skipped] == ["bad_ts", "bad_amount", None]
        assert "soon" in result.skipped[0].reason
        assert result.skipped[1].reason.startswith("Invalid rule")
        assert result.changed_rule_ids == ["rec_rent"]
        assert len(result.new_transactions) == 1

    def test_malformed_now_raises(self):
        with pytest.raises(InvalidTimestamp):
            materialize("tomorrow-ish", [make_rule()])

    def test_empty_rules(self):
        result = materialize(datetime(2024, 2, 15), [])
        assert result.new_transactions == []
        assert result.skipped == []


class TestRuleCreation:
    """Tests for rules created from the add-transaction form."""

    def test_new_rule_does_not_duplicate_current_month(self):
        """Test that the originating transaction counts as this month's."""
        now = datetime(2024, 2, 15, 9, 30)
        tx = build_transaction(TransactionDraft(amount=30, category="Gym"), now)
        rule = build_recurring_rule(tx, now)

        assert rule.day_of_month == 15
        assert rule.last_generated == now
        assert rule.amount == tx.amount
        assert materialize(now, [rule]).new_transactions == []

    def test_new_rule_triggers_next_month(self):
        now = datetime(2024, 2, 15)
        tx = build_transaction(TransactionDraft(amount=30), now)
        rule = build_recurring_rule(tx, now)

        assert materialize(datetime(2024, 3, 14), [rule]).new_transactions == []
        assert len(materialize(datetime(2024, 3, 15), [rule]).new_transactions) == 1
