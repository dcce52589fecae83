"""Pytest configuration and fixtures."""

from datetime import datetime

import pytest

from moneysaver.config import get_settings
from moneysaver.services.storage import (
    Collection,
    InMemoryLedgerStore,
    LedgerRepository,
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from any real .env and data directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MONEYSAVER_STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("MONEYSAVER_STORAGE_DATA_DIR", raising=False)
    monkeypatch.delenv("RECURRING_NOTE_SUFFIX", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 2, 15, 9, 30)


@pytest.fixture
def rent_rule_record() -> dict:
    """Monthly rent, last generated in January."""
    return {
        "id": "rec_rent",
        "amount": 1200,
        "category": "Rent",
        "type": "expense",
        "note": "Flat",
        "dayOfMonth": 1,
        "lastGenerated": "2024-01-01T08:00:00.000Z",
    }


@pytest.fixture
def salary_rule_record() -> dict:
    """Salary on the 25th, last generated in January."""
    return {
        "id": "rec_salary",
        "amount": "3000",
        "category": "Salary",
        "type": "income",
        "note": "Acme",
        "dayOfMonth": 25,
        "lastGenerated": "2024-01-25T08:00:00.000Z",
    }


@pytest.fixture
def stored_transactions() -> list[dict]:
    return [
        {
            "id": "t2",
            "amount": 40,
            "category": "Groceries",
            "type": "expense",
            "note": "",
            "date": "2024-02-02T12:00:00.000Z",
        },
        {
            "id": "t1",
            "amount": 100,
            "category": "Salary",
            "type": "income",
            "note": "",
            "date": "2024-02-01T12:00:00.000Z",
        },
    ]


@pytest.fixture
def stored_goals() -> list[dict]:
    return [
        {"id": "g1", "name": "Holiday", "targetAmount": 100, "currentAmount": 80},
        {"id": "g2", "name": "Bike", "targetAmount": 500, "currentAmount": 30},
    ]


@pytest.fixture
def store(
    rent_rule_record,
    salary_rule_record,
    stored_transactions,
    stored_goals,
) -> InMemoryLedgerStore:
    return InMemoryLedgerStore({
        Collection.TRANSACTIONS: stored_transactions,
        Collection.GOALS: stored_goals,
        Collection.RECURRING_RULES: [rent_rule_record, salary_rule_record],
    })


@pytest.fixture
def repository(store) -> LedgerRepository:
    return LedgerRepository(store)
