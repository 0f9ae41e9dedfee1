"""Shared test fixtures.

Fixture loan: $400K, 3.5 %, 30 years, started 2024-01-01, payments and
interest on the 1st of the month, no offset balance.
"""

import os

# The web app builds its store at import time; keep it in memory for tests.
os.environ["MORTGAGE_DATABASE_URL"] = "sqlite://"

from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.data_models import EventKind, LoanConfiguration, RunningState, TimelineEvent


@pytest.fixture
def standard_config() -> LoanConfiguration:
    return LoanConfiguration(
        principal=Decimal("400000"),
        annual_rate=Decimal("3.5"),
        term_years=30,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def make_event():
    counter = {"n": 0}

    def _make(on: date, kind: EventKind, value, note=None) -> TimelineEvent:
        counter["n"] += 1
        return TimelineEvent(
            id=str(counter["n"]),
            date=on,
            kind=kind,
            value=Decimal(str(value)),
            note=note,
        )

    return _make


@pytest.fixture
def make_state():
    def _make(**overrides) -> RunningState:
        values = dict(
            principal_balance=Decimal("100000"),
            liquid_balance=Decimal("5000"),
            rate=Decimal("5"),
            scheduled_payment=Decimal("1000"),
            minimum_payment=Decimal("1000"),
            last_interest_date=date(2024, 1, 1),
        )
        values.update(overrides)
        return RunningState(**values)

    return _make


@pytest.fixture
def mortgage_data() -> dict:
    return {
        "principal": 400000,
        "interestRate": 3.5,
        "termYears": 30,
        "termMonths": 0,
        "startDate": "2024-01-01",
        "offsetBalance": 0,
        "paymentDay": 1,
        "interestDay": 1,
    }
