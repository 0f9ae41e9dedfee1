"""Data models for the mortgage calculator.

This module defines dataclasses representing the entities used by the engine:
the loan configuration, user timeline events, the running state of a single
calculation pass, ledger entries and the derived result summary. Money and
rates are held as ``Decimal`` throughout so that ledgers are reproducible to
the cent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

ZERO = Decimal("0")


class EventKind(str, Enum):
    """The closed set of timeline event kinds.

    The enum value is the identifier used in persisted/exported JSON.
    """

    RATE_CHANGE = "rateChange"
    DEPOSIT = "deposit"
    REDRAW = "redraw"
    REPAYMENT_CHANGE = "repaymentChange"
    REFINANCE = "refinance"
    RECAST = "recast"
    ADJUST_BALANCE = "adjustBalance"
    ADJUST_OFFSET = "adjustOffset"


class EntryType(str, Enum):
    """Type tag of a ledger entry."""

    INITIAL = "Initial Loan"
    RATE_CHANGE = "rateChange"
    DEPOSIT = "deposit"
    REDRAW = "redraw"
    REPAYMENT_CHANGE = "repaymentChange"
    REFINANCE = "refinance"
    RECAST = "recast"
    ADJUST_BALANCE = "adjustBalance"
    ADJUST_OFFSET = "adjustOffset"
    INTEREST = "Interest Charge"
    PAYMENT = "Monthly Payment"
    OFFSET_PAYMENT = "Offset Payment"

    @classmethod
    def for_event(cls, kind: EventKind) -> "EntryType":
        return cls(kind.value)


@dataclass(frozen=True)
class LoanConfiguration:
    """Configuration of a loan for one calculation run.

    Attributes
    ----------
    principal: Decimal
        The amount borrowed.
    annual_rate: Decimal
        Annual nominal interest rate in percent (``Decimal("3.5")`` is 3.5 %).
    term_years, term_extra_months: int
        The contractual term. ``term_extra_months`` is expected in 0-11.
    start_date: date
        Date the loan is originated (or, for an existing mortgage, the date the
        analysis starts from).
    initial_offset_balance: Decimal
        Cash already sitting in the offset/redraw account at ``start_date``.
    payment_day, interest_day: int
        Day of month repayments are taken and interest is charged.
    is_existing_mortgage: bool
        When true the first interest period starts ``existing_lookback_months``
        before the first scheduled interest date instead of at ``start_date``.
    """

    principal: Decimal
    annual_rate: Decimal
    term_years: int
    start_date: date
    term_extra_months: int = 0
    initial_offset_balance: Decimal = ZERO
    payment_day: int = 1
    interest_day: int = 1
    is_existing_mortgage: bool = False
    existing_lookback_months: int = 1

    @property
    def total_months(self) -> int:
        return self.term_years * 12 + self.term_extra_months


@dataclass(frozen=True)
class TimelineEvent:
    """A user-supplied event applied to the loan on ``date``.

    The meaning of ``value`` depends on ``kind``: a percentage for
    ``rateChange``, a new payment amount for ``repaymentChange``, a balance for
    ``refinance``/``adjustBalance``/``adjustOffset`` and a cash amount for the
    remaining kinds.
    """

    id: str
    date: date
    kind: EventKind
    value: Decimal
    note: Optional[str] = None


@dataclass
class RunningState:
    """Mutable accumulator owned by a single calculation pass."""

    principal_balance: Decimal
    liquid_balance: Decimal
    rate: Decimal
    scheduled_payment: Decimal
    minimum_payment: Decimal
    last_interest_date: date
    total_interest: Decimal = ZERO
    total_payments: Decimal = ZERO
    payments_made: int = 0

    @property
    def net_balance(self) -> Decimal:
        """Balance interest accrues on: principal less the liquid pool.

        Negative intermediate values of either pool are clamped to zero.
        """
        principal = max(ZERO, self.principal_balance)
        liquid = max(ZERO, self.liquid_balance)
        return max(ZERO, principal - liquid)


@dataclass(frozen=True)
class LedgerEntry:
    """One line in the transaction ledger.

    ``amount`` is signed: positive values increase the effective balance (an
    interest charge, a redraw), negative values reduce it (a deposit, a
    payment).
    """

    date: date
    entry_type: EntryType
    description: str
    amount: Decimal
    principal_balance: Decimal
    liquid_balance: Decimal
    net_balance: Decimal
    rate: Decimal
    scheduled_payment: Decimal
    minimum_payment: Decimal


@dataclass
class ScheduleRow:
    """A compacted per-checkpoint row used for charting."""

    period: int
    date: date
    payment: Decimal
    interest: Decimal
    principal_balance: Decimal
    liquid_balance: Decimal
    net_balance: Decimal
    cumulative_interest: Decimal
    rate: Decimal


@dataclass
class ResultSummary:
    monthly_payment: Decimal  # baseline payment as if no events occurred
    original_total_interest: Decimal
    total_interest: Decimal
    total_payments: Decimal
    actual_term_months: int
    payoff_date: date
    effective_payoff: bool
    interest_saved: Decimal
    ledger: List[LedgerEntry] = field(default_factory=list)
    schedule: List[ScheduleRow] = field(default_factory=list)
