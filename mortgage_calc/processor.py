"""Interest accrual and the payment waterfall.

Both steps run after the user events of the same date have been applied, so
they always see the up-to-date principal, liquid pool and rate.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .amortization import EPSILON, daily_rate
from .data_models import ZERO, EntryType, LedgerEntry, LoanConfiguration, RunningState
from .ledger import record_entry
from .timeline import first_interest_date
from .utils import add_months, days_365

logger = logging.getLogger(__name__)


def interest_period_start(config: LoanConfiguration) -> date:
    """Date the first interest period accrues from.

    A new loan accrues from its start date. An existing mortgage is assumed to
    have been charged interest ``existing_lookback_months`` before the first
    scheduled interest date in the analysis window.
    """
    if config.is_existing_mortgage:
        return add_months(
            first_interest_date(config),
            -config.existing_lookback_months,
            day=config.interest_day,
        )
    return config.start_date


def accrue_interest(state: RunningState, on_date: date, ledger: List[LedgerEntry]) -> Optional[LedgerEntry]:
    """Charge interest on the net balance for the days since the last charge.

    The charge is capitalised into the principal. Nothing is posted when the
    net balance is within ``EPSILON`` of zero, but the period still closes.
    """
    # 29 February is not counted, so every year accrues exactly 365 days.
    days = days_365(state.last_interest_date, on_date)
    net = state.net_balance
    state.last_interest_date = on_date
    if net <= EPSILON or days == 0:
        return None
    charge = net * daily_rate(state.rate) * Decimal(days)
    state.principal_balance += charge
    state.total_interest += charge
    return record_entry(
        ledger,
        state,
        on_date,
        EntryType.INTEREST,
        f"Interest for {days} days at {state.rate}% on effective balance of {net:.2f}",
        charge,
    )


def apply_payment(state: RunningState, on_date: date, ledger: List[LedgerEntry]) -> Optional[LedgerEntry]:
    """Apply one repayment through the waterfall.

    1. A fully offset loan sends the whole scheduled payment to the liquid pool.
    2. Otherwise the minimum payment (capped at the balance) reduces principal.
    3. Anything scheduled above the minimum goes to the liquid pool.

    The scheduled payment is what is counted as paid, even when a rise in
    the minimum has outpaced it.
    """
    if state.principal_balance <= EPSILON:
        return None
    payment = state.scheduled_payment
    state.payments_made += 1
    state.total_payments += payment

    if state.net_balance <= EPSILON:
        state.liquid_balance += payment
        return record_entry(
            ledger,
            state,
            on_date,
            EntryType.OFFSET_PAYMENT,
            f"Loan fully offset: payment of {payment:.2f} credited to offset account",
            -payment,
        )

    principal_part = min(state.minimum_payment, state.principal_balance)
    state.principal_balance -= principal_part
    excess = max(ZERO, state.scheduled_payment - state.minimum_payment)
    state.liquid_balance += excess

    description = f"Monthly payment: {principal_part:.2f} to principal"
    if excess > 0:
        description += f", {excess:.2f} to offset account"
    return record_entry(ledger, state, on_date, EntryType.PAYMENT, description, -payment)
