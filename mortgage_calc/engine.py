"""Core calculation engine for the mortgage calculator.

This module replays a loan forward in time. It merges the monthly interest
charges, monthly repayments and the user's timeline events into one calendar
(see :mod:`mortgage_calc.timeline`), applies events to a running state
(:mod:`mortgage_calc.events`), accrues interest and runs the payment waterfall
(:mod:`mortgage_calc.processor`) and finally derives the summary statistics.
Every call starts from scratch; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from .amortization import EPSILON, annuity_payment, monthly_rate
from .data_models import (
    ZERO,
    EntryType,
    LedgerEntry,
    LoanConfiguration,
    ResultSummary,
    RunningState,
    TimelineEvent,
)
from .events import apply_events
from .ledger import compact_schedule, record_entry
from .processor import accrue_interest, apply_payment, interest_period_start
from .timeline import build_timeline
from .utils import add_months

logger = logging.getLogger(__name__)


def baseline(config: LoanConfiguration) -> Tuple[Decimal, Decimal]:
    """Return the no-events monthly payment and total interest for ``config``."""
    payment = annuity_payment(
        config.principal, monthly_rate(config.annual_rate), config.total_months
    )
    periods = max(config.total_months, 1)
    total_interest = max(ZERO, payment * Decimal(periods) - config.principal)
    return payment, total_interest


def nominal_end_date(config: LoanConfiguration) -> date:
    return add_months(config.start_date, config.total_months, day=config.payment_day)


def is_paid_off(state: RunningState) -> bool:
    return state.net_balance <= EPSILON or state.principal_balance <= EPSILON


def initial_state(config: LoanConfiguration, payment: Decimal) -> RunningState:
    return RunningState(
        principal_balance=config.principal,
        liquid_balance=config.initial_offset_balance,
        rate=config.annual_rate,
        scheduled_payment=payment,
        minimum_payment=payment,
        last_interest_date=interest_period_start(config),
    )


def calculate(config: LoanConfiguration, events: Sequence[TimelineEvent]) -> ResultSummary:
    """Compute the ledger and summary for a loan and its timeline events.

    Parameters
    ----------
    config: LoanConfiguration
        The loan. Degenerate values (zero term, zero rate, non-positive
        principal) produce a well-formed result rather than an error.
    events: Sequence[TimelineEvent]
        Well-formed user events. Filtering malformed input is the caller's
        job (see :func:`mortgage_calc.snapshot.events_from_list`).

    Returns
    -------
    ResultSummary
        The full ledger, a compacted schedule and the derived statistics.
    """
    original_payment, original_interest = baseline(config)
    state = initial_state(config, original_payment)
    ledger: List[LedgerEntry] = []
    ticks = build_timeline(config, events)
    logger.debug(
        "Processing %d ticks from %s to %s",
        len(ticks),
        ticks[0].date if ticks else None,
        ticks[-1].date if ticks else None,
    )

    payoff_date = None
    for tick in ticks:
        if tick.is_origination:
            record_entry(
                ledger,
                state,
                tick.date,
                EntryType.INITIAL,
                "Mortgage loan originated",
            )
        apply_events(state, config, tick.events, ledger)
        if tick.is_interest_day:
            accrue_interest(state, tick.date, ledger)
        if tick.is_payment_day:
            apply_payment(state, tick.date, ledger)
        if is_paid_off(state) and tick.date >= config.start_date:
            payoff_date = tick.date
            break

    effective_payoff = payoff_date is not None and state.principal_balance > EPSILON
    if payoff_date is None:
        payoff_date = nominal_end_date(config)
        logger.debug("Horizon exhausted; payoff falls back to %s", payoff_date)
    else:
        logger.debug(
            "Paid off on %s (%s)", payoff_date, "effective" if effective_payoff else "in full"
        )

    return ResultSummary(
        monthly_payment=original_payment,
        original_total_interest=original_interest,
        total_interest=state.total_interest,
        total_payments=state.total_payments,
        actual_term_months=state.payments_made,
        payoff_date=payoff_date,
        effective_payoff=effective_payoff,
        interest_saved=max(ZERO, original_interest - state.total_interest),
        ledger=ledger,
        schedule=compact_schedule(ledger),
    )


def summary_dict(result: ResultSummary) -> Dict[str, object]:
    """Flatten the statistics of ``result`` into JSON-serialisable values."""
    return {
        "monthly_payment": float(result.monthly_payment),
        "original_total_interest": float(result.original_total_interest),
        "total_interest": float(result.total_interest),
        "total_payments": float(result.total_payments),
        "actual_term_months": result.actual_term_months,
        "payoff_date": result.payoff_date.isoformat(),
        "effective_payoff": result.effective_payoff,
        "interest_saved": float(result.interest_saved),
    }


def ledger_dicts(ledger: Sequence[LedgerEntry]) -> List[Dict[str, object]]:
    """Convert ledger entries into JSON-serialisable dictionaries."""
    return [
        {
            "date": e.date.isoformat(),
            "type": e.entry_type.value,
            "description": e.description,
            "amount": float(e.amount),
            "mortgageBalance": float(e.principal_balance),
            "offsetBalance": float(e.liquid_balance),
            "effectiveBalance": float(e.net_balance),
            "rate": float(e.rate),
            "monthlyPayment": float(e.scheduled_payment),
            "minimumPayment": float(e.minimum_payment),
        }
        for e in ledger
    ]


def schedule_dicts(result: ResultSummary) -> List[Dict[str, object]]:
    """Convert the compacted schedule into dictionaries for charts."""
    return [
        {
            "month": row.period,
            "date": row.date.isoformat(),
            "payment": float(row.payment),
            "interest": float(row.interest),
            "balance": float(row.principal_balance),
            "offsetBalance": float(row.liquid_balance),
            "effectiveBalance": float(row.net_balance),
            "cumulativeInterest": float(row.cumulative_interest),
            "rate": float(row.rate),
        }
        for row in result.schedule
    ]
