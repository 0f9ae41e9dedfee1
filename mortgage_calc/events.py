"""Apply user timeline events to the running state.

Each event kind has one handler. A handler mutates the ``RunningState`` and
returns the ledger description and signed amount for the event; ``apply_event``
records the entry. The handler table covers every ``EventKind``; a kind without
a handler is an error rather than a silent no-op.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, List, Sequence, Tuple

from .amortization import recompute_minimum_payment
from .data_models import (
    ZERO,
    EntryType,
    EventKind,
    LedgerEntry,
    LoanConfiguration,
    RunningState,
    TimelineEvent,
)
from .ledger import record_entry

logger = logging.getLogger(__name__)

Handler = Callable[[RunningState, LoanConfiguration, TimelineEvent], Tuple[str, Decimal]]


class UnknownEventKindError(ValueError):
    """Raised when an event carries a kind the engine has no handler for."""


def _rate_change(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    old_rate = state.rate
    state.rate = event.value
    recompute_minimum_payment(state, config, event.date)
    return (
        f"Interest rate changed from {old_rate}% to {state.rate}%; "
        f"minimum payment now {state.minimum_payment:.2f}",
        ZERO,
    )


def _deposit(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    state.liquid_balance += event.value
    return "Deposit to offset account", -event.value


def _redraw(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    available = max(ZERO, state.liquid_balance)
    if available >= event.value:
        state.liquid_balance -= event.value
        return "Redraw from offset account", event.value
    from_loan = event.value - available
    state.liquid_balance -= available
    state.principal_balance += from_loan
    return (
        f"Redraw: {available:.2f} from offset, {from_loan:.2f} increases loan",
        event.value,
    )


def _repayment_change(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    old_payment = state.scheduled_payment
    state.scheduled_payment = event.value
    return (
        f"Monthly payment changed from {old_payment:.2f} to {state.scheduled_payment:.2f}",
        ZERO,
    )


def _refinance(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    state.principal_balance = event.value
    recompute_minimum_payment(state, config, event.date)
    return f"Loan refinanced to new balance of {event.value:.2f}", ZERO


def _recast(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    state.principal_balance = max(ZERO, state.principal_balance - event.value)
    recompute_minimum_payment(state, config, event.date)
    return (
        f"Recast: lump sum applied to principal, minimum payment now {state.minimum_payment:.2f}",
        -event.value,
    )


def _adjust_balance(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    state.principal_balance = event.value
    return "Loan balance manually adjusted", ZERO


def _adjust_offset(state: RunningState, config: LoanConfiguration, event: TimelineEvent) -> Tuple[str, Decimal]:
    state.liquid_balance = event.value
    return "Offset balance manually adjusted", ZERO


HANDLERS: Dict[EventKind, Handler] = {
    EventKind.RATE_CHANGE: _rate_change,
    EventKind.DEPOSIT: _deposit,
    EventKind.REDRAW: _redraw,
    EventKind.REPAYMENT_CHANGE: _repayment_change,
    EventKind.REFINANCE: _refinance,
    EventKind.RECAST: _recast,
    EventKind.ADJUST_BALANCE: _adjust_balance,
    EventKind.ADJUST_OFFSET: _adjust_offset,
}


def apply_event(
    state: RunningState,
    config: LoanConfiguration,
    event: TimelineEvent,
    ledger: List[LedgerEntry],
) -> LedgerEntry:
    """Apply one event to ``state`` and append its ledger entry."""
    handler = HANDLERS.get(event.kind)
    if handler is None:
        raise UnknownEventKindError(f"No handler for event kind {event.kind!r}")
    description, amount = handler(state, config, event)
    if event.note:
        description = f"{description} ({event.note})"
    logger.debug("Applied %s on %s: %s", event.kind.value, event.date, description)
    return record_entry(
        ledger,
        state,
        event.date,
        EntryType.for_event(event.kind),
        description,
        amount,
    )


def apply_events(
    state: RunningState,
    config: LoanConfiguration,
    events: Sequence[TimelineEvent],
    ledger: List[LedgerEntry],
) -> List[LedgerEntry]:
    """Apply ``events`` in their given order, one ledger entry each."""
    return [apply_event(state, config, event, ledger) for event in events]
