"""Ledger bookkeeping: appending snapshots and compacting them for charts."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List

from .data_models import ZERO, EntryType, LedgerEntry, RunningState, ScheduleRow

CHECKPOINT_TYPES = {
    EntryType.INITIAL,
    EntryType.INTEREST,
    EntryType.PAYMENT,
    EntryType.OFFSET_PAYMENT,
}


def record_entry(
    ledger: List[LedgerEntry],
    state: RunningState,
    on_date: date,
    entry_type: EntryType,
    description: str,
    amount: Decimal = ZERO,
) -> LedgerEntry:
    """Append an entry snapshotting ``state`` to ``ledger`` and return it."""
    entry = LedgerEntry(
        date=on_date,
        entry_type=entry_type,
        description=description,
        amount=amount,
        principal_balance=max(ZERO, state.principal_balance),
        liquid_balance=state.liquid_balance,
        net_balance=state.net_balance,
        rate=state.rate,
        scheduled_payment=state.scheduled_payment,
        minimum_payment=state.minimum_payment,
    )
    ledger.append(entry)
    return entry


def compact_schedule(ledger: List[LedgerEntry]) -> List[ScheduleRow]:
    """Collapse the ledger into one row per origination/interest/payment date.

    Each row carries the balances of the last checkpoint entry on that date,
    the payment and interest posted that date and the running interest total.
    Dates with only user events get no row of their own.
    """
    rows: Dict[date, ScheduleRow] = {}
    cumulative = ZERO
    for entry in ledger:
        if entry.entry_type not in CHECKPOINT_TYPES:
            continue
        row = rows.get(entry.date)
        if row is None:
            row = ScheduleRow(
                period=len(rows),
                date=entry.date,
                payment=ZERO,
                interest=ZERO,
                principal_balance=entry.principal_balance,
                liquid_balance=entry.liquid_balance,
                net_balance=entry.net_balance,
                cumulative_interest=cumulative,
                rate=entry.rate,
            )
            rows[entry.date] = row
        if entry.entry_type is EntryType.INTEREST:
            cumulative += entry.amount
            row.interest += entry.amount
        elif entry.entry_type in (EntryType.PAYMENT, EntryType.OFFSET_PAYMENT):
            row.payment += -entry.amount
        row.principal_balance = entry.principal_balance
        row.liquid_balance = entry.liquid_balance
        row.net_balance = entry.net_balance
        row.cumulative_interest = cumulative
        row.rate = entry.rate
    return list(rows.values())
