"""Output helpers for the mortgage calculator.

This module provides simple functions to render ledgers, schedules and
summaries in a tabular text format using built-in printing and string
formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import LedgerEntry, ResultSummary, ScheduleRow


def print_summary(result: ResultSummary) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Baseline payment   : {result.monthly_payment:.2f}")
    print(f"Baseline interest  : {result.original_total_interest:.2f}")
    print(f"Total interest     : {result.total_interest:.2f}")
    print(f"Total payments     : {result.total_payments:.2f}")
    print(f"Payments made      : {result.actual_term_months}")
    payoff = result.payoff_date.isoformat()
    if result.effective_payoff:
        payoff += " (fully offset)"
    print(f"Payoff date        : {payoff}")
    if result.interest_saved:
        print(f"Interest saved     : {result.interest_saved:.2f}")
    print("-" * 72)


def print_ledger(ledger: Iterable[LedgerEntry]) -> None:
    """Print every ledger entry as a tab-separated table."""
    headers = [
        "Date",
        "Type",
        "Amount",
        "Loan",
        "Offset",
        "Effective",
        "Rate",
        "Payment",
        "Description",
    ]
    print("\t".join(headers))
    for entry in ledger:
        row = [
            entry.date.isoformat(),
            entry.entry_type.value,
            f"{entry.amount:.2f}",
            f"{entry.principal_balance:.2f}",
            f"{entry.liquid_balance:.2f}",
            f"{entry.net_balance:.2f}",
            f"{entry.rate}",
            f"{entry.scheduled_payment:.2f}",
            entry.description,
        ]
        print("\t".join(row))


def print_schedule(schedule: Iterable[ScheduleRow]) -> None:
    """Print the compacted per-checkpoint schedule."""
    headers = ["Period", "Date", "Payment", "Interest", "Loan", "Offset", "Effective", "CumInterest"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.period),
                    row.date.isoformat(),
                    f"{row.payment:.2f}",
                    f"{row.interest:.2f}",
                    f"{row.principal_balance:.2f}",
                    f"{row.liquid_balance:.2f}",
                    f"{row.net_balance:.2f}",
                    f"{row.cumulative_interest:.2f}",
                ]
            )
        )
