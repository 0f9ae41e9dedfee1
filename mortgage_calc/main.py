"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute the full transaction ledger or the per-period schedule,
view summaries, and move their stored records to and from snapshot files.
Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import EventKind, LedgerEntry, LoanConfiguration, ResultSummary, TimelineEvent
from .engine import calculate, ledger_dicts, schedule_dicts, summary_dict
from .formatter import print_ledger, print_schedule, print_summary
from .snapshot import (
    EVENTS_KEY,
    INVESTMENTS_KEY,
    MORTGAGE_KEY,
    SnapshotError,
    build_export,
    config_from_dict,
    dumps_export,
    events_from_list,
    parse_import,
)
from .utils import decimal_from_str, parse_date

logger = logging.getLogger(__name__)

EVENT_KINDS = [kind.value for kind in EventKind]


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a Decimal.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_event_strings(values: Tuple[str, ...]) -> List[TimelineEvent]:
    """Parse ``YYYY-MM-DD:KIND:VALUE[:NOTE]`` event options."""
    events: List[TimelineEvent] = []
    for index, item in enumerate(values):
        parts = item.split(":", 3)
        if len(parts) < 3:
            raise click.BadParameter(
                f"Event must be in YYYY-MM-DD:KIND:VALUE format; got {item}"
            )
        date_str, kind_str, value_str = parts[:3]
        try:
            dt = parse_date(date_str)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        try:
            kind = EventKind(kind_str)
        except ValueError:
            raise click.BadParameter(
                f"Event kind must be one of {', '.join(EVENT_KINDS)}; got {kind_str}"
            )
        events.append(
            TimelineEvent(
                id=f"cli-{index}",
                date=dt,
                kind=kind,
                value=parse_amount(value_str),
                note=parts[3] if len(parts) == 4 else None,
            )
        )
    return events


def build_config_from_options(
    principal: str,
    rate: float,
    term_years: int,
    term_months: int,
    start_date: str,
    offset: Optional[str] = None,
    payment_day: int = 1,
    interest_day: int = 1,
    existing: bool = False,
) -> LoanConfiguration:
    try:
        start_dt = parse_date(start_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return LoanConfiguration(
        principal=parse_amount(principal),
        annual_rate=decimal_from_str(str(rate)),
        term_years=term_years,
        term_extra_months=term_months,
        start_date=start_dt,
        initial_offset_balance=parse_amount(offset) if offset else Decimal(0),
        payment_day=payment_day,
        interest_day=interest_day,
        is_existing_mortgage=existing,
    )


def load_inputs(
    snapshot: Optional[str],
    principal: Optional[str],
    rate: Optional[float],
    term_years: Optional[int],
    term_months: int,
    start_date: Optional[str],
    offset: Optional[str],
    payment_day: int,
    interest_day: int,
    existing: bool,
    event: Tuple[str, ...],
) -> Tuple[LoanConfiguration, List[TimelineEvent]]:
    """Resolve the loan and events from a snapshot file and/or options.

    Events given with ``--event`` are appended to those in the snapshot.
    """
    if snapshot:
        try:
            parsed = parse_import(Path(snapshot).read_text(encoding="utf-8"))
        except SnapshotError as exc:
            raise click.BadParameter(f"{exc.message} ({exc.detail})")
        if not parsed.mortgage_data:
            raise click.BadParameter("Snapshot has no mortgageData")
        try:
            config = config_from_dict(parsed.mortgage_data)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        events = events_from_list(parsed.timeline_events)
    else:
        missing = [
            name
            for name, value in (
                ("--principal", principal),
                ("--rate", rate),
                ("--term-years", term_years),
                ("--start-date", start_date),
            )
            if value is None
        ]
        if missing:
            raise click.BadParameter(f"Missing required option(s): {', '.join(missing)}")
        config = build_config_from_options(
            principal,
            rate,
            term_years,
            term_months,
            start_date,
            offset,
            payment_day,
            interest_day,
            existing,
        )
        events = []
    return config, events + parse_event_strings(event)


def export_to_json(path: Path, result: ResultSummary) -> None:
    """Export summary, schedule and ledger to a JSON file."""
    data = {
        "summary": summary_dict(result),
        "schedule": schedule_dicts(result),
        "transactions": ledger_dicts(result.ledger),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, ledger: List[LedgerEntry]) -> None:
    """Export the ledger to a CSV file."""
    header = [
        "Date",
        "Type",
        "Description",
        "Amount",
        "Mortgage_Balance",
        "Offset_Balance",
        "Effective_Balance",
        "Rate",
        "Payment",
        "Minimum_Payment",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in ledger:
            writer.writerow(
                [
                    e.date.isoformat(),
                    e.entry_type.value,
                    e.description,
                    f"{e.amount:.2f}",
                    f"{e.principal_balance:.2f}",
                    f"{e.liquid_balance:.2f}",
                    f"{e.net_balance:.2f}",
                    str(e.rate),
                    f"{e.scheduled_payment:.2f}",
                    f"{e.minimum_payment:.2f}",
                ]
            )


def _open_store(database_url: Optional[str]):
    from mortgage_calc_web.state_store import create_store_from_env

    return create_store_from_env(database_url)


def loan_options(func):
    """Attach the loan/event options shared by ``ledger`` and ``summary``."""
    options = [
        click.option("--snapshot", "snapshot", type=click.Path(exists=True, dir_okay=False), help="Load mortgage data and events from an exported snapshot"),
        click.option("--principal", "-p", "principal", help="Loan amount"),
        click.option("--rate", "-r", "rate", type=float, help="Annual interest rate (percent)"),
        click.option("--term-years", "-t", "term_years", type=int, help="Loan term in years"),
        click.option("--term-months", "term_months", type=click.IntRange(0, 11), default=0, help="Additional months of term"),
        click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM-DD)"),
        click.option("--offset", "offset", help="Initial offset account balance"),
        click.option("--payment-day", "payment_day", type=click.IntRange(1, 28), default=1, help="Day of month repayments are made"),
        click.option("--interest-day", "interest_day", type=click.IntRange(1, 28), default=1, help="Day of month interest is charged"),
        click.option("--existing", "existing", is_flag=True, help="Treat as an existing mortgage (interest from the previous interest date)"),
        click.option("--event", "event", multiple=True, help="Timeline event in YYYY-MM-DD:KIND:VALUE[:NOTE] format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """A command-line offset mortgage calculator driven by timeline events."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def ledger(output: Optional[str], **options: Any) -> None:
    """Compute and print the full transaction ledger."""
    config, events = load_inputs(**options)
    result = calculate(config, events)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
            click.echo(f"Ledger exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.ledger)
            click.echo(f"Ledger exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(result)
        # Limit ledger length printed to avoid flooding the terminal
        max_rows = 240
        if len(result.ledger) > max_rows:
            click.echo(
                f"Ledger has {len(result.ledger)} rows; showing first {max_rows} rows."
            )
            print_ledger(result.ledger[:max_rows])
        else:
            print_ledger(result.ledger)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the summary metrics for a loan."""
    config, events = load_inputs(**options)
    result = calculate(config, events)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_dict(result)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result)


@cli.command()
@loan_options
def schedule(**options: Any) -> None:
    """Print the per-period schedule (one row per interest or payment date)."""
    config, events = load_inputs(**options)
    result = calculate(config, events)
    print_summary(result)
    print_schedule(result.schedule)


@cli.command("export-snapshot")
@click.option("--user", "user", required=True, help="User token whose records are exported")
@click.option("--database-url", "database_url", default=lambda: os.environ.get("MORTGAGE_DATABASE_URL"), help="SQLAlchemy database URL")
@click.option("--output", "output", required=True, type=str, help="Snapshot file path (.json)")
def export_snapshot(user: str, database_url: Optional[str], output: str) -> None:
    """Write a user's stored records to a snapshot file."""
    store = _open_store(database_url)
    records: Dict[str, Any] = store.load_all(user)
    document = build_export(records[MORTGAGE_KEY], records[EVENTS_KEY], records[INVESTMENTS_KEY])
    Path(output).write_text(dumps_export(document), encoding="utf-8")
    click.echo(f"Snapshot exported to {output}")


@cli.command("import-snapshot")
@click.option("--user", "user", required=True, help="User token whose records are replaced")
@click.option("--database-url", "database_url", default=lambda: os.environ.get("MORTGAGE_DATABASE_URL"), help="SQLAlchemy database URL")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_snapshot(user: str, database_url: Optional[str], path: str) -> None:
    """Replace a user's stored records with the contents of a snapshot file."""
    try:
        parsed = parse_import(Path(path).read_text(encoding="utf-8"))
    except SnapshotError as exc:
        logger.warning("Rejected snapshot %s: %s", path, exc.detail)
        raise click.ClickException(exc.message)
    store = _open_store(database_url)
    store.replace_all(user, parsed.records())
    click.echo("Data imported successfully!")


if __name__ == "__main__":
    cli()
