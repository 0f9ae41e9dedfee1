"""JSON snapshot codec for the three persisted records.

A snapshot document has the top-level keys ``mortgageData``,
``timelineEvents``, ``investments``, ``exportDate`` and ``version``. Field
names are camelCase and dates are ``YYYY-MM-DD`` strings.

This is also where loosely-typed records become engine inputs: malformed
events are dropped here, with a warning, before they reach the engine.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .data_models import EventKind, LoanConfiguration, TimelineEvent
from .utils import decimal_from_str, parse_date

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"
MORTGAGE_KEY = "mortgageData"
EVENTS_KEY = "timelineEvents"
INVESTMENTS_KEY = "investments"
RECORD_KEYS = (MORTGAGE_KEY, EVENTS_KEY, INVESTMENTS_KEY)

IMPORT_ERROR_MESSAGE = "Failed to import data. Please check the file format."


class SnapshotError(ValueError):
    """An import that cannot be applied.

    ``message`` is suitable for showing to the user; ``detail`` says what was
    actually wrong.
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


@dataclass
class Snapshot:
    mortgage_data: Optional[Dict[str, Any]]
    timeline_events: List[Dict[str, Any]] = field(default_factory=list)
    investments: List[Any] = field(default_factory=list)
    export_date: Optional[str] = None
    version: Optional[str] = None

    def records(self) -> Dict[str, Any]:
        """The three keyed records, as they are stored."""
        return {
            MORTGAGE_KEY: self.mortgage_data,
            EVENTS_KEY: self.timeline_events,
            INVESTMENTS_KEY: self.investments,
        }


def _number(value: Any) -> Any:
    """Render a Decimal as a JSON number-compatible value."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def config_to_dict(config: LoanConfiguration) -> Dict[str, Any]:
    return {
        "principal": _number(config.principal),
        "interestRate": _number(config.annual_rate),
        "termYears": config.term_years,
        "termMonths": config.term_extra_months,
        "startDate": config.start_date.isoformat(),
        "offsetBalance": _number(config.initial_offset_balance),
        "paymentDay": config.payment_day,
        "interestDay": config.interest_day,
        "isExistingMortgage": config.is_existing_mortgage,
    }


def config_from_dict(data: Dict[str, Any]) -> LoanConfiguration:
    """Build a ``LoanConfiguration`` from a ``mortgageData`` record.

    Missing optional fields fall back to the form defaults (day 1, no offset,
    no extra months). Raises ``ValueError`` if a required field is missing or
    unparseable.
    """
    if not isinstance(data, dict):
        raise ValueError("Mortgage data must be a JSON object")
    for key in ("principal", "interestRate", "termYears", "startDate"):
        if data.get(key) in (None, ""):
            raise ValueError(f"Mortgage data is missing {key}")
    try:
        return LoanConfiguration(
            principal=decimal_from_str(str(data["principal"])),
            annual_rate=decimal_from_str(str(data["interestRate"])),
            term_years=int(data["termYears"]),
            term_extra_months=int(data.get("termMonths") or 0),
            start_date=parse_date(str(data["startDate"])),
            initial_offset_balance=decimal_from_str(str(data.get("offsetBalance") or 0)),
            payment_day=int(data.get("paymentDay") or 1),
            interest_day=int(data.get("interestDay") or 1),
            is_existing_mortgage=bool(data.get("isExistingMortgage", False)),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid mortgage data: {exc}") from exc


def event_to_dict(event: TimelineEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "date": event.date.isoformat(),
        "type": event.kind.value,
        "value": _number(event.value),
        "description": event.note or "",
    }


def event_from_dict(data: Dict[str, Any], index: int = 0) -> TimelineEvent:
    """Parse one ``timelineEvents`` item. Raises ``ValueError`` if malformed."""
    if not isinstance(data, dict):
        raise ValueError("Timeline event must be a JSON object")
    kind = EventKind(data.get("type"))
    raw_value = data.get("value")
    if raw_value in (None, "") or isinstance(raw_value, bool):
        raise ValueError("Timeline event has no value")
    return TimelineEvent(
        id=str(data.get("id") if data.get("id") is not None else index),
        date=parse_date(str(data.get("date"))),
        kind=kind,
        value=decimal_from_str(str(raw_value)),
        note=data.get("description") or None,
    )


def events_from_list(items: Optional[Iterable[Any]]) -> List[TimelineEvent]:
    """Parse timeline events, skipping (and logging) any that are malformed."""
    events: List[TimelineEvent] = []
    for index, item in enumerate(items or []):
        try:
            events.append(event_from_dict(item, index))
        except ValueError as exc:
            logger.warning("Skipping malformed timeline event #%d: %s", index, exc)
    return events


def build_export(
    mortgage_data: Optional[Dict[str, Any]],
    timeline_events: Optional[List[Any]],
    investments: Optional[List[Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble an export document from the stored records."""
    now = now or datetime.now(timezone.utc)
    return {
        MORTGAGE_KEY: mortgage_data,
        EVENTS_KEY: timeline_events or [],
        INVESTMENTS_KEY: investments or [],
        "exportDate": now.isoformat(),
        "version": SNAPSHOT_VERSION,
    }


def dumps_export(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2)


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"morty-analysis-{today.isoformat()}.json"


def parse_import(text: str) -> Snapshot:
    """Parse an export document.

    Only the shape is checked: the document must be a JSON object. Records
    that are present but of the wrong type are treated as absent. Raises
    ``SnapshotError`` otherwise.
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise SnapshotError(IMPORT_ERROR_MESSAGE, f"Invalid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise SnapshotError(IMPORT_ERROR_MESSAGE, "Invalid file format")

    mortgage_data = document.get(MORTGAGE_KEY)
    events = document.get(EVENTS_KEY)
    investments = document.get(INVESTMENTS_KEY)
    return Snapshot(
        mortgage_data=mortgage_data if mortgage_data else None,
        timeline_events=events if isinstance(events, list) else [],
        investments=investments if isinstance(investments, list) else [],
        export_date=document.get("exportDate"),
        version=document.get("version"),
    )
