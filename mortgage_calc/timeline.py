"""Merge scheduled charges, scheduled payments and user events into ticks.

The engine walks a single ascending list of ``Tick`` objects. Each tick is a
calendar date together with everything due on it: user events (in their
original relative order), an interest charge, a payment, or the loan's
origination. No financial formula is evaluated here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List

from .data_models import LoanConfiguration, TimelineEvent
from .utils import add_months

# Extra months generated beyond the contractual term so that a loan slowed
# down by redraws or rate rises can still run to payoff.
HORIZON_BUFFER_MONTHS = 24


@dataclass
class Tick:
    date: date
    events: List[TimelineEvent] = field(default_factory=list)
    is_origination: bool = False
    is_interest_day: bool = False
    is_payment_day: bool = False


def scheduled_dates(config: LoanConfiguration, day: int) -> List[date]:
    """Return one date per month on ``day``, strictly after the start date.

    Dates run from the start month through the term plus the horizon buffer.
    """
    months = config.total_months + HORIZON_BUFFER_MONTHS
    dates = []
    for offset in range(0, months + 1):
        dt = add_months(config.start_date, offset, day=day)
        if dt > config.start_date:
            dates.append(dt)
    return dates


def first_interest_date(config: LoanConfiguration) -> date:
    dates = scheduled_dates(config, config.interest_day)
    return dates[0] if dates else add_months(config.start_date, 1, day=config.interest_day)


def build_timeline(config: LoanConfiguration, events: Iterable[TimelineEvent]) -> List[Tick]:
    """Build the ascending, de-duplicated list of ticks for a calculation run."""
    ticks: Dict[date, Tick] = {}

    def tick_for(dt: date) -> Tick:
        tick = ticks.get(dt)
        if tick is None:
            tick = Tick(date=dt)
            ticks[dt] = tick
        return tick

    tick_for(config.start_date).is_origination = True
    for dt in scheduled_dates(config, config.interest_day):
        tick_for(dt).is_interest_day = True
    for dt in scheduled_dates(config, config.payment_day):
        tick_for(dt).is_payment_day = True
    # A stable sort keeps same-day events in the order they were supplied.
    for event in sorted(events, key=lambda e: e.date):
        tick_for(event.date).events.append(event)

    return [ticks[dt] for dt in sorted(ticks)]
