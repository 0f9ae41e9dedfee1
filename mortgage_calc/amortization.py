"""Rate conversions and the fixed-payment annuity formula.

Every computation in the engine uses the same convention: interest accrues
daily at ``rate / 100 / 365`` and the monthly rate used to size repayments is
the daily rate over an average month (``daily * 365 / 12``).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext

from .data_models import ZERO, LoanConfiguration, RunningState
from .utils import months_elapsed

getcontext().prec = 28  # increase precision for financial calculations

DAYS_PER_YEAR = Decimal(365)
MONTHS_PER_YEAR = Decimal(12)
# Balances at or below this are treated as zero.
EPSILON = Decimal("0.01")


def daily_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal(100) / DAYS_PER_YEAR


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return daily_rate(annual_rate_percent) * DAYS_PER_YEAR / MONTHS_PER_YEAR


def annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the level monthly payment that amortizes ``principal``.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. Degenerate inputs give defined results
    instead of raising. A rate that is zero, negative, or too small for
    ``(1 + i)^n`` to differ from 1 amortizes linearly (``P / n``). A
    non-positive term makes the whole principal due at once, and a
    non-positive principal needs no payment.
    """
    if principal <= 0:
        return ZERO
    if term <= 0:
        return principal
    if rate_per_month <= 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    if factor - 1 <= 0:
        # rate too small to register at the working precision
        return principal / Decimal(term)
    return principal * (rate_per_month * factor) / (factor - 1)


def remaining_months(config: LoanConfiguration, on_date: date) -> int:
    """Months left in the contractual term at ``on_date``, at least one."""
    return max(1, config.total_months - months_elapsed(config.start_date, on_date))


def recompute_minimum_payment(state: RunningState, config: LoanConfiguration, on_date: date) -> Decimal:
    """Re-amortize the current principal over the remaining term at the current rate."""
    state.minimum_payment = annuity_payment(
        state.principal_balance,
        monthly_rate(state.rate),
        remaining_months(config, on_date),
    )
    return state.minimum_payment
