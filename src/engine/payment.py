"""Level monthly payment and remaining-term computation.

Pure functions: Decimal in, Decimal out. No I/O.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
MONTHS_PER_YEAR = 12


def monthly_rate(annual_rate_pct: Decimal) -> Decimal:
    """Percent-per-year (6.875) to decimal-per-month."""
    return annual_rate_pct / 100 / MONTHS_PER_YEAR


def monthly_payment(principal: Decimal, annual_rate_pct: Decimal, term_months: int) -> Decimal:
    """Fixed monthly principal + interest payment, rounded half-up to the cent.

    Non-positive term or principal gives 0. A non-positive rate gives the
    interest-free straight-line payment principal / term.
    """
    if term_months <= 0 or principal <= 0:
        return Decimal("0")
    if annual_rate_pct <= 0:
        return (principal / term_months).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = monthly_rate(annual_rate_pct)
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** term_months
    payment = principal * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def remaining_months(maturity_date: date, as_of: date | None = None) -> int:
    """Whole calendar months from as_of to maturity, never less than 1."""
    if as_of is None:
        as_of = datetime.now(timezone.utc).date()
    months = (maturity_date.year - as_of.year) * MONTHS_PER_YEAR + (
        maturity_date.month - as_of.month
    )
    return max(1, months)
