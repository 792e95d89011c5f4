"""Amortization schedule generation.

Pure functions: Decimal in, dataclass out. No I/O.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta

from src.engine.payment import TWO_PLACES, monthly_rate

ZERO = Decimal("0")


@dataclass(frozen=True)
class ScheduledInstallment:
    payment_number: int
    payment_date: date
    payment_amount: Decimal  # principal + interest + escrow
    principal: Decimal
    interest: Decimal
    escrow: Decimal
    remaining_balance: Decimal
    cumulative_interest: Decimal
    cumulative_principal: Decimal


def amortization_schedule(
    principal: Decimal,
    annual_rate_pct: Decimal,
    term_months: int,
    payment: Decimal,
    first_payment_date: date,
    monthly_escrow: Decimal = ZERO,
) -> list[ScheduledInstallment]:
    """Build the payment-by-payment table for a fixed-rate loan.

    Stops as soon as the balance reaches zero and never runs past
    term_months, so the table can be shorter than the term when the rounded
    payment overshoots. The installment in the final permitted period takes
    whatever balance is left, so the table always ends at zero.

    Args:
        principal: Starting balance
        annual_rate_pct: Annual rate in percent (e.g. 6.875)
        term_months: Maximum number of installments
        payment: Level principal + interest payment (see monthly_payment)
        first_payment_date: Due date of installment #1
        monthly_escrow: Escrow collected with each installment
    """
    r = monthly_rate(annual_rate_pct)
    balance = principal
    cumulative_interest = ZERO
    cumulative_principal = ZERO
    installments: list[ScheduledInstallment] = []

    number = 1
    while number <= term_months and balance > 0:
        interest = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
        principal_paid = max(min(payment - interest, balance), ZERO)
        if number == term_months:
            principal_paid = balance

        balance -= principal_paid
        cumulative_interest += interest
        cumulative_principal += principal_paid

        # Final payment adjustment: clamp or true-up changes the actual amount
        if principal_paid + interest != payment and balance <= 0:
            amount = principal_paid + interest + monthly_escrow
        else:
            amount = payment + monthly_escrow

        installments.append(ScheduledInstallment(
            payment_number=number,
            payment_date=first_payment_date + relativedelta(months=number - 1),
            payment_amount=amount,
            principal=principal_paid,
            interest=interest,
            escrow=monthly_escrow,
            remaining_balance=max(ZERO, balance),
            cumulative_interest=cumulative_interest,
            cumulative_principal=cumulative_principal,
        ))
        number += 1

    return installments


def total_interest(installments: list[ScheduledInstallment]) -> Decimal:
    return installments[-1].cumulative_interest if installments else ZERO
