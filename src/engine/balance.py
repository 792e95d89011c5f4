"""Balance aggregation over a loan's schedule.

Pure functions over loan / schedule-item objects. No I/O, no mutation.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Protocol
from uuid import UUID


class ScheduleItemLike(Protocol):
    payment_number: int
    payment_date: date
    payment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    is_paid: bool


@dataclass(frozen=True)
class BalanceSnapshot:
    loan_id: UUID
    loan_number: str
    original_balance: Decimal
    current_balance: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    escrow_balance: Decimal
    payments_made: int
    payments_remaining: int
    next_payment_date: date | None
    next_payment_amount: Decimal
    as_of: datetime


def balance_snapshot(
    loan,
    items: Iterable[ScheduleItemLike],
    as_of: datetime | None = None,
) -> BalanceSnapshot:
    """Paid / remaining totals for a loan and its schedule.

    The next payment is the earliest unpaid installment by due date. With no
    unpaid installment (schedule exhausted or never generated) the loan's
    monthly payment is reported with no date.
    """
    items = list(items)
    paid = [i for i in items if i.is_paid]
    unpaid = [i for i in items if not i.is_paid]
    upcoming = min(unpaid, key=lambda i: (i.payment_date, i.payment_number)) if unpaid else None

    return BalanceSnapshot(
        loan_id=loan.id,
        loan_number=loan.loan_number,
        original_balance=loan.original_balance,
        current_balance=loan.current_balance,
        principal_paid=sum((i.principal_amount for i in paid), Decimal("0")),
        interest_paid=sum((i.interest_amount for i in paid), Decimal("0")),
        escrow_balance=loan.escrow_balance,
        payments_made=len(paid),
        payments_remaining=len(unpaid),
        next_payment_date=upcoming.payment_date if upcoming else None,
        next_payment_amount=upcoming.payment_amount if upcoming else loan.monthly_payment,
        as_of=as_of or datetime.now(timezone.utc),
    )
