"""Loan status transitions.

The table lists the moves the lifecycle expects. Whether an unlisted move is
rejected or merely logged is decided by the caller (strict mode setting).
"""

from src.models.loan import LoanStatus

ALLOWED_TRANSITIONS: dict[LoanStatus, frozenset[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.FUNDED, LoanStatus.CANCELLED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.FUNDED, LoanStatus.CANCELLED}),
    LoanStatus.FUNDED: frozenset({LoanStatus.ACTIVE, LoanStatus.CANCELLED}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.DELINQUENT, LoanStatus.PAID_OFF, LoanStatus.DEFAULT}),
    LoanStatus.DELINQUENT: frozenset({
        LoanStatus.ACTIVE,
        LoanStatus.PAID_OFF,
        LoanStatus.DEFAULT,
        LoanStatus.FORECLOSURE,
        LoanStatus.CANCELLED,
    }),
    LoanStatus.DEFAULT: frozenset({LoanStatus.FORECLOSURE, LoanStatus.CANCELLED}),
    LoanStatus.PAID_OFF: frozenset({LoanStatus.CANCELLED}),
    LoanStatus.FORECLOSURE: frozenset(),
    LoanStatus.CANCELLED: frozenset(),
}


def can_transition(current: LoanStatus, target: LoanStatus) -> bool:
    """Re-setting the current status is always allowed."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]
