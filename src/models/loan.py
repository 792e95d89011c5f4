from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class LoanType(Enum):
    CONVENTIONAL = "Conventional"
    FHA = "FHA"
    VA = "VA"
    USDA = "USDA"
    JUMBO = "Jumbo"
    ARM = "ARM"  # Adjustable rate; payment still computed as fixed here
    INTEREST_ONLY = "InterestOnly"


class LoanStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    FUNDED = "Funded"
    ACTIVE = "Active"
    DELINQUENT = "Delinquent"
    DEFAULT = "Default"
    PAID_OFF = "PaidOff"
    FORECLOSURE = "Foreclosure"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class LoanApplication:
    """Caller-supplied terms for a new loan."""
    customer_id: UUID
    property_id: UUID
    principal_amount: Decimal
    interest_rate: Decimal  # percent, e.g. Decimal("6.875")
    term_months: int
    loan_type: LoanType
    down_payment: Decimal | None = None
    dti: Decimal | None = None  # Debt-to-income percent, never derived here
    has_escrow: bool = True
    monthly_escrow_amount: Decimal | None = None
    notes: str | None = None


@dataclass(frozen=True)
class LoanChanges:
    """Partial update; None leaves a field untouched."""
    status: LoanStatus | None = None
    interest_rate: Decimal | None = None
    monthly_escrow_amount: Decimal | None = None
    notes: str | None = None
