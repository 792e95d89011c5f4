"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.models.loan import LoanStatus, LoanType


# ---- Request schemas ----

class CreateLoanRequest(BaseModel):
    customer_id: UUID
    property_id: UUID
    principal_amount: Decimal = Field(..., ge=10000, le=10000000, decimal_places=2)
    interest_rate: Decimal = Field(..., ge=Decimal("0.001"), le=20, decimal_places=3,
                                   description="Annual rate in percent, e.g. 6.875")
    term_months: int = Field(..., ge=12, le=480)
    loan_type: LoanType
    down_payment: Decimal | None = Field(None, ge=0, le=10000000, decimal_places=2)
    dti: Decimal | None = Field(None, ge=0, le=100, decimal_places=3,
                                description="Debt-to-income percent, supplied by underwriting")
    has_escrow: bool = True
    monthly_escrow_amount: Decimal | None = Field(None, ge=0, le=10000, decimal_places=2)
    notes: str | None = Field(None, max_length=500)


class UpdateLoanRequest(BaseModel):
    status: LoanStatus | None = None
    interest_rate: Decimal | None = Field(None, ge=Decimal("0.001"), le=20, decimal_places=3)
    monthly_escrow_amount: Decimal | None = Field(None, ge=0, le=10000, decimal_places=2)
    notes: str | None = Field(None, max_length=500)


class FundLoanRequest(BaseModel):
    funding_date: date
    first_payment_date: date
    notes: str | None = Field(None, max_length=500)


# ---- Response schemas ----

class CustomerResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str


class PropertyResponse(BaseModel):
    id: UUID
    full_address: str
    property_type: str
    estimated_value: Decimal
    listing_price: Decimal
    bedrooms: int
    bathrooms: Decimal
    square_feet: Decimal


class LoanSummaryResponse(BaseModel):
    id: UUID
    loan_number: str
    customer_id: UUID
    property_id: UUID
    principal_amount: Decimal
    interest_rate: Decimal
    term_months: int
    loan_type: str
    status: str
    monthly_payment: Decimal
    current_balance: Decimal
    created_at: datetime


class LoanResponse(LoanSummaryResponse):
    customer: CustomerResponse | None = None
    property: PropertyResponse | None = None
    original_balance: Decimal
    start_date: date | None = None
    maturity_date: date | None = None
    first_payment_date: date | None = None
    down_payment: Decimal | None = None
    ltv: Decimal | None = None
    dti: Decimal | None = None
    has_escrow: bool
    escrow_balance: Decimal
    monthly_escrow_amount: Decimal
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    notes: str | None = None


class LoanBalanceResponse(BaseModel):
    loan_id: UUID
    loan_number: str
    original_balance: Decimal
    current_balance: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    escrow_balance: Decimal
    payments_made: int
    payments_remaining: int
    next_payment_date: date | None = None
    next_payment_amount: Decimal
    as_of: datetime


class AmortizationItemResponse(BaseModel):
    payment_number: int
    payment_date: date
    payment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    escrow_amount: Decimal
    remaining_balance: Decimal
    cumulative_interest: Decimal
    cumulative_principal: Decimal
    is_paid: bool
    actual_payment_date: datetime | None = None


class PaymentAppliedResponse(BaseModel):
    loan_id: UUID
    applied: bool = True


class CancelledResponse(BaseModel):
    id: UUID
    status: str = LoanStatus.CANCELLED.value
