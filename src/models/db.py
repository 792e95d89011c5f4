"""SQLAlchemy ORM models for loan persistence."""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from src.models.loan import LoanStatus, LoanType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class LoanRecord(Base):
    __tablename__ = "loans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    loan_number: Mapped[str] = mapped_column(String(20), unique=True)

    # References into the customer / property services (fetched over HTTP)
    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    property_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)

    # Terms
    principal_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(5, 3))  # percent, e.g. 6.875
    term_months: Mapped[int] = mapped_column(Integer)
    loan_type: Mapped[LoanType] = mapped_column(SAEnum(LoanType, native_enum=False, length=20))
    status: Mapped[LoanStatus] = mapped_column(
        SAEnum(LoanStatus, native_enum=False, length=20), default=LoanStatus.PENDING
    )

    # Balances
    monthly_payment: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    original_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)

    # Set at funding
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    maturity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    first_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Underwriting
    down_payment: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    ltv: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)
    dti: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)

    # Escrow
    has_escrow: Mapped[bool] = mapped_column(Boolean, default=True)
    escrow_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    monthly_escrow_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    schedule_items: Mapped[list["ScheduleItemRecord"]] = relationship(
        back_populates="loan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ScheduleItemRecord.payment_number",
    )


class ScheduleItemRecord(Base):
    __tablename__ = "amortization_schedule_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    loan_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("loans.id", ondelete="CASCADE"), index=True
    )

    payment_number: Mapped[int] = mapped_column(Integer)
    payment_date: Mapped[date] = mapped_column(Date)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    principal_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    interest_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    escrow_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    cumulative_interest: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)
    cumulative_principal: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0)

    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    actual_payment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    loan: Mapped["LoanRecord"] = relationship(back_populates="schedule_items")
