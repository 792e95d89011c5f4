"""Loan service: orchestrates storage, collaborator lookups and the engine.

Flow: validate references → price the loan → persist → (fund) → schedule
Reads: load loan → enrich with customer + property in parallel
Payments: lock loan → decrement balance → mark earliest unpaid installment

Not-found is reported as None / False; rejected input raises
LoanPreconditionError before anything is written.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from dateutil.relativedelta import relativedelta

from src.config import settings
from src.data.base import CustomerSource, PropertySource
from src.data.repository import LoanRepository
from src.engine.balance import BalanceSnapshot, balance_snapshot
from src.engine.payment import monthly_payment, remaining_months
from src.engine.schedule import amortization_schedule, total_interest
from src.engine.status import can_transition
from src.models.customer import CustomerDetail
from src.models.db import LoanRecord, ScheduleItemRecord
from src.models.loan import LoanApplication, LoanChanges, LoanStatus
from src.models.property import PropertyDetail

logger = logging.getLogger(__name__)

THREE_PLACES = Decimal("0.001")


class LoanPreconditionError(ValueError):
    """The operation was rejected; nothing was persisted."""


class InvalidStatusTransition(LoanPreconditionError):
    pass


class ScheduleGenerationError(LoanPreconditionError):
    pass


@dataclass(frozen=True)
class EnrichedLoan:
    loan: LoanRecord
    customer: CustomerDetail | None = None
    property: PropertyDetail | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanService:
    def __init__(
        self,
        repository: LoanRepository,
        customers: CustomerSource,
        properties: PropertySource,
    ):
        self.repo = repository
        self.customers = customers
        self.properties = properties

    # ── Reads ────────────────────────────────────────────────────

    async def list_loans(self) -> list[LoanRecord]:
        return await self.repo.list_loans()

    async def list_by_customer(self, customer_id: UUID) -> list[LoanRecord]:
        return await self.repo.list_by_customer(customer_id)

    async def list_by_property(self, property_id: UUID) -> list[LoanRecord]:
        return await self.repo.list_by_property(property_id)

    async def get_loan(self, loan_id: UUID, enrich: bool = True) -> EnrichedLoan | None:
        loan = await self.repo.get_loan(loan_id)
        if loan is None:
            return None
        return await self._enrich(loan) if enrich else EnrichedLoan(loan)

    async def get_loan_by_number(self, loan_number: str) -> EnrichedLoan | None:
        loan = await self.repo.get_loan_by_number(loan_number)
        if loan is None:
            return None
        return await self._enrich(loan)

    async def get_schedule(self, loan_id: UUID) -> list[ScheduleItemRecord]:
        return await self.repo.list_schedule(loan_id)

    async def get_balance(self, loan_id: UUID) -> BalanceSnapshot | None:
        loan = await self.repo.get_loan(loan_id)
        if loan is None:
            return None
        items = await self.repo.list_schedule(loan_id)
        return balance_snapshot(loan, items)

    # ── Writes ───────────────────────────────────────────────────

    async def create_loan(self, application: LoanApplication) -> EnrichedLoan:
        """Price and persist a new Pending loan.

        Raises LoanPreconditionError if the customer or property is unknown.
        """
        if not await self.customers.customer_exists(application.customer_id):
            raise LoanPreconditionError(f"Customer {application.customer_id} not found")
        if not await self.properties.property_exists(application.property_id):
            raise LoanPreconditionError(f"Property {application.property_id} not found")

        prop = await self.properties.get_property(application.property_id)
        property_value = (prop.value_basis if prop else None) or application.principal_amount
        ltv = (application.principal_amount / property_value * 100).quantize(
            THREE_PLACES, ROUND_HALF_UP
        )

        payment = monthly_payment(
            application.principal_amount, application.interest_rate, application.term_months
        )

        async with self.repo.transaction():
            loan = LoanRecord(
                loan_number=await self._next_loan_number(),
                customer_id=application.customer_id,
                property_id=application.property_id,
                principal_amount=application.principal_amount,
                interest_rate=application.interest_rate,
                term_months=application.term_months,
                loan_type=application.loan_type,
                status=LoanStatus.PENDING,
                monthly_payment=payment,
                current_balance=application.principal_amount,
                original_balance=application.principal_amount,
                down_payment=application.down_payment,
                ltv=ltv,
                dti=application.dti,
                has_escrow=application.has_escrow,
                escrow_balance=Decimal("0"),
                monthly_escrow_amount=application.monthly_escrow_amount or Decimal("0"),
                created_at=_utcnow(),
                notes=application.notes,
            )
            self.repo.add_loan(loan)

        logger.info("Created loan %s for customer %s", loan.loan_number, loan.customer_id)
        return await self._enrich(loan)

    async def update_loan(self, loan_id: UUID, changes: LoanChanges) -> EnrichedLoan | None:
        """Apply a partial update.

        A rate change re-prices the monthly payment on the current balance
        over the months left to maturity. The existing schedule is kept.
        """
        async with self.repo.transaction():
            loan = await self.repo.get_loan(loan_id, for_update=True)
            if loan is None:
                return None

            if changes.status is not None:
                self._set_status(loan, changes.status)
            if changes.interest_rate is not None:
                loan.interest_rate = changes.interest_rate
                months = (
                    remaining_months(loan.maturity_date)
                    if loan.maturity_date is not None
                    else loan.term_months
                )
                loan.monthly_payment = monthly_payment(
                    loan.current_balance, changes.interest_rate, months
                )
            if changes.monthly_escrow_amount is not None:
                loan.monthly_escrow_amount = changes.monthly_escrow_amount
            if changes.notes is not None:
                loan.notes = changes.notes
            loan.updated_at = _utcnow()

        return await self._enrich(loan)

    async def fund_loan(
        self,
        loan_id: UUID,
        funding_date: date,
        first_payment_date: date,
        notes: str | None = None,
    ) -> EnrichedLoan | None:
        """Mark the loan Funded, set its dates and regenerate its schedule.

        Status, dates and schedule are committed together or not at all.
        """
        async with self.repo.transaction():
            loan = await self.repo.get_loan(loan_id, for_update=True)
            if loan is None:
                return None

            self._set_status(loan, LoanStatus.FUNDED)
            loan.start_date = funding_date
            loan.first_payment_date = first_payment_date
            loan.maturity_date = first_payment_date + relativedelta(months=loan.term_months)
            loan.updated_at = _utcnow()
            if notes is not None:
                loan.notes = notes

            await self._regenerate(loan)

        logger.info("Funded loan %s", loan.loan_number)
        return await self._enrich(loan)

    async def generate_schedule(self, loan_id: UUID) -> list[ScheduleItemRecord] | None:
        """Rebuild the loan's schedule from scratch (delete-then-insert)."""
        async with self.repo.transaction():
            loan = await self.repo.get_loan(loan_id, for_update=True)
            if loan is None:
                return None
            items = await self._regenerate(loan)
        return items

    async def cancel_loan(self, loan_id: UUID) -> bool:
        async with self.repo.transaction():
            loan = await self.repo.get_loan(loan_id, for_update=True)
            if loan is None:
                return False
            self._set_status(loan, LoanStatus.CANCELLED)
            now = _utcnow()
            loan.updated_at = now
            loan.closed_at = now

        logger.info("Cancelled loan %s", loan.loan_number)
        return True

    async def apply_payment(
        self, loan_id: UUID, principal_amount: Decimal, interest_amount: Decimal
    ) -> bool:
        """Record a payment made through the external payment processor.

        The principal/interest split is taken as given and is not checked
        against the schedule. Only principal reduces the balance. The
        earliest unpaid installment is marked paid; with none left the
        balance still moves.
        """
        async with self.repo.transaction():
            loan = await self.repo.get_loan(loan_id, for_update=True)
            if loan is None:
                return False

            now = _utcnow()
            loan.current_balance -= principal_amount
            loan.updated_at = now

            item = await self.repo.earliest_unpaid_item(loan_id)
            if item is not None:
                item.is_paid = True
                item.actual_payment_date = now

        if item is None:
            logger.info(
                "Applied payment to loan %s (principal %s, interest %s); no unpaid installment left",
                loan.loan_number, principal_amount, interest_amount,
            )
        else:
            logger.info(
                "Applied payment #%d to loan %s (principal %s, interest %s)",
                item.payment_number, loan.loan_number, principal_amount, interest_amount,
            )
        return True

    # ── Helpers ──────────────────────────────────────────────────

    async def _next_loan_number(self) -> str:
        prefix = f"{settings.loan_number_prefix}-{_utcnow().year}"
        count = await self.repo.count_loan_numbers(prefix)
        return f"{prefix}-{count + 1:06d}"

    def _set_status(self, loan: LoanRecord, target: LoanStatus) -> None:
        if not can_transition(loan.status, target):
            if settings.strict_status_transitions:
                raise InvalidStatusTransition(
                    f"Loan {loan.loan_number} cannot move from {loan.status.value} to {target.value}"
                )
            logger.warning(
                "Loan %s moved %s -> %s outside the lifecycle table",
                loan.loan_number, loan.status.value, target.value,
            )
        loan.status = target

    async def _regenerate(self, loan: LoanRecord) -> list[ScheduleItemRecord]:
        if loan.first_payment_date is None:
            raise ScheduleGenerationError(
                f"Loan {loan.loan_number} has no first payment date; fund it first"
            )

        installments = amortization_schedule(
            principal=loan.principal_amount,
            annual_rate_pct=loan.interest_rate,
            term_months=loan.term_months,
            payment=loan.monthly_payment,
            first_payment_date=loan.first_payment_date,
            monthly_escrow=loan.monthly_escrow_amount,
        )
        items = [
            ScheduleItemRecord(
                loan_id=loan.id,
                payment_number=i.payment_number,
                payment_date=i.payment_date,
                payment_amount=i.payment_amount,
                principal_amount=i.principal,
                interest_amount=i.interest,
                escrow_amount=i.escrow,
                remaining_balance=i.remaining_balance,
                cumulative_interest=i.cumulative_interest,
                cumulative_principal=i.cumulative_principal,
                is_paid=False,
            )
            for i in installments
        ]
        await self.repo.replace_schedule(loan.id, items)

        logger.info(
            "Generated %d-payment schedule for loan %s (total interest %s)",
            len(items), loan.loan_number, total_interest(installments),
        )
        return items

    async def _enrich(self, loan: LoanRecord) -> EnrichedLoan:
        """Fetch customer and property in parallel; failures leave the field empty."""
        timeout = settings.enrichment_timeout_seconds
        customer, property_ = await asyncio.gather(
            asyncio.wait_for(self.customers.get_customer(loan.customer_id), timeout),
            asyncio.wait_for(self.properties.get_property(loan.property_id), timeout),
            return_exceptions=True,
        )

        if isinstance(customer, BaseException):
            logger.warning("Customer enrichment failed for loan %s: %r", loan.loan_number, customer)
            customer = None
        if isinstance(property_, BaseException):
            logger.warning("Property enrichment failed for loan %s: %r", loan.loan_number, property_)
            property_ = None

        return EnrichedLoan(loan=loan, customer=customer, property=property_)
