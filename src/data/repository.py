"""Async SQLAlchemy storage for loans and their amortization schedules."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.db import LoanRecord, ScheduleItemRecord

logger = logging.getLogger(__name__)


class LoanRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # ── Loans ────────────────────────────────────────────────────

    async def get_loan(self, loan_id: UUID, for_update: bool = False) -> LoanRecord | None:
        stmt = select(LoanRecord).where(LoanRecord.id == loan_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_loan_by_number(self, loan_number: str) -> LoanRecord | None:
        stmt = select(LoanRecord).where(LoanRecord.loan_number == loan_number)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_loans(self) -> list[LoanRecord]:
        stmt = select(LoanRecord).order_by(LoanRecord.created_at)
        return list((await self.session.execute(stmt)).scalars())

    async def list_by_customer(self, customer_id: UUID) -> list[LoanRecord]:
        stmt = (
            select(LoanRecord)
            .where(LoanRecord.customer_id == customer_id)
            .order_by(LoanRecord.created_at)
        )
        return list((await self.session.execute(stmt)).scalars())

    async def list_by_property(self, property_id: UUID) -> list[LoanRecord]:
        stmt = (
            select(LoanRecord)
            .where(LoanRecord.property_id == property_id)
            .order_by(LoanRecord.created_at)
        )
        return list((await self.session.execute(stmt)).scalars())

    async def count_loan_numbers(self, prefix: str) -> int:
        stmt = select(func.count()).select_from(LoanRecord).where(
            LoanRecord.loan_number.startswith(prefix)
        )
        return (await self.session.execute(stmt)).scalar_one()

    def add_loan(self, loan: LoanRecord) -> None:
        self.session.add(loan)

    # ── Schedule ─────────────────────────────────────────────────

    async def list_schedule(self, loan_id: UUID) -> list[ScheduleItemRecord]:
        stmt = (
            select(ScheduleItemRecord)
            .where(ScheduleItemRecord.loan_id == loan_id)
            .order_by(ScheduleItemRecord.payment_number)
        )
        return list((await self.session.execute(stmt)).scalars())

    async def replace_schedule(self, loan_id: UUID, items: list[ScheduleItemRecord]) -> None:
        """Delete every existing item for the loan, then insert the new ones."""
        result = await self.session.execute(
            delete(ScheduleItemRecord).where(ScheduleItemRecord.loan_id == loan_id)
        )
        logger.debug("Removed %d schedule items for loan %s", result.rowcount, loan_id)
        self.session.add_all(items)
        await self.session.flush()

    async def earliest_unpaid_item(self, loan_id: UUID) -> ScheduleItemRecord | None:
        stmt = (
            select(ScheduleItemRecord)
            .where(ScheduleItemRecord.loan_id == loan_id, ScheduleItemRecord.is_paid.is_(False))
            .order_by(ScheduleItemRecord.payment_number)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()
