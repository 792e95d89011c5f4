"""Canonical test fixtures shared across engine, data and API tests.

Fixture loan: $300K, 6% annual, 360 months, Conventional, no escrow.
Customer and property services are replaced by in-memory fakes.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.data.loan_service import LoanService
from src.data.repository import LoanRepository
from src.models.customer import CustomerDetail
from src.models.db import Base
from src.models.loan import LoanApplication, LoanType
from src.models.property import PropertyDetail

CUSTOMER_ID = UUID("11111111-1111-1111-1111-111111111111")
PROPERTY_ID = UUID("aaaa1111-1111-1111-1111-111111111111")
UNKNOWN_ID = UUID("99999999-9999-9999-9999-999999999999")

FUNDING_DATE = date(2025, 1, 15)
FIRST_PAYMENT_DATE = date(2025, 3, 1)


class FakeCustomers:
    def __init__(self, customers: dict[UUID, CustomerDetail] | None = None, fail: bool = False):
        self.customers = customers if customers is not None else {
            CUSTOMER_ID: CustomerDetail(
                id=CUSTOMER_ID,
                first_name="Jordan",
                last_name="Reyes",
                full_name="Jordan Reyes",
                email="jordan.reyes@example.com",
                phone="555-0100",
            ),
        }
        self.fail = fail

    async def get_customer(self, customer_id):
        if self.fail:
            raise ConnectionError("customer service down")
        return self.customers.get(customer_id)

    async def customer_exists(self, customer_id):
        return customer_id in self.customers

    async def is_reachable(self):
        return not self.fail


class FakeProperties:
    def __init__(self, properties: dict[UUID, PropertyDetail] | None = None, fail: bool = False):
        self.properties = properties if properties is not None else {
            PROPERTY_ID: PropertyDetail(
                id=PROPERTY_ID,
                full_address="742 Evergreen Terrace, Springfield, OR 97477",
                property_type="SFR",
                estimated_value=Decimal("375000"),
                listing_price=Decimal("389000"),
                bedrooms=4,
                bathrooms=Decimal("2.5"),
                square_feet=Decimal("2200"),
            ),
        }
        self.fail = fail

    async def get_property(self, property_id):
        if self.fail:
            raise ConnectionError("property service down")
        return self.properties.get(property_id)

    async def property_exists(self, property_id):
        return property_id in self.properties

    async def is_reachable(self):
        return not self.fail


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def repository(session) -> LoanRepository:
    return LoanRepository(session)


@pytest.fixture
def customers() -> FakeCustomers:
    return FakeCustomers()


@pytest.fixture
def properties() -> FakeProperties:
    return FakeProperties()


@pytest.fixture
def service(repository, customers, properties) -> LoanService:
    return LoanService(repository, customers, properties)


@pytest.fixture
def canonical_application() -> LoanApplication:
    """$300K at 6% for 30 years."""
    return LoanApplication(
        customer_id=CUSTOMER_ID,
        property_id=PROPERTY_ID,
        principal_amount=Decimal("300000.00"),
        interest_rate=Decimal("6.000"),
        term_months=360,
        loan_type=LoanType.CONVENTIONAL,
        down_payment=Decimal("75000.00"),
        dti=Decimal("32.500"),
    )


@pytest.fixture
async def pending_loan(service, canonical_application):
    view = await service.create_loan(canonical_application)
    return view.loan


@pytest.fixture
async def funded_loan(service, pending_loan):
    view = await service.fund_loan(pending_loan.id, FUNDING_DATE, FIRST_PAYMENT_DATE)
    return view.loan
