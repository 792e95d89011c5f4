"""FastAPI dependency injection."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings
from src.data.customers import CustomerServiceClient
from src.data.loan_service import LoanService
from src.data.properties import PropertyServiceClient
from src.data.repository import LoanRepository

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


def get_customer_client() -> CustomerServiceClient:
    return CustomerServiceClient()


def get_property_client() -> PropertyServiceClient:
    return PropertyServiceClient()


def get_loan_service(
    session: AsyncSession = Depends(get_db),
    customers: CustomerServiceClient = Depends(get_customer_client),
    properties: PropertyServiceClient = Depends(get_property_client),
) -> LoanService:
    return LoanService(LoanRepository(session), customers, properties)
