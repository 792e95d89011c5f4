"""Protocol definitions for the collaborator services.

The loan service only depends on these interfaces; the httpx clients are the
production implementations.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from src.models.customer import CustomerDetail
from src.models.property import PropertyDetail


@runtime_checkable
class CustomerSource(Protocol):
    async def get_customer(self, customer_id: UUID) -> CustomerDetail | None:
        """Fetch a customer record, or None if absent or unavailable."""
        ...

    async def customer_exists(self, customer_id: UUID) -> bool:
        """True if the customer service knows this id."""
        ...

    async def is_reachable(self) -> bool:
        """True if the customer service answers at all."""
        ...


@runtime_checkable
class PropertySource(Protocol):
    async def get_property(self, property_id: UUID) -> PropertyDetail | None:
        """Fetch a property record, or None if absent or unavailable."""
        ...

    async def property_exists(self, property_id: UUID) -> bool:
        """True if the property service knows this id."""
        ...

    async def is_reachable(self) -> bool:
        """True if the property service answers at all."""
        ...
