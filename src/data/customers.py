"""Customer service client."""

from uuid import UUID

import httpx

from src.config import settings
from src.data.service_client import CircuitBreaker, ServiceClient
from src.models.customer import CustomerDetail


class CustomerServiceClient(ServiceClient):
    resource_path = "/api/customers"
    service_name = "Customer service"

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        super().__init__(base_url or settings.customer_service_url, transport, timeout, breaker)

    async def get_customer(self, customer_id: UUID) -> CustomerDetail | None:
        def parse(data: dict) -> CustomerDetail:
            return CustomerDetail(
                id=UUID(data["id"]) if data.get("id") else customer_id,
                first_name=data.get("firstName") or "",
                last_name=data.get("lastName") or "",
                full_name=data.get("fullName") or "",
                email=data.get("email") or "",
                phone=data.get("phone") or "",
            )

        return await self._fetch(customer_id, parse)

    async def customer_exists(self, customer_id: UUID) -> bool:
        return await self._exists(customer_id)
