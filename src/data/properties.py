"""Property service client."""

from uuid import UUID

import httpx

from src.config import settings
from src.data.service_client import CircuitBreaker, ServiceClient, to_decimal
from src.models.property import PropertyDetail


class PropertyServiceClient(ServiceClient):
    resource_path = "/api/properties"
    service_name = "Property service"

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        super().__init__(base_url or settings.property_service_url, transport, timeout, breaker)

    async def get_property(self, property_id: UUID) -> PropertyDetail | None:
        def parse(data: dict) -> PropertyDetail:
            return PropertyDetail(
                id=UUID(data["id"]) if data.get("id") else property_id,
                full_address=data.get("fullAddress") or "",
                property_type=data.get("propertyType") or "",
                estimated_value=to_decimal(data.get("estimatedValue")),
                listing_price=to_decimal(data.get("listingPrice")),
                bedrooms=int(data.get("bedrooms") or 0),
                bathrooms=to_decimal(data.get("bathrooms")),
                square_feet=to_decimal(data.get("squareFeet")),
            )

        return await self._fetch(property_id, parse)

    async def property_exists(self, property_id: UUID) -> bool:
        return await self._exists(property_id)
