"""Health routes: liveness plus readiness of the collaborator services."""

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.deps import get_customer_client, get_property_client
from src.data.customers import CustomerServiceClient
from src.data.properties import PropertyServiceClient

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    return {
        "status": "ok",
        "service": "loans",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dependencies": ["customer-service", "property-service"],
    }


@router.get("/live")
async def live():
    return {"status": "alive"}


@router.get("/ready")
async def ready(
    customers: CustomerServiceClient = Depends(get_customer_client),
    properties: PropertyServiceClient = Depends(get_property_client),
):
    """503 with per-dependency detail if either collaborator is unreachable."""
    customer_ok, property_ok = await asyncio.gather(
        customers.is_reachable(), properties.is_reachable()
    )
    body = {
        "status": "ready" if customer_ok and property_ok else "degraded",
        "dependencies": {
            "customer_service": "healthy" if customer_ok else "unhealthy",
            "property_service": "healthy" if property_ok else "unhealthy",
        },
    }
    return JSONResponse(body, status_code=200 if customer_ok and property_ok else 503)
