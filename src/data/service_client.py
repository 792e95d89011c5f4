"""Shared httpx plumbing for the customer and property service clients.

Both services answer with the envelope {"success": bool, "message": str,
"data": {...}}. Every failure mode (transport error, non-2xx, malformed
body, success=false, unmappable field) maps to None / False so callers can
degrade instead of failing.

Each GET goes through two policies:
  retry   → transport errors, 408 and 5xx, exponential backoff
  breaker → per service, shared by all client instances; opens after N
            consecutive transient failures and short-circuits calls until
            the reset window has passed, then lets one trial call through
"""

import logging
import time
from decimal import Decimal
from typing import Callable, TypeVar
from uuid import UUID

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from src.config import settings

logger = logging.getLogger(__name__)

READINESS_CHECK_ID = UUID(int=0)

T = TypeVar("T")


def to_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def is_transient(resp: httpx.Response) -> bool:
    return resp.status_code == 408 or resp.status_code >= 500


class CircuitOpenError(httpx.HTTPError):
    """Raised instead of calling a service whose breaker is open."""


class CircuitBreaker:
    def __init__(
        self,
        failure_threshold: int,
        reset_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.reset_seconds = reset_seconds
        self.clock = clock
        self.failures = 0
        self.opened_at: float | None = None

    @property
    def state(self) -> str:
        if self.opened_at is None:
            return "closed"
        if self.clock() - self.opened_at >= self.reset_seconds:
            return "half-open"
        return "open"

    def before_call(self, name: str) -> None:
        if self.state == "open":
            raise CircuitOpenError(f"{name} circuit is open")

    def record_success(self) -> None:
        self.failures = 0
        self.opened_at = None

    def record_failure(self, name: str) -> None:
        if self.state == "half-open":
            self.opened_at = self.clock()
            logger.warning("%s trial call failed; circuit re-opened", name)
            return
        self.failures += 1
        if self.failures >= self.failure_threshold and self.opened_at is None:
            self.opened_at = self.clock()
            logger.warning(
                "%s circuit opened after %d consecutive failures", name, self.failures
            )


_breakers: dict[str, CircuitBreaker] = {}


def breaker_for(service_name: str) -> CircuitBreaker:
    if service_name not in _breakers:
        _breakers[service_name] = CircuitBreaker(
            settings.circuit_breaker_failures, settings.circuit_breaker_reset_seconds
        )
    return _breakers[service_name]


def reset_breakers() -> None:
    _breakers.clear()


class ServiceClient:
    resource_path: str = ""
    service_name: str = ""

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.service_timeout_seconds
        self.breaker = breaker or breaker_for(self.service_name)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        )

    async def _attempt(self, client: httpx.AsyncClient, endpoint: str) -> httpx.Response:
        self.breaker.before_call(self.service_name)
        logger.debug("GET %s%s", self.base_url, endpoint)
        try:
            resp = await client.get(endpoint)
        except httpx.TransportError:
            self.breaker.record_failure(self.service_name)
            raise
        if is_transient(resp):
            self.breaker.record_failure(self.service_name)
        else:
            self.breaker.record_success()
        return resp

    async def _get(self, endpoint: str) -> httpx.Response:
        """GET with retries; the last response (or error) is returned once attempts run out."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError) | retry_if_result(is_transient),
            stop=stop_after_attempt(settings.service_retries + 1),
            wait=wait_exponential(multiplier=settings.retry_backoff_seconds, exp_base=2),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=lambda state: state.outcome.result(),
        )
        async with self._client() as client:
            return await retrying(self._attempt, client, endpoint)

    async def _get_data(self, resource_id: UUID) -> dict | None:
        """Fetch one resource and unwrap the envelope."""
        try:
            resp = await self._get(f"{self.resource_path}/{resource_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            logger.warning("%s lookup failed for %s: %s", self.service_name, resource_id, e)
            return None
        except ValueError as e:
            logger.warning("%s returned malformed JSON for %s: %s", self.service_name, resource_id, e)
            return None

        if not isinstance(payload, dict) or not payload.get("success"):
            return None
        data = payload.get("data")
        return data if isinstance(data, dict) else None

    async def _fetch(self, resource_id: UUID, parse: Callable[[dict], T]) -> T | None:
        """Fetch and map one resource; a payload that does not map gives None."""
        data = await self._get_data(resource_id)
        if data is None:
            return None
        try:
            return parse(data)
        except (ValueError, ArithmeticError, TypeError) as e:
            logger.warning("%s sent an unusable record for %s: %r", self.service_name, resource_id, e)
            return None

    async def _exists(self, resource_id: UUID) -> bool:
        try:
            resp = await self._get(f"{self.resource_path}/{resource_id}")
        except httpx.HTTPError as e:
            logger.warning("%s existence check failed for %s: %s", self.service_name, resource_id, e)
            return False
        return resp.is_success

    async def is_reachable(self) -> bool:
        """Any HTTP answer (404 included) counts; transport failures and an open circuit do not."""
        try:
            await self._get(f"{self.resource_path}/{READINESS_CHECK_ID}")
        except httpx.HTTPError as e:
            logger.warning("%s unreachable: %s", self.service_name, e)
            return False
        return True
