"""HTTP tests for the loan and health routes.

The app runs in-process over httpx's ASGI transport. The loan service and
collaborator clients are swapped for the in-memory fixtures.
"""

import httpx
import pytest

from src.api.app import app
from src.api.deps import get_customer_client, get_loan_service, get_property_client
from src.config import settings

from tests.conftest import CUSTOMER_ID, PROPERTY_ID, UNKNOWN_ID

BASE = "/api/v1/loans"


def _create_body(**overrides) -> dict:
    body = {
        "customer_id": str(CUSTOMER_ID),
        "property_id": str(PROPERTY_ID),
        "principal_amount": "300000.00",
        "interest_rate": "6.000",
        "term_months": 360,
        "loan_type": "Conventional",
        "down_payment": "75000.00",
        "dti": "32.500",
    }
    body.update(overrides)
    return body


@pytest.fixture
async def client(service, customers, properties):
    app.dependency_overrides[get_loan_service] = lambda: service
    app.dependency_overrides[get_customer_client] = lambda: customers
    app.dependency_overrides[get_property_client] = lambda: properties
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def created(client) -> dict:
    resp = await client.post(BASE, json=_create_body())
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def funded(client, created) -> dict:
    resp = await client.post(
        f"{BASE}/{created['id']}/fund",
        json={"funding_date": "2025-01-15", "first_payment_date": "2025-03-01"},
    )
    assert resp.status_code == 200
    return resp.json()


class TestCreate:
    async def test_created(self, created):
        assert created["loan_number"].startswith("LN-")
        assert created["status"] == "Pending"
        assert created["loan_type"] == "Conventional"
        assert created["monthly_payment"] == "1798.65"
        assert created["current_balance"] == "300000.00"
        assert created["ltv"] == "80.000"
        assert created["customer"]["full_name"] == "Jordan Reyes"
        assert created["property"]["property_type"] == "SFR"

    async def test_unknown_customer(self, client):
        resp = await client.post(BASE, json=_create_body(customer_id=str(UNKNOWN_ID)))
        assert resp.status_code == 400
        assert "Customer" in resp.json()["detail"]

    async def test_unknown_property(self, client):
        resp = await client.post(BASE, json=_create_body(property_id=str(UNKNOWN_ID)))
        assert resp.status_code == 400

    @pytest.mark.parametrize("field,value", [
        ("principal_amount", "5000.00"),
        ("principal_amount", "20000000.00"),
        ("interest_rate", "0"),
        ("interest_rate", "25.000"),
        ("term_months", 6),
        ("term_months", 600),
        ("dti", "120.000"),
        ("loan_type", "Balloon"),
        ("notes", "x" * 501),
    ])
    async def test_validation(self, client, field, value):
        resp = await client.post(BASE, json=_create_body(**{field: value}))
        assert resp.status_code == 422


class TestRead:
    async def test_get(self, client, created):
        resp = await client.get(f"{BASE}/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["loan_number"] == created["loan_number"]
        assert resp.json()["customer"]["id"] == str(CUSTOMER_ID)

    async def test_get_without_enrichment(self, client, created):
        resp = await client.get(f"{BASE}/{created['id']}", params={"enrich": "false"})
        assert resp.json()["customer"] is None
        assert resp.json()["property"] is None

    async def test_get_missing(self, client):
        resp = await client.get(f"{BASE}/{UNKNOWN_ID}")
        assert resp.status_code == 404

    async def test_get_by_number(self, client, created):
        resp = await client.get(f"{BASE}/number/{created['loan_number']}")
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

        resp = await client.get(f"{BASE}/number/LN-1999-000001")
        assert resp.status_code == 404

    async def test_lists(self, client, created):
        for path in ("", f"/customer/{CUSTOMER_ID}", f"/property/{PROPERTY_ID}"):
            resp = await client.get(f"{BASE}{path}")
            assert resp.status_code == 200
            assert [loan["id"] for loan in resp.json()] == [created["id"]]

        resp = await client.get(f"{BASE}/customer/{UNKNOWN_ID}")
        assert resp.json() == []


class TestFundAndSchedule:
    async def test_fund(self, funded):
        assert funded["status"] == "Funded"
        assert funded["start_date"] == "2025-01-15"
        assert funded["first_payment_date"] == "2025-03-01"
        assert funded["maturity_date"] == "2055-03-01"

    async def test_fund_missing(self, client):
        resp = await client.post(
            f"{BASE}/{UNKNOWN_ID}/fund",
            json={"funding_date": "2025-01-15", "first_payment_date": "2025-03-01"},
        )
        assert resp.status_code == 404

    async def test_schedule(self, client, funded):
        resp = await client.get(f"{BASE}/{funded['id']}/schedule")
        items = resp.json()
        assert len(items) == 360
        assert items[0]["payment_number"] == 1
        assert items[0]["interest_amount"] == "1500.00"
        assert items[0]["principal_amount"] == "298.65"
        assert items[0]["remaining_balance"] == "299701.35"
        assert items[-1]["remaining_balance"] in ("0", "0.00")

    async def test_schedule_empty_before_funding(self, client, created):
        resp = await client.get(f"{BASE}/{created['id']}/schedule")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_regenerate(self, client, funded):
        resp = await client.post(f"{BASE}/{funded['id']}/schedule/regenerate")
        assert resp.status_code == 200
        assert len(resp.json()) == 360

    async def test_regenerate_before_funding(self, client, created):
        resp = await client.post(f"{BASE}/{created['id']}/schedule/regenerate")
        assert resp.status_code == 400


class TestPayments:
    async def test_apply_payment_and_balance(self, client, funded):
        resp = await client.post(
            f"{BASE}/{funded['id']}/apply-payment",
            params={"principal": "298.65", "interest": "1500.00"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"loan_id": funded["id"], "applied": True}

        balance = (await client.get(f"{BASE}/{funded['id']}/balance")).json()
        assert balance["current_balance"] == "299701.35"
        assert balance["principal_paid"] == "298.65"
        assert balance["interest_paid"] == "1500.00"
        assert balance["payments_made"] == 1
        assert balance["payments_remaining"] == 359
        assert balance["next_payment_date"] == "2025-04-01"

    async def test_negative_amount_rejected(self, client, funded):
        resp = await client.post(
            f"{BASE}/{funded['id']}/apply-payment",
            params={"principal": "-1", "interest": "0"},
        )
        assert resp.status_code == 422

    async def test_apply_payment_missing(self, client):
        resp = await client.post(
            f"{BASE}/{UNKNOWN_ID}/apply-payment",
            params={"principal": "100", "interest": "10"},
        )
        assert resp.status_code == 404

    async def test_balance_missing(self, client):
        resp = await client.get(f"{BASE}/{UNKNOWN_ID}/balance")
        assert resp.status_code == 404


class TestUpdateAndCancel:
    async def test_update_rate(self, client, created):
        resp = await client.put(f"{BASE}/{created['id']}", json={"interest_rate": "5.000"})
        assert resp.status_code == 200
        assert resp.json()["interest_rate"] == "5.000"
        assert resp.json()["monthly_payment"] == "1610.46"

    async def test_update_missing(self, client):
        resp = await client.put(f"{BASE}/{UNKNOWN_ID}", json={"notes": "x"})
        assert resp.status_code == 404

    async def test_strict_transition_rejected(self, client, created, monkeypatch):
        monkeypatch.setattr(settings, "strict_status_transitions", True)
        resp = await client.put(f"{BASE}/{created['id']}", json={"status": "PaidOff"})
        assert resp.status_code == 400

    async def test_cancel(self, client, created):
        resp = await client.delete(f"{BASE}/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"id": created["id"], "status": "Cancelled"}

        resp = await client.get(f"{BASE}/{created['id']}")
        assert resp.json()["status"] == "Cancelled"
        assert resp.json()["closed_at"] is not None

    async def test_cancel_missing(self, client):
        resp = await client.delete(f"{BASE}/{UNKNOWN_ID}")
        assert resp.status_code == 404


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_live(self, client):
        resp = await client.get("/health/live")
        assert resp.json() == {"status": "alive"}

    async def test_ready(self, client):
        resp = await client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ready"

    async def test_degraded(self, client, properties):
        properties.fail = True
        resp = await client.get("/health/ready")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["dependencies"]["customer_service"] == "healthy"
        assert body["dependencies"]["property_service"] == "unhealthy"
