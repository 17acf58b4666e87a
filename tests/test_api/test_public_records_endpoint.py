"""Tests for POST /api/monitor-public-records."""

import pytest

AS_AGENT = {"X-User-Id": "agent-1"}
BODY = {"clientName": "John Smith", "contractStartDate": "2024-01-01", "contractEndDate": "2024-06-30"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_monitor_public_records_creates_breach(api, seed):
    response = await api.client.post("/api/monitor-public-records", json=BODY, headers=AS_AGENT)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["contractId"] == str(seed.contract.id)
    assert data["scanResults"]["breachesDetected"] == 1
    assert data["scanResults"]["newBreachesCreated"] == 1
    assert data["scanResults"]["estimatedLostCommission"] == 15000
    assert data["scanResults"]["breachRecords"][0]["buyerAgent"] == "Jane Doe"
    assert data["scanResults"]["providers"]["attom"]["status"] == "ok"
    assert data["monitoring"]["status"] == "active"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_monitor_public_records_twice_is_idempotent(api, seed):
    await api.client.post("/api/monitor-public-records", json=BODY, headers=AS_AGENT)
    response = await api.client.post("/api/monitor-public-records", json=BODY, headers=AS_AGENT)

    assert response.json()["scanResults"]["breachesDetected"] == 1
    assert response.json()["scanResults"]["newBreachesCreated"] == 0

    listed = await api.client.get("/api/potential-breaches", headers=AS_AGENT)
    assert len(listed.json()) == 1


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {**BODY, "contractEndDate": "2023-12-31"},
    {**BODY, "clientName": "   "},
    {"clientName": "John Smith"},
    {**BODY, "contractStartDate": "not-a-date"},
])
async def test_monitor_public_records_rejects_invalid_body(api, seed, body):
    response = await api.client.post("/api/monitor-public-records", json=body, headers=AS_AGENT)

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"
    assert api.scanner.calls == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_monitor_public_records_unknown_client(api, seed):
    response = await api.client.post(
        "/api/monitor-public-records", json={**BODY, "clientName": "Nobody Known"}, headers=AS_AGENT
    )

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_monitor_public_records_requires_identity(api, seed):
    response = await api.client.post("/api/monitor-public-records", json=BODY)

    assert response.status_code == 401
    assert response.json()["kind"] == "authentication_error"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_monitor_public_records_for_another_agents_contract(api, seed):
    response = await api.client.post(
        "/api/monitor-public-records",
        json={**BODY, "contractId": str(seed.contract.id)},
        headers={"X-User-Id": "agent-2"},
    )

    assert response.status_code == 403
    assert response.json()["kind"] == "authorization_error"
