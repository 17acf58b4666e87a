"""Tests for the root health check."""

import pytest


@pytest.mark.integration
@pytest.mark.asyncio
async def test_root_health_check(api):
    response = await api.client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Commission Guard Backend API is running"}
