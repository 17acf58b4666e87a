"""Tests for dashboard aggregation and its Redis cache."""

import json
import pytest
from datetime import datetime, timedelta
from redis.exceptions import RedisError

from commission_guard.crud import alert as crud_alert
from commission_guard.services.dashboard_services import DashboardServices
from tests.utils.factories import create_breach, create_client, create_contract


@pytest.mark.unit
@pytest.mark.asyncio
async def test_agent_without_data_gets_zeros(db, seed, mock_redis, settings):
    stats = await DashboardServices.get_dashboard_stats("agent-2", db, mock_redis, settings)

    assert stats.model_dump() == {
        "active_contracts": 0,
        "expiring_soon": 0,
        "potential_breaches": 0,
        "protected_commission": 0,
        "unread_alerts": 0,
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dashboard_counts(db, seed, mock_redis, settings):
    today = datetime.utcnow().date()
    client = await create_client(db, seed.agent, "Kim Lee")
    await create_contract(db, seed.agent, client, today - timedelta(days=60), today + timedelta(days=10))
    await create_contract(db, seed.agent, client, today - timedelta(days=60), today + timedelta(days=90))
    await create_contract(db, seed.agent, client, today - timedelta(days=90), today - timedelta(days=1), status="expired")
    await create_breach(db, seed.contract, status="pending")
    await create_breach(db, seed.contract, status="investigating")
    await create_breach(db, seed.contract, status="confirmed")
    await crud_alert.create_alert(db, "agent-1", "breach", "t", "d")
    await db.commit()

    stats = await DashboardServices.get_dashboard_stats("agent-1", db, mock_redis, settings)

    # the seeded 2024 contract is still flagged active until maintenance runs
    assert stats.active_contracts == 3
    assert stats.expiring_soon == 1
    assert stats.potential_breaches == 2
    assert stats.protected_commission == 3 * 2000
    assert stats.unread_alerts == 1
    mock_redis.set.assert_awaited_once()
    assert mock_redis.set.await_args.kwargs["ex"] == settings.dashboard_cache_seconds


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cached_stats_are_returned_without_aggregating(mock_redis, settings):
    mock_redis.get.return_value = json.dumps({"activeContracts": 7, "protectedCommission": 14000})

    stats = await DashboardServices.get_dashboard_stats("agent-1", None, mock_redis, settings)

    assert stats.active_contracts == 7
    assert stats.protected_commission == 14000
    mock_redis.set.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_redis_outage_falls_back_to_database(db, seed, mock_redis, settings):
    mock_redis.get.side_effect = RedisError("connection refused")
    mock_redis.set.side_effect = RedisError("connection refused")

    stats = await DashboardServices.get_dashboard_stats("agent-1", db, mock_redis, settings)

    assert stats.active_contracts == 1
