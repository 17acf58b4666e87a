"""Tests for the idempotent housekeeping operations."""

import pytest
from unittest.mock import AsyncMock
from datetime import date, datetime, timedelta
from sqlalchemy import select

from commission_guard.models import CommissionProtection, Contract, PropertyVisit
from commission_guard.services.maintenance import MaintenanceServices
from tests.utils.factories import create_client, create_property, create_showing

NOW = datetime(2024, 5, 1, 12, 0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_overdue_showing_becomes_no_show_with_one_high_risk_visit(db, seed, settings):
    prop = await create_property(db)
    showing = await create_showing(db, seed.agent, seed.client, prop, NOW - timedelta(hours=3))
    await db.commit()

    visit_ids = await MaintenanceServices.reconcile_overdue_showings(db, settings, now=NOW)
    again = await MaintenanceServices.reconcile_overdue_showings(db, settings, now=NOW)

    await db.refresh(showing)
    assert showing.status == "no-show"
    assert len(visit_ids) == 1
    assert again == []

    visits = (await db.execute(select(PropertyVisit))).scalars().all()
    assert len(visits) == 1
    assert visits[0].showing_id == showing.id
    assert visits[0].risk_level == "high"
    assert visits[0].follow_up_required is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_showing_inside_grace_period_is_left_alone(db, seed, settings):
    prop = await create_property(db)
    recent = await create_showing(db, seed.agent, seed.client, prop, NOW - timedelta(hours=1))
    done = await create_showing(db, seed.agent, seed.client, prop, NOW - timedelta(days=2), status="completed")
    await db.commit()

    assert await MaintenanceServices.reconcile_overdue_showings(db, settings, now=NOW) == []

    await db.refresh(recent)
    await db.refresh(done)
    assert recent.status == "scheduled"
    assert done.status == "completed"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reconcile_scoped_to_one_agent(db, seed, settings):
    prop = await create_property(db)
    other_client = await create_client(db, seed.other_agent)
    mine = await create_showing(db, seed.agent, seed.client, prop, NOW - timedelta(hours=5))
    theirs = await create_showing(db, seed.other_agent, other_client, prop, NOW - timedelta(hours=5))
    await db.commit()

    await MaintenanceServices.reconcile_overdue_showings(db, settings, agent_id="agent-1", now=NOW)

    await db.refresh(mine)
    await db.refresh(theirs)
    assert mine.status == "no-show"
    assert theirs.status == "scheduled"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expire_contracts_and_protections(db, seed):
    prop = await create_property(db)
    protection = CommissionProtection(
        agent_id=seed.agent.id,
        client_id=seed.client.id,
        property_id=prop.id,
        protection_type="showing",
        protection_date=datetime(2024, 1, 15),
        expiration_date=datetime(2024, 6, 1),
        evidence_type="gps-tracking",
    )
    db.add(protection)
    await db.commit()

    after_end = datetime(2024, 7, 2)
    assert await MaintenanceServices.expire_contracts(db, after_end) == 1
    assert await MaintenanceServices.expire_contracts(db, after_end) == 0
    assert await MaintenanceServices.expire_commission_protections(db, after_end) == 1

    contract = (await db.execute(
        select(Contract).where(Contract.id == seed.contract.id).execution_options(populate_existing=True)
    )).scalar_one()
    await db.refresh(protection)
    assert contract.status == "expired"
    assert protection.status == "expired"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_contract_ending_today_stays_active(db, seed):
    assert await MaintenanceServices.expire_contracts(db, datetime(2024, 6, 30, 23, 0)) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_all_reports_every_step(db, seed, settings):
    notifier = AsyncMock()
    notifier.retry_failed_notifications.return_value = (2, 1)

    report = await MaintenanceServices.run_all(db, settings, notifier)

    assert report.contracts_expired == 1  # the seeded contract ended in 2024
    assert report.notifications_retried == 2
    assert report.notifications_delivered == 1
    assert report.showings_marked_no_show == 0
    notifier.retry_failed_notifications.assert_awaited_once()
