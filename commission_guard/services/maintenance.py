import logging
from typing import List, Optional
from uuid import UUID
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.config import Settings
from commission_guard.crud import commission_protection as crud_protection
from commission_guard.crud import contract as crud_contract
from commission_guard.crud import showing as crud_showing
from commission_guard.schemas.dashboard import MaintenanceReport

logger = logging.getLogger(__name__)


class MaintenanceServices:
    """
        Idempotent housekeeping operations. Each is safe to run repeatedly, from a
        scheduler or explicitly by the API layer ahead of a read.
    """

    @staticmethod
    async def reconcile_overdue_showings(
        db: AsyncSession,
        settings: Settings,
        agent_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[UUID]:
        """
        Mark scheduled showings more than the grace period in the past as no-show.

        Each showing moves through a conditional update (status must still be
        ``scheduled``), and only the writer that moved it creates the companion
        high-risk PropertyVisit, so a showing never gets two visits.

        Returns the ids of the PropertyVisits created.
        """
        now = now or datetime.utcnow()
        cutoff = now - timedelta(hours=settings.showing_grace_period_hours)

        overdue = await crud_showing.find_overdue_showings(db, cutoff, agent_id=agent_id)
        visit_ids = []
        for showing in overdue:
            if not await crud_showing.mark_no_show(db, showing.id):
                continue
            visit = await crud_showing.create_property_visit(
                db,
                agent_id=showing.agent_id,
                client_id=showing.client_id,
                property_id=showing.property_id,
                showing_id=showing.id,
                visit_date=showing.scheduled_date,
                visit_type="showing",
                agent_present=True,
                was_scheduled=True,
                discovery_method="system",
                risk_level="high",
                follow_up_required=True,
                notes="Scheduled showing passed without check-in; marked as no-show.",
            )
            visit_ids.append(visit.id)

        await db.commit()
        if visit_ids:
            logger.info("Marked %d overdue showing(s) as no-show", len(visit_ids))
        return visit_ids

    @staticmethod
    async def expire_contracts(db: AsyncSession, now: Optional[datetime] = None) -> int:
        today = (now or datetime.utcnow()).date()
        count = await crud_contract.expire_contracts(db, today)
        await db.commit()
        return count

    @staticmethod
    async def expire_commission_protections(db: AsyncSession, now: Optional[datetime] = None) -> int:
        count = await crud_protection.expire_protections(db, now or datetime.utcnow())
        await db.commit()
        return count

    @staticmethod
    async def run_all(db: AsyncSession, settings: Settings, notifier=None) -> MaintenanceReport:
        now = datetime.utcnow()
        contracts = await MaintenanceServices.expire_contracts(db, now)
        protections = await MaintenanceServices.expire_commission_protections(db, now)
        visit_ids = await MaintenanceServices.reconcile_overdue_showings(db, settings, now=now)

        retried, delivered = 0, 0
        if notifier is not None:
            retried, delivered = await notifier.retry_failed_notifications()

        logger.info(
            "Maintenance run: contracts_expired=%d protections_expired=%d no_shows=%d notifications=%d/%d",
            contracts, protections, len(visit_ids), delivered, retried,
        )
        return MaintenanceReport(
            contracts_expired=contracts,
            protections_expired=protections,
            showings_marked_no_show=len(visit_ids),
            visit_ids=visit_ids,
            notifications_retried=retried,
            notifications_delivered=delivered,
            ran_at=now,
        )
