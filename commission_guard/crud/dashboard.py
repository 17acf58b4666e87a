# crud/dashboard.py
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from commission_guard.models import Contract, PotentialBreach, Alert
from commission_guard.models.potential_breach import UNRESOLVED_STATUSES


async def get_dashboard_counts(db: AsyncSession, agent_id: str, today: date, expiring_before: date) -> dict:
    """ Counts behind the agent dashboard; every value is 0 on an empty data set """
    contracts_query = select(
        func.count(Contract.id).filter(Contract.status == "active").label("active_contracts"),
        func.count(Contract.id).filter(
            and_(
                Contract.status == "active",
                Contract.end_date >= today,
                Contract.end_date <= expiring_before,
            )
        ).label("expiring_soon"),
    ).where(Contract.agent_id == agent_id)

    breaches_query = select(func.count(PotentialBreach.id)).where(
        PotentialBreach.agent_id == agent_id,
        PotentialBreach.status.in_(UNRESOLVED_STATUSES),
    )

    alerts_query = select(func.count(Alert.id)).where(
        Alert.agent_id == agent_id,
        Alert.is_read == False,  # noqa: E712
    )

    contracts_row = (await db.execute(contracts_query)).mappings().first()
    potential_breaches = (await db.execute(breaches_query)).scalar() or 0
    unread_alerts = (await db.execute(alerts_query)).scalar() or 0

    return {
        "active_contracts": contracts_row["active_contracts"] or 0,
        "expiring_soon": contracts_row["expiring_soon"] or 0,
        "potential_breaches": potential_breaches,
        "unread_alerts": unread_alerts,
    }
