# crud/alert.py
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.models import Alert


async def create_alert(
    db: AsyncSession,
    agent_id: str,
    type: str,
    title: str,
    description: str,
    severity: str = "medium",
    contract_id: Optional[UUID] = None,
    client_id: Optional[UUID] = None,
    breach_id: Optional[UUID] = None,
) -> Alert:
    alert = Alert(
        agent_id=agent_id,
        type=type,
        title=title,
        description=description,
        severity=severity,
        contract_id=contract_id,
        client_id=client_id,
        breach_id=breach_id,
    )
    db.add(alert)
    return alert
