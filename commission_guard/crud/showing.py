# crud/showing.py
from typing import List, Optional, Tuple
from uuid import UUID
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from commission_guard.models import Showing, PropertyVisit


# --- List showings of an agent (read only) ---
async def list_showings(db: AsyncSession, agent_id: str) -> List[Showing]:
    result = await db.execute(
        select(Showing)
        .where(Showing.agent_id == agent_id)
        .order_by(Showing.scheduled_date.desc())
    )
    return result.scalars().all()


# --- Scheduled showings whose start is before the cutoff ---
async def find_overdue_showings(
    db: AsyncSession,
    cutoff: datetime,
    agent_id: Optional[str] = None,
) -> List[Showing]:
    stmt = select(Showing).where(Showing.status == "scheduled", Showing.scheduled_date < cutoff)
    if agent_id:
        stmt = stmt.where(Showing.agent_id == agent_id)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- Conditional no-show transition; False if another writer got there first ---
async def mark_no_show(db: AsyncSession, showing_id: UUID) -> bool:
    result = await db.execute(
        update(Showing)
        .where(Showing.id == showing_id, Showing.status == "scheduled")
        .values(status="no-show", updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def create_property_visit(db: AsyncSession, **fields) -> PropertyVisit:
    visit = PropertyVisit(**fields)
    db.add(visit)
    await db.flush()
    return visit


# --- Showing + visit history used as breach evidence ---
async def get_client_history(
    db: AsyncSession,
    agent_id: str,
    client_id: UUID,
    property_id: Optional[UUID] = None,
) -> Tuple[List[Showing], List[PropertyVisit]]:
    showing_stmt = select(Showing).where(Showing.agent_id == agent_id, Showing.client_id == client_id)
    visit_stmt = select(PropertyVisit).where(
        PropertyVisit.agent_id == agent_id, PropertyVisit.client_id == client_id
    )
    if property_id:
        showing_stmt = showing_stmt.where(Showing.property_id == property_id)
        visit_stmt = visit_stmt.where(PropertyVisit.property_id == property_id)

    showings = (await db.execute(showing_stmt.order_by(Showing.scheduled_date))).scalars().all()
    visits = (await db.execute(visit_stmt.order_by(PropertyVisit.visit_date))).scalars().all()
    return showings, visits
