# crud/potential_breach.py
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload

from commission_guard.models import PotentialBreach


# --- Fetch ---
async def get_breach(db: AsyncSession, breach_id: UUID) -> Optional[PotentialBreach]:
    return await db.get(PotentialBreach, breach_id)


async def get_breach_detail(db: AsyncSession, breach_id: UUID) -> Optional[PotentialBreach]:
    result = await db.execute(
        select(PotentialBreach)
        .options(
            selectinload(PotentialBreach.agent),
            selectinload(PotentialBreach.client),
            selectinload(PotentialBreach.contract),
        )
        .where(PotentialBreach.id == breach_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_status(db: AsyncSession, breach_id: UUID) -> Optional[str]:
    """Current status straight from storage, bypassing the identity map."""
    result = await db.execute(select(PotentialBreach.status).where(PotentialBreach.id == breach_id))
    return result.scalar_one_or_none()


# --- List, scoped to one agent unless agent_id is None (admin) ---
async def list_breaches(
    db: AsyncSession,
    agent_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[PotentialBreach]:
    stmt = (
        select(PotentialBreach)
        .options(
            selectinload(PotentialBreach.agent),
            selectinload(PotentialBreach.client),
            selectinload(PotentialBreach.contract),
        )
        .order_by(PotentialBreach.detection_date.desc())
    )
    if agent_id is not None:
        stmt = stmt.where(PotentialBreach.agent_id == agent_id)
    if status is not None:
        stmt = stmt.where(PotentialBreach.status == status)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- Dedup keys held by non-dismissed breaches of a contract ---
async def get_open_breach_keys(db: AsyncSession, contract_id: UUID) -> Set[Tuple[str, Optional[date]]]:
    result = await db.execute(
        select(PotentialBreach.property_address, PotentialBreach.breach_date).where(
            PotentialBreach.contract_id == contract_id,
            PotentialBreach.status != "dismissed",
        )
    )
    return {(row.property_address or "", row.breach_date) for row in result}


# --- Insert ---
async def create_breach(db: AsyncSession, **fields: Any) -> PotentialBreach:
    breach = PotentialBreach(**fields)
    db.add(breach)
    await db.flush()
    return breach


# --- Compare-and-swap status transition ---
async def transition_status(
    db: AsyncSession,
    breach_id: UUID,
    expected_statuses: Iterable[str],
    values: Dict[str, Any],
) -> bool:
    """
    UPDATE ... WHERE id = :id AND status IN (:expected).
    Returns True only for the writer whose update matched the row.
    """
    stmt = (
        update(PotentialBreach)
        .where(
            PotentialBreach.id == breach_id,
            PotentialBreach.status.in_(list(expected_statuses)),
        )
        .values(**values, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def mark_agent_notified(db: AsyncSession, breach_id: UUID, when: datetime) -> bool:
    result = await db.execute(
        update(PotentialBreach)
        .where(PotentialBreach.id == breach_id, PotentialBreach.agent_notified_date.is_(None))
        .values(agent_notified_date=when)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# --- Aggregation ---
async def get_breach_stats(db: AsyncSession, agent_id: Optional[str] = None) -> Dict[str, int]:
    query = select(
        func.count(PotentialBreach.id).label("total_breaches"),
        func.count(PotentialBreach.id).filter(PotentialBreach.status == "pending").label("pending_breaches"),
        func.count(PotentialBreach.id).filter(PotentialBreach.status == "investigating").label("investigating_breaches"),
        func.count(PotentialBreach.id).filter(PotentialBreach.status == "confirmed").label("confirmed_breaches"),
        func.count(PotentialBreach.id).filter(PotentialBreach.status == "dismissed").label("dismissed_breaches"),
        func.count(PotentialBreach.id).filter(
            PotentialBreach.risk_level == "high", PotentialBreach.status != "dismissed"
        ).label("high_risk_breaches"),
        func.coalesce(
            func.sum(PotentialBreach.estimated_commission_loss).filter(PotentialBreach.status != "dismissed"),
            0,
        ).label("total_commission_loss"),
    )
    if agent_id is not None:
        query = query.where(PotentialBreach.agent_id == agent_id)

    result = await db.execute(query)
    row = result.mappings().first()
    return {key: int(value or 0) for key, value in row.items()}
