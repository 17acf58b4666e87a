# crud/contract.py
from typing import Optional
from datetime import date
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from commission_guard.models import Contract, Client


# --- Fetch Contract by ID ---
async def get_contract(db: AsyncSession, contract_id: UUID) -> Optional[Contract]:
    return await db.get(Contract, contract_id)


async def get_client(db: AsyncSession, client_id: UUID) -> Optional[Client]:
    return await db.get(Client, client_id)


# --- Resolve the contract a scan refers to ---
async def find_contract_for_client(
    db: AsyncSession,
    agent_id: str,
    client_name: str,
    start_date: date,
    end_date: date,
) -> Optional[Contract]:
    """
    Latest contract of this agent whose client has the given name (case-insensitive)
    and whose window overlaps [start_date, end_date]. Active contracts win over
    expired ones.
    """
    stmt = (
        select(Contract)
        .join(Client, Client.id == Contract.client_id)
        .where(
            Contract.agent_id == agent_id,
            func.lower(func.trim(Client.full_name)) == client_name.strip().lower(),
            Contract.start_date <= end_date,
            Contract.end_date >= start_date,
            Contract.status != "terminated",
        )
        .order_by((Contract.status == "active").desc(), Contract.start_date.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


# --- Expire contracts past their end date ---
async def expire_contracts(db: AsyncSession, today: date) -> int:
    stmt = (
        update(Contract)
        .where(Contract.status == "active", Contract.end_date < today)
        .values(status="expired")
    )
    result = await db.execute(stmt)
    return result.rowcount or 0
