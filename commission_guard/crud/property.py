# crud/property.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from commission_guard.models import Property
from commission_guard.utils.normalize import normalize_address


async def find_property_by_address(db: AsyncSession, address: Optional[str]) -> Optional[Property]:
    normalized = normalize_address(address)
    if not normalized:
        return None
    result = await db.execute(
        select(Property).where(func.lower(func.trim(Property.address)) == normalized).limit(1)
    )
    return result.scalars().first()
