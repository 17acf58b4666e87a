# crud/commission_protection.py
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update

from commission_guard.models import CommissionProtection


# --- Expire protections past their expiration date ---
async def expire_protections(db: AsyncSession, now: datetime) -> int:
    stmt = (
        update(CommissionProtection)
        .where(
            CommissionProtection.status == "active",
            CommissionProtection.expiration_date.isnot(None),
            CommissionProtection.expiration_date < now,
        )
        .values(status="expired", updated_at=now)
    )
    result = await db.execute(stmt)
    return result.rowcount or 0
