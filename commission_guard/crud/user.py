# crud/user.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.models.user import User


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await db.get(User, user_id)
