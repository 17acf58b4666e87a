from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis
import logging
import traceback

from commission_guard.config import Settings, get_settings
from commission_guard.db.redis_client import get_redis
from commission_guard.db.session import get_db
from commission_guard.dependencies import get_current_user
from commission_guard.errors import InternalError
from commission_guard.models import User
from commission_guard.schemas.dashboard import DashboardStats
from commission_guard.services.dashboard_services import DashboardServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
):
    try:
        return await DashboardServices.get_dashboard_stats(user.id, db, redis, settings)
    except Exception as e:
        logger.error("Error in get_dashboard_stats (agent_id=%s): %s\n%s", user.id, e, traceback.format_exc())
        raise InternalError(str(e))
