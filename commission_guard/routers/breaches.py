from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging
import traceback

from commission_guard.config import Settings, get_settings
from commission_guard.db.redis_client import get_redis
from commission_guard.db.session import get_db
from commission_guard.dependencies import get_current_user
from commission_guard.errors import CommissionGuardError, InternalError
from commission_guard.models import User
from commission_guard.schemas.breach import BreachStats, BreachStatus, PotentialBreachDetail, ReportBreachRequest
from commission_guard.services.breach_services import BreachServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Breaches"])


@router.get("/potential-breaches", response_model=List[PotentialBreachDetail], summary="List my potential breaches")
async def list_my_breaches(
    status: Optional[BreachStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await BreachServices.list_breaches_service(user, db, status=status)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in list_my_breaches (agent_id=%s): %s\n%s", user.id, e, traceback.format_exc())
        raise InternalError(str(e))


@router.post(
    "/potential-breaches",
    response_model=PotentialBreachDetail,
    status_code=201,
    summary="Report a potential breach",
    description="Records a breach found outside public records (client report, GPS tracking or manual entry)."
)
async def report_breach(
    request: ReportBreachRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    settings: Settings = Depends(get_settings),
):
    try:
        return await BreachServices.report_breach_service(request, user, db, redis, settings)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in report_breach (agent_id=%s): %s\n%s", user.id, e, traceback.format_exc())
        raise InternalError(str(e))


@router.get("/potential-breaches/{breach_id}", response_model=PotentialBreachDetail)
async def get_breach(
    breach_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await BreachServices.get_breach_service(breach_id, user, db)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error(
            "Error in get_breach (agent_id=%s, breach_id=%s): %s\n%s", user.id, breach_id, e, traceback.format_exc()
        )
        raise InternalError(str(e))


@router.get("/breach-stats", response_model=BreachStats, summary="Statistics over my breaches")
async def get_my_breach_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await BreachServices.get_stats_service(user, db)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in get_my_breach_stats (agent_id=%s): %s\n%s", user.id, e, traceback.format_exc())
        raise InternalError(str(e))
