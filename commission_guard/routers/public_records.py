from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from commission_guard.config import Settings, get_settings
from commission_guard.db.redis_client import get_redis
from commission_guard.db.session import get_db
from commission_guard.dependencies import get_current_user, get_scanner
from commission_guard.errors import CommissionGuardError, InternalError
from commission_guard.models import User
from commission_guard.schemas.public_records import MonitorPublicRecordsRequest, MonitorPublicRecordsResponse
from commission_guard.services.breach_services import BreachServices
from commission_guard.services.public_records import PublicRecordsScanner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Public Records"])


@router.post(
    "/monitor-public-records",
    response_model=MonitorPublicRecordsResponse,
    summary="Scan public records for a client",
    description="Queries deed/sale-record providers for the client within the contract window, "
                "records new potential breaches and raises a breach alert for each."
)
async def monitor_public_records(
    request: MonitorPublicRecordsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    scanner: PublicRecordsScanner = Depends(get_scanner),
    settings: Settings = Depends(get_settings),
):
    try:
        return await BreachServices.monitor_public_records_service(request, user, db, redis, scanner, settings)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error(
            "Error in monitor_public_records (agent_id=%s, client=%s): %s\n%s",
            user.id, request.client_name, e, traceback.format_exc(),
        )
        raise InternalError(str(e))
