from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging
import traceback

from commission_guard.config import Settings, get_settings
from commission_guard.db.redis_client import get_redis
from commission_guard.db.session import get_db
from commission_guard.dependencies import get_notifier, require_role
from commission_guard.errors import CommissionGuardError, InternalError
from commission_guard.models import User
from commission_guard.schemas.breach import (
    BreachStats,
    BreachStatus,
    ConfirmBreachRequest,
    DismissBreachRequest,
    PotentialBreachDetail,
)
from commission_guard.schemas.dashboard import MaintenanceReport
from commission_guard.services.breach_review import BreachReviewWorkflow
from commission_guard.services.breach_services import BreachServices
from commission_guard.services.maintenance import MaintenanceServices
from commission_guard.services.notifications import AgentNotifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get(
    "/potential-breaches",
    response_model=List[PotentialBreachDetail],
    summary="List potential breaches across all agents",
)
async def list_potential_breaches(
    status: Optional[BreachStatus] = Query(None, description="Filter by review status"),
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await BreachServices.list_breaches_service(admin, db, status=status, all_agents=True)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in list_potential_breaches (admin=%s): %s\n%s", admin.id, e, traceback.format_exc())
        raise InternalError(str(e))


@router.get("/breach-stats", response_model=BreachStats, summary="Breach statistics across all agents")
async def get_breach_stats(
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await BreachServices.get_stats_service(admin, db, all_agents=True)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in get_breach_stats (admin=%s): %s\n%s", admin.id, e, traceback.format_exc())
        raise InternalError(str(e))


@router.post(
    "/potential-breaches/{breach_id}/confirm",
    response_model=PotentialBreachDetail,
    summary="Confirm a potential breach",
    description="Moves a pending or investigating breach to confirmed and notifies the agent after the commit."
)
async def confirm_breach(
    breach_id: UUID,
    request: ConfirmBreachRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    notifier: AgentNotifier = Depends(get_notifier),
):
    try:
        breach = await BreachReviewWorkflow(db, redis).confirm(
            breach_id, admin, request.admin_notes, request.requires_legal_action
        )
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error(
            "Error in confirm_breach (admin=%s, breach_id=%s): %s\n%s",
            admin.id, breach_id, e, traceback.format_exc(),
        )
        raise InternalError(str(e))

    # runs after the response; delivery problems never touch the breach state
    background_tasks.add_task(notifier.notify_breach_confirmed, breach_id)
    return breach


@router.post(
    "/potential-breaches/{breach_id}/dismiss",
    response_model=PotentialBreachDetail,
    summary="Dismiss a potential breach",
)
async def dismiss_breach(
    breach_id: UUID,
    request: DismissBreachRequest,
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    try:
        return await BreachReviewWorkflow(db, redis).dismiss(breach_id, admin, request.admin_notes)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error(
            "Error in dismiss_breach (admin=%s, breach_id=%s): %s\n%s",
            admin.id, breach_id, e, traceback.format_exc(),
        )
        raise InternalError(str(e))


@router.post(
    "/potential-breaches/{breach_id}/investigate",
    response_model=PotentialBreachDetail,
    summary="Start investigating a pending breach",
)
async def start_investigation(
    breach_id: UUID,
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    try:
        return await BreachReviewWorkflow(db, redis).start_investigation(breach_id, admin)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error(
            "Error in start_investigation (admin=%s, breach_id=%s): %s\n%s",
            admin.id, breach_id, e, traceback.format_exc(),
        )
        raise InternalError(str(e))


@router.post(
    "/maintenance/run",
    response_model=MaintenanceReport,
    summary="Run housekeeping",
    description="Expires contracts and protections, reconciles overdue showings and retries failed notifications."
)
async def run_maintenance(
    admin: User = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: AgentNotifier = Depends(get_notifier),
):
    try:
        return await MaintenanceServices.run_all(db, settings, notifier)
    except CommissionGuardError:
        raise
    except Exception as e:
        logger.error("Error in run_maintenance (admin=%s): %s\n%s", admin.id, e, traceback.format_exc())
        raise InternalError(str(e))
