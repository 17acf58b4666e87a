from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from commission_guard.config import Settings, get_settings
from commission_guard.crud import showing as crud_showing
from commission_guard.db.session import get_db
from commission_guard.dependencies import get_current_user
from commission_guard.errors import InternalError
from commission_guard.models import User
from commission_guard.schemas.showing import ShowingList, ShowingOut
from commission_guard.services.maintenance import MaintenanceServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/showings", tags=["Showings"])


@router.get(
    "",
    response_model=ShowingList,
    summary="List my showings",
    description="Reconciles overdue scheduled showings to no-show, then returns the agent's showings."
)
async def list_showings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        visit_ids = await MaintenanceServices.reconcile_overdue_showings(db, settings, agent_id=user.id)
        showings = await crud_showing.list_showings(db, user.id)
        return ShowingList(showings=[ShowingOut.model_validate(s) for s in showings], reconciled=len(visit_ids))
    except Exception as e:
        logger.error("Error in list_showings (agent_id=%s): %s\n%s", user.id, e, traceback.format_exc())
        raise InternalError(str(e))
