import logging
from typing import Any, Dict, Optional
from uuid import UUID
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.crud import alert as crud_alert
from commission_guard.crud import potential_breach as crud_breach
from commission_guard.errors import InvalidStateTransition, NotFound, PersistenceError
from commission_guard.models import PotentialBreach, User
from commission_guard.services.dashboard_services import DashboardServices

logger = logging.getLogger(__name__)

# action -> (statuses it may start from, resulting status)
TRANSITIONS = {
    "start_investigation": (("pending",), "investigating"),
    "confirm": (("pending", "investigating"), "confirmed"),
    "dismiss": (("pending", "investigating"), "dismissed"),
}


class BreachReviewWorkflow:
    """
        Human review state machine over PotentialBreach.status.

            pending -> investigating
            pending | investigating -> confirmed
            pending | investigating -> dismissed

        confirmed and dismissed are terminal. Each transition is a conditional
        UPDATE keyed on the expected current status, so of two concurrent confirms
        exactly one succeeds and the other raises InvalidStateTransition.

        Role checks happen at the API boundary (``require_role("admin")``).
        Agent notification after a confirm is the caller's job and runs after the
        commit, so delivery can never undo the transition.
    """

    def __init__(self, db: AsyncSession, redis=None):
        self.db = db
        self.redis = redis

    async def confirm(
        self,
        breach_id: UUID,
        reviewer: User,
        admin_notes: Optional[str] = None,
        requires_legal_action: bool = False,
    ) -> PotentialBreach:
        now = datetime.utcnow()
        breach = await self._transition(breach_id, "confirm", reviewer, {
            "confirmation_date": now,
            "admin_notes": admin_notes,
            "requires_legal_action": requires_legal_action,
        })

        await crud_alert.create_alert(
            self.db,
            agent_id=breach.agent_id,
            type="breach_confirmed",
            title="Commission Breach Confirmed",
            description=(
                f"A {breach.risk_level}-risk breach was confirmed by an administrator. "
                f"Estimated commission loss: ${breach.estimated_commission_loss:,}."
                + (" Legal action recommended." if requires_legal_action else "")
            ),
            severity="critical" if breach.risk_level == "high" else "high",
            contract_id=breach.contract_id,
            client_id=breach.client_id,
            breach_id=breach.id,
        )

        return await self._commit(breach_id, "confirm")

    async def dismiss(self, breach_id: UUID, reviewer: User, admin_notes: Optional[str] = None) -> PotentialBreach:
        await self._transition(breach_id, "dismiss", reviewer, {
            "resolution_date": datetime.utcnow(),
            "resolution_outcome": "dismissed",
            "admin_notes": admin_notes,
        })
        return await self._commit(breach_id, "dismiss")

    async def start_investigation(self, breach_id: UUID, reviewer: User) -> PotentialBreach:
        await self._transition(breach_id, "start_investigation", reviewer, {})
        return await self._commit(breach_id, "start_investigation")

    # --- Internals ---
    async def _transition(self, breach_id: UUID, action: str, reviewer: User, values: Dict[str, Any]) -> PotentialBreach:
        breach = await crud_breach.get_breach(self.db, breach_id)
        if breach is None:
            raise NotFound(f"Breach {breach_id} not found", breach_id=str(breach_id))

        allowed, target = TRANSITIONS[action]
        swapped = await crud_breach.transition_status(
            self.db,
            breach_id,
            expected_statuses=allowed,
            values={"status": target, "admin_reviewer_id": reviewer.id, **values},
        )
        if not swapped:
            current = await crud_breach.get_status(self.db, breach_id)
            logger.info(
                "Rejected %s on breach %s: current status %s", action, breach_id, current
            )
            raise InvalidStateTransition(
                f"Cannot {action.replace('_', ' ')} a breach that is {current}",
                current_status=current,
                breach_id=str(breach_id),
            )
        return breach

    async def _commit(self, breach_id: UUID, action: str) -> PotentialBreach:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to commit %s on breach %s: %s", action, breach_id, e)
            raise PersistenceError(str(e), breach_id=str(breach_id), operation=action)

        breach = await crud_breach.get_breach_detail(self.db, breach_id)
        logger.info("Breach %s -> %s (%s)", breach_id, breach.status, action)
        if self.redis is not None:
            await DashboardServices.invalidate(self.redis, breach.agent_id)
        return breach
