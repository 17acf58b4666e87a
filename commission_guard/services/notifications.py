"""Agent notification when an administrator confirms a breach.

Email goes through SendGrid and SMS through Twilio, whichever are configured.
Delivery runs after the confirm has committed. A failed delivery is logged and
the breach id is queued in Redis for ``retry_failed_notifications``.
"""

import logging
from typing import Optional
from uuid import UUID
from datetime import datetime

import httpx
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commission_guard.config import Settings
from commission_guard.crud import potential_breach as crud_breach
from commission_guard.crud import user as crud_user
from commission_guard.models import PotentialBreach, User

logger = logging.getLogger(__name__)

RETRY_QUEUE_KEY = "notifications:breach_confirmed:retry"
SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
TWILIO_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class AgentNotifier:

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker,
        redis: Redis,
        http_client: httpx.AsyncClient,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.redis = redis
        self.http = http_client

    async def notify_breach_confirmed(self, breach_id: UUID) -> bool:
        """Deliver the confirmation notice. Never raises; returns True once delivered."""
        try:
            async with self.session_factory() as db:
                delivered = await self._deliver(db, breach_id)
        except Exception as e:
            logger.error("Notification for breach %s failed: %s", breach_id, e, exc_info=True)
            delivered = False

        if not delivered:
            await self._queue_retry(breach_id)
        return delivered

    async def retry_failed_notifications(self, limit: int = 50) -> tuple:
        """Drain up to ``limit`` queued breach ids. Returns (attempted, delivered)."""
        pending = []
        try:
            for _ in range(limit):
                item = await self.redis.lpop(RETRY_QUEUE_KEY)
                if item is None:
                    break
                pending.append(item)
        except RedisError as e:
            logger.warning("Could not read notification retry queue: %s", e)

        delivered = 0
        for item in pending:
            if await self.notify_breach_confirmed(UUID(str(item))):
                delivered += 1
        return len(pending), delivered

    # --- Internals ---
    async def _deliver(self, db: AsyncSession, breach_id: UUID) -> bool:
        breach = await crud_breach.get_breach(db, breach_id)
        if breach is None:
            logger.warning("Breach %s vanished before notification", breach_id)
            return True  # nothing left to notify about
        if breach.agent_notified_date is not None:
            return True

        agent = await crud_user.get_user(db, breach.agent_id)
        if agent is None:
            logger.warning("Agent %s for breach %s not found", breach.agent_id, breach_id)
            return True

        subject, body = self._compose(breach, agent)
        sent = False
        if self.settings.has_sendgrid() and agent.email:
            sent = await self._send_email(agent.email, subject, body) or sent
        if self.settings.has_twilio() and agent.phone:
            sent = await self._send_sms(agent.phone, f"{subject}: {body}") or sent

        if not sent:
            logger.warning("No notification channel delivered for breach %s (agent %s)", breach_id, agent.id)
            return False

        await crud_breach.mark_agent_notified(db, breach_id, datetime.utcnow())
        await db.commit()
        logger.info("Agent %s notified of confirmed breach %s", agent.id, breach_id)
        return True

    @staticmethod
    def _compose(breach: PotentialBreach, agent: User):
        subject = "Commission breach confirmed"
        body = (
            f"Hi {agent.first_name or 'there'}, a potential commission breach "
            f"({breach.breach_type.replace('_', ' ')}) has been confirmed after review. "
            f"Estimated commission loss: ${breach.estimated_commission_loss:,}."
        )
        if breach.requires_legal_action:
            body += " The reviewer recommends legal action."
        if breach.admin_notes:
            body += f" Reviewer notes: {breach.admin_notes}"
        return subject, body

    async def _send_email(self, to_email: str, subject: str, body: str) -> bool:
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.settings.notification_from_email},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        try:
            resp = await self.http.post(
                SENDGRID_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.sendgrid_api_key}"},
            )
            return resp.status_code in (200, 202)
        except httpx.HTTPError as e:
            logger.warning("SendGrid delivery failed: %s", e)
            return False

    async def _send_sms(self, to_number: str, body: str) -> bool:
        try:
            resp = await self.http.post(
                TWILIO_URL.format(sid=self.settings.twilio_account_sid),
                data={"To": to_number, "From": self.settings.twilio_from_number, "Body": body},
                auth=(self.settings.twilio_account_sid, self.settings.twilio_auth_token),
            )
            return resp.status_code in (200, 201)
        except httpx.HTTPError as e:
            logger.warning("Twilio delivery failed: %s", e)
            return False

    async def _queue_retry(self, breach_id: UUID) -> None:
        try:
            await self.redis.rpush(RETRY_QUEUE_KEY, str(breach_id))
        except RedisError as e:
            logger.error("Could not queue notification retry for breach %s: %s", breach_id, e)
