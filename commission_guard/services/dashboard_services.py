import json
import logging
from datetime import datetime, timedelta

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.config import Settings
from commission_guard.crud import dashboard as crud_dashboard
from commission_guard.schemas.dashboard import DashboardStats

logger = logging.getLogger(__name__)


class DashboardServices:
    """
        Read-side aggregation for the agent dashboard.

        - active_contracts: contracts with status=active
        - expiring_soon: active contracts ending within ``expiring_soon_days``
        - potential_breaches: breaches still pending or under investigation
        - protected_commission: active_contracts x ``average_commission``
        - unread_alerts: alerts not yet read

        No writes. The assembled response is cached in Redis for
        ``dashboard_cache_seconds``; breach writers call ``invalidate``.
    """

    @staticmethod
    def cache_key(agent_id: str) -> str:
        return f"dashboard_stats:{agent_id}"

    @staticmethod
    async def get_dashboard_stats(
        agent_id: str,
        db: AsyncSession,
        redis: Redis,
        settings: Settings,
    ) -> DashboardStats:
        cache_key = DashboardServices.cache_key(agent_id)

        # 1. --- Checking Redis cache ---
        try:
            cached = await redis.get(cache_key)
        except RedisError as e:
            logger.warning("Dashboard cache read failed for %s: %s", agent_id, e)
            cached = None
        if cached:
            return DashboardStats(**json.loads(cached))

        # 2. --- Aggregate ---
        today = datetime.utcnow().date()
        counts = await crud_dashboard.get_dashboard_counts(
            db, agent_id, today=today, expiring_before=today + timedelta(days=settings.expiring_soon_days)
        )
        stats = DashboardStats(
            active_contracts=counts["active_contracts"],
            expiring_soon=counts["expiring_soon"],
            potential_breaches=counts["potential_breaches"],
            protected_commission=counts["active_contracts"] * settings.average_commission,
            unread_alerts=counts["unread_alerts"],
        )

        # 3. --- Cache ---
        try:
            await redis.set(cache_key, stats.model_dump_json(), ex=settings.dashboard_cache_seconds)
        except RedisError as e:
            logger.warning("Dashboard cache write failed for %s: %s", agent_id, e)
        return stats

    @staticmethod
    async def invalidate(redis: Redis, agent_id: str) -> None:
        try:
            await redis.delete(DashboardServices.cache_key(agent_id))
        except RedisError as e:
            logger.warning("Dashboard cache invalidation failed for %s: %s", agent_id, e)
