from typing import List
from datetime import datetime
from uuid import UUID

from commission_guard.schemas.common import CamelModel


class DashboardStats(CamelModel):
    active_contracts: int = 0
    expiring_soon: int = 0
    potential_breaches: int = 0
    protected_commission: int = 0
    unread_alerts: int = 0


class MaintenanceReport(CamelModel):
    contracts_expired: int = 0
    protections_expired: int = 0
    showings_marked_no_show: int = 0
    visit_ids: List[UUID] = []
    notifications_retried: int = 0
    notifications_delivered: int = 0
    ran_at: datetime
