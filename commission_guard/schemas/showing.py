from typing import List, Optional
from datetime import datetime
from uuid import UUID

from commission_guard.schemas.common import CamelModel


class ShowingOut(CamelModel):
    id: UUID
    agent_id: str
    client_id: UUID
    property_id: UUID
    scheduled_date: datetime
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    showing_type: str
    status: str
    agent_present: Optional[bool] = None
    agent_notes: Optional[str] = None
    interest_level: Optional[str] = None
    commission_protected: Optional[bool] = None


class ShowingList(CamelModel):
    showings: List[ShowingOut]
    reconciled: int = 0
