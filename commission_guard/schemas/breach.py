from typing import Any, Dict, Literal, Optional
from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from commission_guard.schemas.common import CamelModel

BreachStatus = Literal["pending", "investigating", "confirmed", "dismissed"]


class PotentialBreachOut(CamelModel):
    id: UUID
    agent_id: str
    client_id: UUID
    contract_id: UUID
    property_id: Optional[UUID] = None
    breach_type: str
    detection_method: str
    detection_date: datetime
    breach_date: Optional[date] = None
    evidence_data: Dict[str, Any]
    risk_level: str
    estimated_commission_loss: int
    auto_detection_score: int
    status: BreachStatus
    admin_reviewer_id: Optional[str] = None
    admin_notes: Optional[str] = None
    confirmation_date: Optional[datetime] = None
    agent_notified_date: Optional[datetime] = None
    resolution_date: Optional[datetime] = None
    resolution_outcome: Optional[str] = None
    requires_legal_action: bool = False
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Joined views for the admin listing ---
class BreachAgent(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: str


class BreachClient(CamelModel):
    id: UUID
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class BreachContract(CamelModel):
    id: UUID
    representation_type: str
    property_address: Optional[str] = None
    start_date: date
    end_date: date
    status: str


class PotentialBreachDetail(PotentialBreachOut):
    agent: Optional[BreachAgent] = None
    client: Optional[BreachClient] = None
    contract: Optional[BreachContract] = None


# --- Review requests ---
class ConfirmBreachRequest(CamelModel):
    admin_notes: Optional[str] = None
    requires_legal_action: bool = False


class DismissBreachRequest(CamelModel):
    admin_notes: Optional[str] = None


class ReportBreachRequest(CamelModel):
    contract_id: UUID
    property_id: Optional[UUID] = None
    breach_type: Literal["unauthorized_purchase", "contract_violation", "other"]
    detection_method: Literal["client_report", "gps_tracking", "manual"]
    breach_date: Optional[date] = None
    estimated_commission_loss: int = Field(default=0, ge=0)
    evidence: Dict[str, Any]
    description: Optional[str] = None


class BreachStats(CamelModel):
    total_breaches: int = 0
    pending_breaches: int = 0
    investigating_breaches: int = 0
    confirmed_breaches: int = 0
    dismissed_breaches: int = 0
    high_risk_breaches: int = 0
    total_commission_loss: int = 0
