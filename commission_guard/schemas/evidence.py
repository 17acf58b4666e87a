"""Typed evidence payloads stored on PotentialBreach.evidence_data.

The payload is a tagged union discriminated by ``kind`` and validated before
it is persisted.
"""

from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from commission_guard.schemas.public_records import NormalizedSaleRecord


class ShowingHistoryItem(BaseModel):
    showing_id: UUID
    property_id: UUID
    scheduled_date: datetime
    status: str
    agent_present: Optional[bool] = None


class VisitHistoryItem(BaseModel):
    visit_id: UUID
    property_id: UUID
    visit_date: datetime
    visit_type: str
    risk_level: Optional[str] = None
    was_scheduled: Optional[bool] = None


class PropertySaleEvidence(BaseModel):
    kind: Literal["property_sale"] = "property_sale"
    sale_record: NormalizedSaleRecord
    showings: List[ShowingHistoryItem] = []
    visits: List[VisitHistoryItem] = []
    narrative: str


class ContractViolationEvidence(BaseModel):
    kind: Literal["contract_violation"] = "contract_violation"
    narrative: str = Field(min_length=1)
    reported_by: Optional[str] = None
    documents: List[str] = []


class ShowingEvidence(BaseModel):
    kind: Literal["showing"] = "showing"
    showing_id: Optional[UUID] = None
    visits: List[VisitHistoryItem] = []
    narrative: str = Field(min_length=1)


Evidence = Annotated[
    Union[PropertySaleEvidence, ContractViolationEvidence, ShowingEvidence],
    Field(discriminator="kind"),
]

evidence_adapter = TypeAdapter(Evidence)

# evidence kinds accepted per breach type
ALLOWED_EVIDENCE = {
    "unauthorized_purchase": {"property_sale", "showing"},
    "contract_violation": {"contract_violation", "property_sale"},
    "other": {"property_sale", "contract_violation", "showing"},
}
