from typing import Dict, List, Literal, Optional
from datetime import date, datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from commission_guard.schemas.common import CamelModel


# --- Request ---
class MonitorPublicRecordsRequest(CamelModel):
    client_name: str = Field(min_length=1)
    contract_start_date: date
    contract_end_date: date
    contract_id: Optional[UUID] = None

    @field_validator("client_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("clientName must not be blank")
        return v

    @model_validator(mode="after")
    def _check_window(self):
        if self.contract_start_date >= self.contract_end_date:
            raise ValueError("contractStartDate must be before contractEndDate")
        return self


# --- Scanner output ---
class NormalizedSaleRecord(CamelModel):
    source: str
    county: Optional[str] = None
    buyer_name: Optional[str] = None
    seller_name: Optional[str] = None
    property_address: Optional[str] = None
    sale_date: date
    recording_date: Optional[date] = None
    sale_price: int = Field(ge=0)
    buyer_agent: Optional[str] = None
    listing_agent: Optional[str] = None
    estimated_lost_commission: int = Field(ge=0)


class ProviderStatus(CamelModel):
    provider: str
    status: Literal["ok", "error", "skipped"]
    records: int = 0
    error: Optional[str] = None


class MonitoringInfo(CamelModel):
    last_scanned: datetime
    next_scan: datetime
    status: Literal["active", "degraded", "unavailable"]


class ScanResults(CamelModel):
    total_records_found: int
    breaches_detected: int
    breach_records: List[NormalizedSaleRecord]
    estimated_lost_commission: int
    data_source: str
    new_breaches_created: int = 0
    breach_ids: List[UUID] = []
    providers: Dict[str, ProviderStatus] = {}


# --- Response ---
class MonitorPublicRecordsResponse(CamelModel):
    success: bool
    contract_id: UUID
    scan_results: ScanResults
    monitoring: MonitoringInfo
