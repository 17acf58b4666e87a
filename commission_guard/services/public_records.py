import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from datetime import date, datetime, timedelta

import httpx

from commission_guard.config import Settings
from commission_guard.errors import ValidationError
from commission_guard.schemas.public_records import MonitoringInfo, NormalizedSaleRecord, ProviderStatus
from commission_guard.services.record_providers import OFFICIAL, SECONDARY, SaleRecordProvider, build_providers
from commission_guard.utils.normalize import normalize_name, split_parties

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    records: List[NormalizedSaleRecord]
    providers: Dict[str, ProviderStatus]
    data_source: str
    monitoring: MonitoringInfo
    scanned_at: datetime = field(default_factory=datetime.utcnow)


class PublicRecordsScanner:
    """
        Queries deed / sale-record providers for transactions involving a client.

        Provider selection:
        - Providers without credentials are skipped (reported as ``skipped``, not a failure).
        - If any official provider is configured, only official providers are queried.
          Otherwise the configured secondary providers are used.

        Execution:
        - Selected providers run concurrently, each under its own timeout.
        - One provider failing (timeout, transport, non-2xx, malformed payload) yields
          zero records from it and an ``error`` status; the scan carries on.
        - Results are concatenated in priority order. No cross-provider dedup here;
          duplicates collapse at breach persistence.
        - Only records whose buyer or seller party equals the client name
          (case-insensitive) are returned.
    """

    def __init__(self, settings: Settings, providers: Sequence[SaleRecordProvider]):
        self.settings = settings
        self.providers = list(providers)
        self.timeout = settings.provider_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> "PublicRecordsScanner":
        return cls(settings, build_providers(settings, http_client))

    def select_providers(self) -> List[SaleRecordProvider]:
        configured = [p for p in self.providers if p.configured]
        official = [p for p in configured if p.tier == OFFICIAL]
        if official:
            return official
        return [p for p in configured if p.tier == SECONDARY]

    async def scan(
        self,
        client_name: str,
        contract_start: date,
        contract_end: date,
        agent_identifier: Optional[str] = None,
    ) -> ScanOutcome:
        if not client_name or not client_name.strip():
            raise ValidationError("clientName is required")
        if contract_start >= contract_end:
            raise ValidationError("contractStartDate must be before contractEndDate")

        scanned_at = datetime.utcnow()
        selected = self.select_providers()
        statuses = {
            p.name: ProviderStatus(provider=p.name, status="skipped")
            for p in self.providers if p not in selected
        }

        results = await asyncio.gather(
            *(self._run_provider(p, client_name, contract_start, contract_end) for p in selected)
        )

        records: List[NormalizedSaleRecord] = []
        labels = []
        for provider, (status, provider_records) in zip(selected, results):
            statuses[provider.name] = status
            if status.status == "ok":
                labels.append(provider.label)
                records.extend(r for r in provider_records if self._matches_client(r, client_name))

        ok = sum(1 for s in statuses.values() if s.status == "ok")
        failed = sum(1 for s in statuses.values() if s.status == "error")
        if ok and not failed:
            scan_status = "active"
        elif ok:
            scan_status = "degraded"
        else:
            scan_status = "unavailable"

        logger.info(
            "Public records scan finished: agent_id=%s providers=%s records=%d status=%s",
            agent_identifier, {name: s.status for name, s in statuses.items()}, len(records), scan_status,
        )

        return ScanOutcome(
            records=records,
            providers=statuses,
            data_source=" + ".join(labels) if labels else "No public records provider available",
            monitoring=MonitoringInfo(
                last_scanned=scanned_at,
                next_scan=scanned_at + timedelta(hours=self.settings.scan_interval_hours),
                status=scan_status,
            ),
            scanned_at=scanned_at,
        )

    async def _run_provider(self, provider: SaleRecordProvider, client_name: str, start: date, end: date):
        try:
            records = await asyncio.wait_for(provider.search(client_name, start, end), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Provider %s timed out after %ss", provider.name, self.timeout)
            return ProviderStatus(provider=provider.name, status="error", error=f"timed out after {self.timeout}s"), []
        except Exception as e:
            # a single provider never aborts the scan
            logger.warning("Provider %s failed: %s", provider.name, e, exc_info=True)
            return ProviderStatus(provider=provider.name, status="error", error=str(e) or type(e).__name__), []

        return ProviderStatus(provider=provider.name, status="ok", records=len(records)), records

    @staticmethod
    def _matches_client(record: NormalizedSaleRecord, client_name: str) -> bool:
        wanted = normalize_name(client_name)
        return wanted in split_parties(record.buyer_name) or wanted in split_parties(record.seller_name)
