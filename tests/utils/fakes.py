"""Stand-ins for collaborators that talk to the outside world."""

from datetime import datetime, timedelta

from commission_guard.schemas.public_records import MonitoringInfo, ProviderStatus
from commission_guard.services.public_records import ScanOutcome


class FakeScanner:
    """Returns a fixed record set, like a provider whose data did not change."""

    def __init__(self, records, scanned_at=datetime(2024, 3, 20, 12, 0)):
        self.records = records
        self.scanned_at = scanned_at
        self.calls = 0
        self.windows = []

    async def scan(self, client_name, contract_start, contract_end, agent_identifier=None):
        self.calls += 1
        self.windows.append((contract_start, contract_end))
        return ScanOutcome(
            records=list(self.records),
            providers={"attom": ProviderStatus(provider="attom", status="ok", records=len(self.records))},
            data_source="ATTOM Data",
            monitoring=MonitoringInfo(
                last_scanned=self.scanned_at,
                next_scan=self.scanned_at + timedelta(hours=24),
                status="active",
            ),
            scanned_at=self.scanned_at,
        )
