"""Tests for the public-records scanner and provider adapters."""

import asyncio
import httpx
import pytest
from datetime import date

from commission_guard.errors import ValidationError
from commission_guard.services.public_records import PublicRecordsScanner
from commission_guard.services.record_providers import (
    OFFICIAL,
    RentCastProvider,
    SaleRecordProvider,
    parse_date,
    parse_price,
)

START, END = date(2024, 1, 1), date(2024, 6, 30)

ATTOM_PAYLOAD = {
    "property": [
        {
            "address": {"oneLine": "123 MAIN ST, AUSTIN, TX 78701"},
            "area": {"countrysecsubd": "Travis"},
            "sale": {
                "saleTransDate": "2024-03-15",
                "buyerName": "JOHN SMITH & JANE SMITH",
                "sellerName": "MARY JONES",
                "buyerAgentName": "Jane Doe",
                "amount": {"saleamt": 500000, "salerecdate": "2024-03-20"},
            },
        },
        {
            "address": {"oneLine": "9 ELM ST, AUSTIN, TX 78702"},
            "sale": {
                "saleTransDate": "2024-02-01",
                "buyerName": "SOMEONE ELSE",
                "sellerName": "ANOTHER PERSON",
                "amount": {"saleamt": 300000},
            },
        },
    ]
}

REGRID_PAYLOAD = {
    "results": [
        {
            "properties": {
                "fields": {
                    "address": "55 Oak Ave",
                    "owner": "John Smith",
                    "previous_owner": "Lee Chen",
                    "saledate": "2024-04-02",
                    "saleprice": "$410,000",
                    "county": "Travis",
                }
            }
        }
    ]
}


class RecordingTransport:
    """Routes by host and remembers which hosts were called."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.host)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404)
        return handler(request)


def make_scanner(settings, routes, **overrides):
    transport = RecordingTransport(routes)
    client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    scanner = PublicRecordsScanner.from_settings(settings.model_copy(update=overrides), client)
    return scanner, transport


@pytest.mark.unit
@pytest.mark.asyncio
async def test_scan_without_credentials_skips_every_provider(settings):
    scanner, transport = make_scanner(settings, {})

    outcome = await scanner.scan("John Smith", START, END)

    assert outcome.records == []
    assert {s.status for s in outcome.providers.values()} == {"skipped"}
    assert outcome.monitoring.status == "unavailable"
    assert outcome.data_source == "No public records provider available"
    assert transport.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_scan_filters_records_to_client_and_estimates_commission(settings):
    routes = {"api.gateway.attomdata.com": lambda r: httpx.Response(200, json=ATTOM_PAYLOAD)}
    scanner, _ = make_scanner(settings, routes, attom_api_key="attom-key")

    outcome = await scanner.scan("john smith", START, END)

    assert len(outcome.records) == 1
    record = outcome.records[0]
    assert record.source == "ATTOM Data"
    assert record.sale_date == date(2024, 3, 15)
    assert record.recording_date == date(2024, 3, 20)
    assert record.sale_price == 500000
    assert record.estimated_lost_commission == 15000
    assert record.buyer_agent == "Jane Doe"
    assert outcome.providers["attom"].status == "ok"
    assert outcome.providers["attom"].records == 2
    assert outcome.monitoring.status == "active"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_official_providers_take_priority_over_secondary(settings):
    routes = {
        "api.gateway.attomdata.com": lambda r: httpx.Response(200, json=ATTOM_PAYLOAD),
        "app.regrid.com": lambda r: httpx.Response(200, json=REGRID_PAYLOAD),
    }
    scanner, transport = make_scanner(settings, routes, attom_api_key="attom-key", regrid_api_key="regrid-key")

    outcome = await scanner.scan("John Smith", START, END)

    assert transport.calls == ["api.gateway.attomdata.com"]
    assert outcome.providers["regrid"].status == "skipped"
    assert outcome.data_source == "ATTOM Data"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_secondary_providers_used_when_no_official_configured(settings):
    routes = {"app.regrid.com": lambda r: httpx.Response(200, json=REGRID_PAYLOAD)}
    scanner, _ = make_scanner(settings, routes, regrid_api_key="regrid-key")

    outcome = await scanner.scan("John Smith", START, END)

    assert outcome.data_source == "Regrid"
    assert outcome.records[0].sale_price == 410000
    assert outcome.records[0].estimated_lost_commission == 12300
    assert outcome.records[0].buyer_agent is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_provider_does_not_abort_scan(settings):
    routes = {
        "county.example.gov": lambda r: httpx.Response(503, json={"error": "down"}),
        "api.gateway.attomdata.com": lambda r: httpx.Response(200, json=ATTOM_PAYLOAD),
    }
    scanner, _ = make_scanner(
        settings,
        routes,
        county_records_api_url="https://county.example.gov/api",
        county_records_api_key="county-key",
        attom_api_key="attom-key",
    )

    outcome = await scanner.scan("John Smith", START, END)

    assert outcome.providers["county_records"].status == "error"
    assert outcome.providers["county_records"].error
    assert outcome.providers["attom"].status == "ok"
    assert len(outcome.records) == 1
    assert outcome.monitoring.status == "degraded"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_malformed_payload_is_reported_as_provider_error(settings):
    routes = {"api.gateway.attomdata.com": lambda r: httpx.Response(200, json={"property": "oops"})}
    scanner, _ = make_scanner(settings, routes, attom_api_key="attom-key")

    outcome = await scanner.scan("John Smith", START, END)

    assert outcome.records == []
    assert outcome.providers["attom"].status == "error"
    assert "malformed" in outcome.providers["attom"].error


class SlowProvider(SaleRecordProvider):
    name = "slow"
    label = "Slow Provider"
    tier = OFFICIAL

    @property
    def configured(self):
        return True

    async def _fetch(self, client_name, start, end):
        await asyncio.sleep(5)
        return []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_provider_timeout_is_isolated(settings):
    fast_settings = settings.model_copy(update={"provider_timeout_seconds": 0.05})
    scanner = PublicRecordsScanner(fast_settings, [SlowProvider(fast_settings, None)])

    outcome = await scanner.scan("John Smith", START, END)

    assert outcome.providers["slow"].status == "error"
    assert "timed out" in outcome.providers["slow"].error
    assert outcome.monitoring.status == "unavailable"


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("name,start,end", [
    ("   ", START, END),
    ("John Smith", END, START),
    ("John Smith", START, START),
])
async def test_scan_rejects_invalid_input(settings, name, start, end):
    scanner = PublicRecordsScanner(settings, [])
    with pytest.raises(ValidationError):
        await scanner.scan(name, start, end)


@pytest.mark.unit
def test_rentcast_normalizes_sale_history(settings):
    provider = RentCastProvider(settings, None)
    item = {
        "formattedAddress": "77 Pine Rd, Austin, TX 78704",
        "county": "Travis",
        "owner": {"names": ["John Smith"]},
        "history": {
            "2024-05-01": {"event": "Sale", "date": "2024-05-01T00:00:00.000Z", "price": 350000},
            "2023-01-10": {"event": "Listing", "date": "2023-01-10", "price": 360000},
        },
    }

    records = list(provider._normalize(item))

    assert len(records) == 1
    assert records[0].sale_date == date(2024, 5, 1)
    assert records[0].estimated_lost_commission == 10500
    assert records[0].buyer_name == "John Smith"


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("2024-03-15", date(2024, 3, 15)),
    ("2024/03/15", date(2024, 3, 15)),
    ("03/15/2024", date(2024, 3, 15)),
    ("2024-03-15T10:00:00Z", date(2024, 3, 15)),
    ("not a date", None),
    (None, None),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [("$410,000", 410000), (500000.4, 500000), ("", None), ("n/a", None)])
def test_parse_price(value, expected):
    assert parse_price(value) == expected
