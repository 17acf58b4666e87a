"""Adapters for external deed / sale-record providers.

Each adapter wraps one vendor's HTTP API and is the only code aware of that
vendor's request and response shape. Everything leaves an adapter as a
``NormalizedSaleRecord``.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from datetime import date, datetime

import httpx

from commission_guard.config import Settings
from commission_guard.errors import ProviderUnavailable
from commission_guard.schemas.public_records import NormalizedSaleRecord
from commission_guard.services.commission import estimate_commission

logger = logging.getLogger(__name__)

OFFICIAL = "official"
SECONDARY = "secondary"


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_price(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(round(value))
    cleaned = str(value).replace("$", "").replace(",", "").strip()
    try:
        return int(round(float(cleaned)))
    except ValueError:
        return None


class SaleRecordProvider:
    """
    Base adapter. Subclasses set ``name``/``label``/``tier`` and implement
    ``configured``, ``_fetch`` and ``_normalize``.

    ``search`` raises on transport errors, non-2xx responses and payloads that
    do not have the expected top-level shape. The scanner isolates those
    failures per provider.
    """

    name = "base"
    label = "Base Provider"
    tier = SECONDARY

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client

    @property
    def configured(self) -> bool:
        raise NotImplementedError

    async def search(self, client_name: str, start: date, end: date) -> List[NormalizedSaleRecord]:
        items = await self._fetch(client_name, start, end)
        if not isinstance(items, list):
            raise ProviderUnavailable(self.name, "malformed payload")

        records = []
        for item in items:
            if not isinstance(item, dict):
                raise ProviderUnavailable(self.name, "malformed record")
            records.extend(self._normalize(item))
        return records

    async def _fetch(self, client_name: str, start: date, end: date) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _normalize(self, item: Dict[str, Any]) -> Iterable[NormalizedSaleRecord]:
        raise NotImplementedError

    def _record(self, sale_price: Optional[int], sale_date: Optional[date], **fields) -> Optional[NormalizedSaleRecord]:
        # records without a sale date cannot be placed in a contract window
        if sale_date is None:
            return None
        price = max(sale_price or 0, 0)
        return NormalizedSaleRecord(
            source=self.label,
            sale_date=sale_date,
            sale_price=price,
            estimated_lost_commission=estimate_commission(price, self.settings.commission_rate),
            **fields,
        )


class CountyRecordsProvider(SaleRecordProvider):
    """County recorder deed gateway (grantor/grantee index)."""

    name = "county_records"
    label = "County Recorder"
    tier = OFFICIAL

    @property
    def configured(self) -> bool:
        return bool(self.settings.county_records_api_url and self.settings.county_records_api_key)

    async def _fetch(self, client_name, start, end):
        response = await self.http.get(
            f"{self.settings.county_records_api_url.rstrip('/')}/deeds/search",
            params={
                "party_name": client_name,
                "recorded_from": start.isoformat(),
                "recorded_to": end.isoformat(),
            },
            headers={"Authorization": f"Bearer {self.settings.county_records_api_key}"},
        )
        response.raise_for_status()
        return response.json().get("records")

    def _normalize(self, item):
        record = self._record(
            sale_price=parse_price(item.get("consideration") or item.get("salePrice")),
            sale_date=parse_date(item.get("saleDate") or item.get("instrumentDate")),
            county=item.get("county"),
            buyer_name=item.get("grantee"),
            seller_name=item.get("grantor"),
            property_address=item.get("propertyAddress"),
            recording_date=parse_date(item.get("recordingDate")),
            buyer_agent=item.get("buyerAgent"),
            listing_agent=item.get("listingAgent"),
        )
        return [record] if record else []


class AttomProvider(SaleRecordProvider):
    name = "attom"
    label = "ATTOM Data"
    tier = OFFICIAL
    BASE_URL = "https://api.gateway.attomdata.com/propertyapi/v1.0.0/sale/snapshot"

    @property
    def configured(self) -> bool:
        return bool(self.settings.attom_api_key)

    async def _fetch(self, client_name, start, end):
        response = await self.http.get(
            self.BASE_URL,
            params={
                "ownerName": client_name,
                "startSaleSearchDate": start.strftime("%Y/%m/%d"),
                "endSaleSearchDate": end.strftime("%Y/%m/%d"),
            },
            headers={"apikey": self.settings.attom_api_key, "Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json().get("property")

    def _normalize(self, item):
        sale = item.get("sale") or {}
        amount = sale.get("amount") or {}
        address = item.get("address") or {}
        area = item.get("area") or {}
        record = self._record(
            sale_price=parse_price(amount.get("saleamt")),
            sale_date=parse_date(sale.get("saleTransDate") or sale.get("saleSearchDate")),
            county=area.get("countrysecsubd") or area.get("county"),
            buyer_name=sale.get("buyerName"),
            seller_name=sale.get("sellerName"),
            property_address=address.get("oneLine"),
            recording_date=parse_date(amount.get("salerecdate")),
            buyer_agent=sale.get("buyerAgentName"),
            listing_agent=sale.get("listingAgentName"),
        )
        return [record] if record else []


class RentCastProvider(SaleRecordProvider):
    """Property records with a per-property sale history. No agent data."""

    name = "rentcast"
    label = "RentCast"
    tier = SECONDARY
    BASE_URL = "https://api.rentcast.io/v1/properties"

    @property
    def configured(self) -> bool:
        return bool(self.settings.rentcast_api_key)

    async def _fetch(self, client_name, start, end):
        response = await self.http.get(
            self.BASE_URL,
            params={"ownerName": client_name, "limit": 50},
            headers={"X-Api-Key": self.settings.rentcast_api_key, "Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    def _normalize(self, item):
        owner_names = (item.get("owner") or {}).get("names") or []
        common = {
            "county": item.get("county"),
            "buyer_name": " & ".join(owner_names) or None,
            "property_address": item.get("formattedAddress") or item.get("addressLine1"),
        }
        records = []
        for event in (item.get("history") or {}).values():
            if str(event.get("event", "")).lower() != "sale":
                continue
            record = self._record(
                sale_price=parse_price(event.get("price")),
                sale_date=parse_date(event.get("date")),
                **common,
            )
            if record:
                records.append(record)

        if not records and item.get("lastSaleDate"):
            record = self._record(
                sale_price=parse_price(item.get("lastSalePrice")),
                sale_date=parse_date(item.get("lastSaleDate")),
                **common,
            )
            if record:
                records.append(record)
        return records


class RegridProvider(SaleRecordProvider):
    """Parcel ownership data. No agent data."""

    name = "regrid"
    label = "Regrid"
    tier = SECONDARY
    BASE_URL = "https://app.regrid.com/api/v1/search.json"

    @property
    def configured(self) -> bool:
        return bool(self.settings.regrid_api_key)

    async def _fetch(self, client_name, start, end):
        response = await self.http.get(
            self.BASE_URL,
            params={"owner": client_name, "limit": 50, "token": self.settings.regrid_api_key},
            headers={"Accept": "application/json", "User-Agent": "Commission-Guard/1.0"},
        )
        response.raise_for_status()
        return response.json().get("results")

    def _normalize(self, item):
        fields = (item.get("properties") or {}).get("fields") or item
        record = self._record(
            sale_price=parse_price(fields.get("saleprice") or fields.get("last_sale_price")),
            sale_date=parse_date(fields.get("saledate") or fields.get("last_sale_date")),
            county=fields.get("county"),
            buyer_name=fields.get("owner"),
            seller_name=fields.get("previous_owner"),
            property_address=fields.get("address"),
        )
        return [record] if record else []


# Priority order: official sources first
PROVIDER_CLASSES = (CountyRecordsProvider, AttomProvider, RentCastProvider, RegridProvider)


def build_providers(settings: Settings, http_client: httpx.AsyncClient) -> List[SaleRecordProvider]:
    return [cls(settings, http_client) for cls in PROVIDER_CLASSES]
