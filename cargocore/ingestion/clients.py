"""
Upstream Data Clients

Thin async wrappers over the analytics (products) and warehouse (shipments)
HTTP endpoints. Both speak the same protocol:

    GET {base_url}?token={token}&limit={n}&company_url={id}  ->  {"data": [...]}

There is no retry loop and no caching; every dashboard request fetches a fresh
snapshot. Non-2xx responses and transport failures raise UpstreamFetchError.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from cargocore.config.settings import AnalyticsSourceSettings, WarehouseSourceSettings
from cargocore.errors import UpstreamFetchError
from cargocore.models import Product, Shipment

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class UpstreamClient(Generic[RecordT]):
    """
    Fetches one record type from a query-string authenticated endpoint.

    Rows that fail validation are skipped and counted rather than failing
    the whole batch.
    """

    source: str = "upstream"
    record_type: Type[RecordT]

    def __init__(
        self,
        base_url: str,
        token: str,
        company_url: str,
        limit: int = 500,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.token = token
        self.company_url = company_url
        self.limit = limit
        self.timeout = timeout
        self.transport = transport

    @property
    def params(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "limit": self.limit,
            "company_url": self.company_url,
        }

    async def fetch_raw(self) -> List[Dict[str, Any]]:
        """Fetch the raw `data` rows from the endpoint"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.base_url, params=self.params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Upstream returned error status", source=self.source, status_code=status)
            raise UpstreamFetchError(
                f"Failed to fetch {self.source} data: HTTP {status}",
                source=self.source,
                status_code=status,
                details=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            logger.error("Upstream request failed", source=self.source, error=str(e))
            raise UpstreamFetchError(
                f"Failed to fetch {self.source} data",
                source=self.source,
                details=str(e) or type(e).__name__,
            ) from e
        except ValueError as e:
            logger.error("Upstream returned invalid JSON", source=self.source)
            raise UpstreamFetchError(
                f"Invalid JSON from {self.source} endpoint",
                source=self.source,
                details=str(e),
            ) from e

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]

    async def fetch(self) -> List[RecordT]:
        """Fetch and validate records"""
        rows = await self.fetch_raw()
        records: List[RecordT] = []
        skipped = 0
        for row in rows:
            try:
                records.append(self.record_type.model_validate(row))
            except ValidationError:
                skipped += 1

        if skipped:
            logger.warning("Skipped invalid upstream rows", source=self.source, skipped=skipped)
        logger.debug("Fetched upstream records", source=self.source, count=len(records))
        return records


class ProductsClient(UpstreamClient[Product]):
    """Product-details endpoint on the analytics backend"""

    source = "products"
    record_type = Product

    @classmethod
    def from_settings(
        cls,
        settings: AnalyticsSourceSettings,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ProductsClient":
        settings.require()
        return cls(
            base_url=settings.base_url,
            token=settings.token.get_secret_value(),
            company_url=settings.company_url,
            limit=settings.limit,
            timeout=timeout,
            transport=transport,
        )


class ShipmentsClient(UpstreamClient[Shipment]):
    """Inbound-shipments endpoint on the warehouse backend"""

    source = "shipments"
    record_type = Shipment

    @classmethod
    def from_settings(
        cls,
        settings: WarehouseSourceSettings,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ShipmentsClient":
        settings.require()
        return cls(
            base_url=settings.base_url,
            token=settings.token.get_secret_value(),
            company_url=settings.company_url,
            limit=settings.limit,
            timeout=timeout,
            transport=transport,
        )


@dataclass
class DataSnapshot:
    """Products and shipments fetched together for one request"""
    products: List[Product] = field(default_factory=list)
    shipments: List[Shipment] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.products and not self.shipments


async def fetch_snapshot(
    products_client: ProductsClient,
    shipments_client: ShipmentsClient,
) -> DataSnapshot:
    """Fetch products and shipments concurrently"""
    products, shipments = await asyncio.gather(
        products_client.fetch(),
        shipments_client.fetch(),
    )
    logger.info(
        "Fetched data snapshot",
        products=len(products),
        shipments=len(shipments),
    )
    return DataSnapshot(products=products, shipments=shipments)
