"""
FastAPI Dependencies

Settings, upstream clients, the LLM-backed generator and the request clock.
Tests override these through `app.dependency_overrides`; the transport
providers exist so fakes can be injected without touching real endpoints.
"""

from datetime import datetime, timezone
from typing import List, Optional

import httpx
from fastapi import Depends, Request

from cargocore.config import Settings
from cargocore.ingestion import DataSnapshot, ProductsClient, ShipmentsClient, fetch_snapshot
from cargocore.insights import InsightGenerator, LLMClient
from cargocore.models import Product, Shipment


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with"""
    return request.app.state.settings


def get_now() -> datetime:
    """Single clock reading shared by everything computed for one request"""
    return datetime.now(timezone.utc)


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


def get_llm_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


def get_products_client(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> ProductsClient:
    return ProductsClient.from_settings(
        settings.analytics,
        timeout=settings.upstream_timeout_seconds,
        transport=transport,
    )


def get_shipments_client(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> ShipmentsClient:
    return ShipmentsClient.from_settings(
        settings.warehouse,
        timeout=settings.upstream_timeout_seconds,
        transport=transport,
    )


async def get_snapshot(
    products_client: ProductsClient = Depends(get_products_client),
    shipments_client: ShipmentsClient = Depends(get_shipments_client),
    now: datetime = Depends(get_now),
) -> DataSnapshot:
    snapshot = await fetch_snapshot(products_client, shipments_client)
    snapshot.fetched_at = now
    return snapshot


async def get_products(
    products_client: ProductsClient = Depends(get_products_client),
) -> List[Product]:
    return await products_client.fetch()


async def get_shipments(
    shipments_client: ShipmentsClient = Depends(get_shipments_client),
) -> List[Shipment]:
    return await shipments_client.fetch()


def get_llm_client(
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_llm_transport),
) -> LLMClient:
    return LLMClient.from_settings(settings.llm, transport=transport)


def get_insight_generator(llm: LLMClient = Depends(get_llm_client)) -> InsightGenerator:
    return InsightGenerator(llm)
