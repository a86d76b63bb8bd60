"""
Test Suite Configuration
"""
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from cargocore.config import (
    AnalyticsSourceSettings,
    LLMSettings,
    Settings,
    WarehouseSourceSettings,
)
from cargocore.models import Product, Shipment

PRODUCTS_URL = "https://products.test/v0/pipes/product_details.json"
SHIPMENTS_URL = "https://warehouse.test/v0/pipes/inbound_shipments.json"
LLM_URL = "https://llm.test/v1/chat/completions"

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed request clock"""
    return NOW


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Build a Product with sensible defaults"""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Product:
        counter["n"] += 1
        row = {
            "product_id": f"prod-{counter['n']}",
            "company_url": "COMP002_packiyo",
            "brand_name": "Acme",
            "product_name": f"Widget {counter['n']}",
            "product_sku": f"SKU-{counter['n']}",
            "active": True,
            "supplier_name": "Globex",
            "unit_cost": 10.0,
            "unit_quantity": 50,
            "inventory_item_id": f"item-{counter['n']}",
            "created_date": "2025-05-01T00:00:00Z",
            "updated_date": "2025-06-01T00:00:00Z",
        }
        row.update(overrides)
        return Product.model_validate(row)

    return _make


@pytest.fixture
def make_shipment() -> Callable[..., Shipment]:
    """Build a Shipment with sensible defaults (received in full, completed)"""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Shipment:
        counter["n"] += 1
        row = {
            "shipment_id": f"ship-{counter['n']}",
            "company_url": "COMP002_3PL",
            "brand_name": "Acme",
            "supplier": "Globex",
            "warehouse_id": "wh-0001",
            "inventory_item_id": f"item-{counter['n']}",
            "sku": f"SKU-{counter['n']}",
            "expected_quantity": 100,
            "received_quantity": 100,
            "unit_cost": 10.0,
            "status": "completed",
            "created_date": (NOW - timedelta(days=3)).isoformat(),
            "expected_arrival_date": (NOW - timedelta(days=1)).isoformat(),
            "arrival_date": (NOW - timedelta(days=1)).isoformat(),
            "purchase_order_number": f"PO-{counter['n']}",
        }
        row.update(overrides)
        return Shipment.model_validate(row)

    return _make


@pytest.fixture
def product_rows() -> List[Dict[str, Any]]:
    """Raw upstream product rows"""
    return [
        {
            "product_id": "prod-1",
            "company_url": "COMP002_packiyo",
            "brand_name": "Acme",
            "product_name": "Widget",
            "product_sku": "SKU-1",
            "active": True,
            "supplier_name": "Globex",
            "unit_cost": 12.5,
            "unit_quantity": 40,
            "inventory_item_id": "item-1",
            "updated_date": "2025-06-10 08:00:00",
        },
        {
            "product_id": "prod-2",
            "company_url": "COMP002_packiyo",
            "brand_name": "Initech",
            "product_name": "Gadget",
            "product_sku": "SKU-2",
            "active": "false",
            "unit_cost": "20",
            "unit_quantity": 5,
            "inventory_item_id": "item-2",
        },
    ]


@pytest.fixture
def shipment_rows() -> List[Dict[str, Any]]:
    """Raw upstream shipment rows"""
    return [
        {
            "shipment_id": "ship-1",
            "brand_name": "Acme",
            "supplier": "Globex",
            "warehouse_id": "wh-0001",
            "inventory_item_id": "item-1",
            "sku": "SKU-1",
            "expected_quantity": 100,
            "received_quantity": 100,
            "unit_cost": 12.5,
            "status": "completed",
            "created_date": "2025-06-15T08:00:00Z",
            "expected_arrival_date": "2025-06-14T00:00:00Z",
            "arrival_date": "2025-06-13T00:00:00Z",
            "purchase_order_number": "PO-1",
        },
        {
            "shipment_id": "ship-2",
            "brand_name": "Initech",
            "supplier": "Globex",
            "warehouse_id": "wh-0002",
            "inventory_item_id": "item-2",
            "sku": "SKU-2",
            "expected_quantity": 50,
            "received_quantity": 40,
            "unit_cost": 20,
            "status": "receiving",
            "created_date": "2025-06-10T08:00:00Z",
            "expected_arrival_date": "2025-06-11T00:00:00Z",
            "arrival_date": "2025-06-12T00:00:00Z",
            "purchase_order_number": "PO-2",
        },
    ]


def build_settings(
    products_configured: bool = True,
    shipments_configured: bool = True,
    llm_key: Optional[str] = None,
    app_env: str = "testing",
) -> Settings:
    """Explicit settings that never depend on the process environment"""
    return Settings(
        app_env=app_env,
        analytics=AnalyticsSourceSettings(
            base_url=PRODUCTS_URL if products_configured else None,
            token="products-token" if products_configured else None,
        ),
        warehouse=WarehouseSourceSettings(
            base_url=SHIPMENTS_URL if shipments_configured else None,
            token="shipments-token" if shipments_configured else None,
        ),
        llm=LLMSettings(api_key=llm_key, api_url=LLM_URL),
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings with both upstream sources configured and no LLM key"""
    return build_settings()


def upstream_transport(
    products: List[Dict[str, Any]],
    shipments: List[Dict[str, Any]],
    status_code: int = 200,
) -> httpx.MockTransport:
    """Serve `{"data": rows}` for the products and shipments endpoints"""
    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code, text="upstream unavailable")
        if request.url.host == "products.test":
            return httpx.Response(200, json={"data": products})
        if request.url.host == "warehouse.test":
            return httpx.Response(200, json={"data": shipments})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def llm_transport(
    content: Optional[str] = None,
    status_code: int = 200,
    timeout: bool = False,
    calls: Optional[List[Dict[str, Any]]] = None,
) -> httpx.MockTransport:
    """Fake chat-completions endpoint; records request payloads into `calls`"""
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append({
                "headers": dict(request.headers),
                "payload": json.loads(request.content),
            })
        if timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"message": "boom"}})
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    return httpx.MockTransport(handler)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return build_settings


@pytest.fixture
def upstream_transport_factory() -> Callable[..., httpx.MockTransport]:
    return upstream_transport


@pytest.fixture
def llm_transport_factory() -> Callable[..., httpx.MockTransport]:
    return llm_transport
