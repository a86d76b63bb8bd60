"""
Orders API Endpoint

Inbound shipments presented as orders with order KPIs and inbound
intelligence.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import (
    calculate_inbound_intelligence,
    calculate_orders_kpis,
    transform_shipments_to_orders,
)
from cargocore.analytics.orders import MAX_ORDERS
from cargocore.models import Shipment
from cargocore.serving.api.deps import get_now, get_shipments
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/orders-data")
async def get_orders_data(
    shipments: List[Shipment] = Depends(get_shipments),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    orders = transform_shipments_to_orders(shipments)
    data = {
        "orders": orders[:MAX_ORDERS],
        "kpis": calculate_orders_kpis(orders, now),
        "insights": [],
        "inboundIntelligence": calculate_inbound_intelligence(orders),
        "lastUpdated": now,
    }
    logger.info("Orders data compiled", orders=len(orders))
    return success_response(data, "Orders data retrieved successfully", now)
