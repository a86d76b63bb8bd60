"""
Inventory API Endpoint

Products presented as inventory items with inventory KPIs.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import calculate_inventory_kpis, transform_products_to_inventory
from cargocore.insights import InsightGenerator
from cargocore.models import Product
from cargocore.serving.api.deps import get_insight_generator, get_now, get_products
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)

MAX_INVENTORY_ITEMS = 500


@router.get("/inventory-data")
async def get_inventory_data(
    products: List[Product] = Depends(get_products),
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    inventory = transform_products_to_inventory(products)
    kpis = calculate_inventory_kpis(inventory)
    insights = await generator.insights(
        "inventory", {"kpis": jsonable_encoder(kpis)}, now, announce_missing_key=False
    )
    data = {
        "kpis": kpis,
        "insights": insights,
        "inventory": inventory[:MAX_INVENTORY_ITEMS],
        "lastUpdated": now,
    }
    logger.info("Inventory data compiled", skus=kpis.total_skus)
    return success_response(data, "Inventory data retrieved successfully", now)
