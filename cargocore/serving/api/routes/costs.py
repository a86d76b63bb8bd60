"""
Cost Management API Endpoint

Cost KPIs, cost centers, supplier performance and monthly cost trends.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import (
    calculate_cost_centers,
    calculate_cost_kpis,
    calculate_historical_trends,
    calculate_supplier_performance,
    shipments_frame,
)
from cargocore.insights import InsightGenerator
from cargocore.models import Shipment
from cargocore.serving.api.deps import get_insight_generator, get_now, get_shipments
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/cost-data")
async def get_cost_data(
    shipments: List[Shipment] = Depends(get_shipments),
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    frame = shipments_frame(shipments)
    kpis = calculate_cost_kpis(frame, now)
    cost_centers = calculate_cost_centers(frame, now)

    insights = await generator.cost_insights(
        jsonable_encoder(kpis),
        jsonable_encoder(cost_centers),
        len(shipments),
        now,
    )
    data = {
        "kpis": kpis,
        "insights": insights,
        "costCenters": cost_centers,
        "supplierPerformance": calculate_supplier_performance(frame),
        "historicalTrends": calculate_historical_trends(frame),
        "lastUpdated": now,
    }

    if not shipments:
        return success_response(data, "No cost management data available", now)

    logger.info("Cost data compiled", shipments=len(shipments), cost_centers=len(cost_centers))
    return success_response(data, "Cost management data loaded successfully", now)
