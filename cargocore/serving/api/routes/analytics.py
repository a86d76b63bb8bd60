"""
Analytics API Endpoint

Trend-enhanced KPIs, performance metrics, data insights, operational
breakdown and brand performance.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import (
    calculate_analytics_kpis,
    calculate_brand_performance,
    calculate_data_insights,
    calculate_operational_breakdown,
    calculate_performance_metrics,
)
from cargocore.ingestion import DataSnapshot
from cargocore.insights import InsightGenerator
from cargocore.serving.api.deps import get_insight_generator, get_now, get_snapshot
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/analytics-data")
async def get_analytics_data(
    snapshot: DataSnapshot = Depends(get_snapshot),
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    products, shipments = snapshot.products, snapshot.shipments

    data = {
        "kpis": calculate_analytics_kpis(products, shipments, now),
        "performanceMetrics": calculate_performance_metrics(shipments, now),
        "dataInsights": calculate_data_insights(products, shipments),
        "operationalBreakdown": calculate_operational_breakdown(products, shipments),
        "brandPerformance": calculate_brand_performance(products),
    }
    data["insights"] = await generator.insights(
        "analytics", jsonable_encoder(data), now, announce_missing_key=False
    )
    data["lastUpdated"] = now

    logger.info("Analytics data compiled", products=len(products), shipments=len(shipments))
    return success_response(data, "Analytics data retrieved successfully", now)
