"""
Warehouses API Endpoint

Per-warehouse performance, network KPIs, rankings and warehouse insights.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import (
    calculate_performance_rankings,
    calculate_warehouse_kpis,
    calculate_warehouse_performance,
    generate_warehouse_insights,
)
from cargocore.ingestion import DataSnapshot
from cargocore.serving.api.deps import get_now, get_snapshot
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/warehouses-data")
async def get_warehouses_data(
    snapshot: DataSnapshot = Depends(get_snapshot),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    warehouses = calculate_warehouse_performance(snapshot.products, snapshot.shipments)
    kpis = calculate_warehouse_kpis(warehouses)
    data = {
        "warehouses": warehouses,
        "kpis": kpis,
        "insights": generate_warehouse_insights(warehouses, kpis, now),
        "performanceRankings": calculate_performance_rankings(warehouses),
        "lastUpdated": now,
    }
    logger.info("Warehouse data compiled", warehouses=len(warehouses))
    return success_response(data, "Warehouse data generated successfully", now)
