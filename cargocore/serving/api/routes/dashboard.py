"""
Dashboard API Endpoint

Headline KPIs, quick overview, warehouse inventory, insights, margin risk and
cost variance anomalies for the main dashboard.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from cargocore.analytics import (
    calculate_dashboard_kpis,
    calculate_quick_overview,
    calculate_warehouse_inventory,
    detect_operational_alerts,
)
from cargocore.ingestion import DataSnapshot
from cargocore.insights import InsightGenerator
from cargocore.quality import CostVarianceDetector, calculate_margin_risks
from cargocore.serving.api.deps import get_insight_generator, get_now, get_snapshot
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/dashboard-data")
async def get_dashboard_data(
    snapshot: DataSnapshot = Depends(get_snapshot),
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    products, shipments = snapshot.products, snapshot.shipments

    kpis = calculate_dashboard_kpis(products, shipments, now)
    insights = await generator.dashboard_insights(products, shipments, now)
    report = CostVarianceDetector().detect(shipments, now=now)

    data = {
        "products": products,
        "shipments": shipments,
        "kpis": kpis,
        "quickOverview": calculate_quick_overview(shipments),
        "warehouseInventory": calculate_warehouse_inventory(products, shipments),
        "insights": insights,
        "anomalies": detect_operational_alerts(kpis, now),
        "marginRisks": calculate_margin_risks(products, shipments),
        "costVariances": report.anomalies,
        "lastUpdated": now,
    }
    logger.info(
        "Dashboard data compiled",
        products=len(products),
        shipments=len(shipments),
        insights=len(insights),
        cost_variances=len(report.anomalies),
    )
    return success_response(data, "Dashboard data retrieved successfully", now)
