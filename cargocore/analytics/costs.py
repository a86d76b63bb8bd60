"""
Cost Management Calculators

Cost KPIs, per-warehouse cost centers, supplier performance and monthly cost
trends, computed with polars group-bys over a shipment frame.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import polars as pl
import structlog
from pydantic import Field

from cargocore.analytics.kpis import is_fulfilled
from cargocore.models import CamelModel, Shipment

logger = structlog.get_logger(__name__)

UNKNOWN_SUPPLIER = "Unknown Supplier"
TOP_WAREHOUSE_SLA = 0.9
ACTIVE_WINDOW_DAYS = 30
COST_BREAKDOWN = {"receiving": 0.40, "storage": 0.30, "processing": 0.20, "overhead": 0.10}

SHIPMENT_SCHEMA = {
    "warehouse_id": pl.Utf8,
    "supplier": pl.Utf8,
    "expected_quantity": pl.Int64,
    "received_quantity": pl.Int64,
    "unit_cost": pl.Float64,
    "fulfilled": pl.Boolean,
    "arrival_ts": pl.Float64,
    "arrival_month": pl.Utf8,
}


class CostKPIs(CamelModel):
    total_monthly_costs: int = 0
    cost_efficiency_rate: int = 0
    top_performing_warehouses: int = 0
    total_cost_centers: int = 0
    total_warehouses: int = 0
    avg_sla_performance: int = Field(default=0, alias="avgSLAPerformance")
    monthly_throughput: int = 0
    active_cost_centers: int = 0


class CostBreakdown(CamelModel):
    receiving: int
    storage: int
    processing: int
    overhead: int


class CostCenter(CamelModel):
    warehouse_id: str
    warehouse_name: str
    monthly_throughput: int
    sla_performance: int
    status: str
    total_shipments: int
    on_time_shipments: int
    monthly_costs: int
    cost_per_shipment: int
    cost_efficiency: int
    utilization_rate: int
    cost_breakdown: CostBreakdown


class SupplierPerformance(CamelModel):
    supplier_name: str
    total_cost: int
    avg_cost_per_unit: float
    sla_performance: int
    shipment_count: int
    cost_variance: int
    efficiency_score: int
    status: str


class HistoricalCostTrend(CamelModel):
    month: str
    total_cost: int
    shipment_count: int
    avg_cost_per_shipment: int
    cost_change_percentage: int


def _month_key(timestamp: Optional[datetime]) -> Optional[str]:
    return timestamp.strftime("%Y-%m") if timestamp else None


def shipments_frame(shipments: Sequence[Shipment]) -> pl.DataFrame:
    """
    Flatten shipments into a typed frame.

    Arrival timestamps are kept as epoch seconds and month keys as
    "YYYY-MM" strings so the frame has no timezone-dependent columns.
    """
    columns = {
        "warehouse_id": [s.warehouse_id for s in shipments],
        "supplier": [s.supplier for s in shipments],
        "expected_quantity": [s.expected_quantity for s in shipments],
        "received_quantity": [s.received_quantity for s in shipments],
        "unit_cost": [s.unit_cost for s in shipments],
        "fulfilled": [is_fulfilled(s) for s in shipments],
        "arrival_ts": [s.arrival_date.timestamp() if s.arrival_date else None for s in shipments],
        "arrival_month": [_month_key(s.arrival_date) for s in shipments],
    }
    return pl.DataFrame(columns, schema=SHIPMENT_SCHEMA).with_columns(
        (pl.col("unit_cost").fill_null(0.0) * pl.col("received_quantity")).alias("cost"),
    )


def _receipt_ratio() -> pl.Expr:
    """received / expected x 100 where something was expected, else null"""
    return (
        pl.when(pl.col("expected_quantity") > 0)
        .then(pl.col("received_quantity") / pl.col("expected_quantity") * 100)
        .otherwise(None)
    )


def _round_or_zero(value: Optional[float]) -> int:
    return round(value) if value is not None else 0


def calculate_cost_kpis(frame: pl.DataFrame, now: datetime) -> CostKPIs:
    if frame.height == 0:
        return CostKPIs()

    cutoff = (now - timedelta(days=ACTIVE_WINDOW_DAYS)).timestamp()
    monthly = frame.filter(pl.col("arrival_month") == now.strftime("%Y-%m"))

    efficiency = frame.filter(
        (pl.col("expected_quantity") > 0) & (pl.col("received_quantity") > 0)
    ).select(_receipt_ratio().mean()).item()

    warehouses = frame.filter(pl.col("warehouse_id").is_not_null())
    per_warehouse = warehouses.group_by("warehouse_id").agg(
        pl.col("fulfilled").sum().alias("on_time"),
        pl.len().alias("total"),
    )
    top_performing = per_warehouse.filter(
        pl.col("on_time") / pl.col("total") >= TOP_WAREHOUSE_SLA
    ).height
    active_centers = warehouses.filter(pl.col("arrival_ts") > cutoff)["warehouse_id"].n_unique()
    unique_warehouses = per_warehouse.height

    return CostKPIs(
        total_monthly_costs=round(monthly["cost"].sum()),
        cost_efficiency_rate=_round_or_zero(efficiency),
        top_performing_warehouses=top_performing,
        total_cost_centers=unique_warehouses,
        total_warehouses=unique_warehouses,
        avg_sla_performance=round(frame["fulfilled"].sum() / frame.height * 100),
        monthly_throughput=int(monthly["received_quantity"].sum()),
        active_cost_centers=active_centers,
    )


def calculate_cost_centers(frame: pl.DataFrame, now: datetime) -> List[CostCenter]:
    """One cost center per warehouse, most expensive first"""
    cutoff = (now - timedelta(days=ACTIVE_WINDOW_DAYS)).timestamp()
    grouped = (
        frame.filter(pl.col("warehouse_id").is_not_null())
        .group_by("warehouse_id", maintain_order=True)
        .agg(
            pl.col("received_quantity").sum().alias("throughput"),
            pl.col("cost").sum().alias("total_cost"),
            pl.col("fulfilled").sum().alias("on_time"),
            pl.len().alias("shipments"),
            (pl.col("arrival_ts") > cutoff).sum().alias("recent"),
            _receipt_ratio().mean().alias("efficiency"),
        )
    )

    centers = []
    for row in grouped.iter_rows(named=True):
        shipments = row["shipments"]
        monthly_costs = round(row["total_cost"])
        recent = row["recent"] or 0
        centers.append(CostCenter(
            warehouse_id=row["warehouse_id"],
            warehouse_name=f"Warehouse {row['warehouse_id'][-4:]}",
            monthly_throughput=int(row["throughput"]),
            sla_performance=round(row["on_time"] / shipments * 100),
            status="Active" if recent > 0 else "Inactive",
            total_shipments=shipments,
            on_time_shipments=int(row["on_time"]),
            monthly_costs=monthly_costs,
            cost_per_shipment=round(monthly_costs / shipments),
            cost_efficiency=_round_or_zero(row["efficiency"]),
            utilization_rate=round(recent / shipments * 100),
            cost_breakdown=CostBreakdown(
                **{part: round(monthly_costs * share) for part, share in COST_BREAKDOWN.items()}
            ),
        ))

    centers.sort(key=lambda c: c.monthly_costs, reverse=True)
    return centers


def supplier_status(efficiency_score: int, cost_variance: int) -> str:
    if efficiency_score >= 80 and cost_variance <= 10:
        return "Efficient"
    if efficiency_score < 60 or cost_variance > 25:
        return "High Cost"
    return "Needs Attention"


def calculate_supplier_performance(frame: pl.DataFrame) -> List[SupplierPerformance]:
    """
    Supplier cost and reliability, highest spend first.

    Cost variance compares the supplier's cost per shipment with the
    network-wide cost per shipment.
    """
    if frame.height == 0:
        return []

    network_avg = frame["cost"].sum() / frame.height
    grouped = (
        frame.with_columns(pl.col("supplier").fill_null(UNKNOWN_SUPPLIER))
        .group_by("supplier", maintain_order=True)
        .agg(
            pl.col("cost").sum().alias("total_cost"),
            pl.col("received_quantity").sum().alias("units"),
            pl.col("fulfilled").sum().alias("on_time"),
            pl.len().alias("shipments"),
        )
    )

    results = []
    for row in grouped.iter_rows(named=True):
        shipments = row["shipments"]
        sla = round(row["on_time"] / shipments * 100)
        per_shipment = row["total_cost"] / shipments
        variance = round((per_shipment - network_avg) / network_avg * 100) if network_avg > 0 else 0
        score = round(sla * 0.7 + (100 - abs(variance)) * 0.3)
        results.append(SupplierPerformance(
            supplier_name=row["supplier"],
            total_cost=round(row["total_cost"]),
            avg_cost_per_unit=round(row["total_cost"] / row["units"], 2) if row["units"] else 0.0,
            sla_performance=sla,
            shipment_count=shipments,
            cost_variance=variance,
            efficiency_score=score,
            status=supplier_status(score, variance),
        ))

    results.sort(key=lambda s: s.total_cost, reverse=True)
    return results


def calculate_historical_trends(frame: pl.DataFrame, months: int = 12) -> List[HistoricalCostTrend]:
    """Monthly cost totals by arrival month with month-over-month change, last `months` months"""
    grouped = (
        frame.filter(pl.col("arrival_month").is_not_null())
        .group_by("arrival_month")
        .agg(
            pl.col("cost").sum().alias("total_cost"),
            pl.len().alias("shipments"),
        )
        .sort("arrival_month")
    )

    trends = []
    previous_avg: Optional[float] = None
    for row in grouped.iter_rows(named=True):
        avg = row["total_cost"] / row["shipments"]
        change = 0
        if previous_avg:
            change = round((avg - previous_avg) / previous_avg * 100)
        trends.append(HistoricalCostTrend(
            month=row["arrival_month"],
            total_cost=round(row["total_cost"]),
            shipment_count=row["shipments"],
            avg_cost_per_shipment=round(avg),
            cost_change_percentage=change,
        ))
        previous_avg = avg

    return trends[-months:]
