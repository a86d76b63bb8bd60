"""
Warehouse Performance Calculators

Per-warehouse SLA, throughput and fulfillment speed folded into a composite
performance score, with network KPIs, rankings and rule-based insights.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from pydantic import Field

from cargocore.models import (
    CamelModel,
    Insight,
    InsightSeverity,
    Product,
    Shipment,
)

HOUR = timedelta(hours=1)
ACTIVE_STATUS_MARKERS = ("processing", "in-transit", "pending")
TARGET_FULFILLMENT_HOURS = 48
SLA_TARGET = 90.0
WAREHOUSE_SOURCE = "warehouse_agent"


class WarehouseLocation(CamelModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class WarehousePerformance(CamelModel):
    warehouse_id: str
    warehouse_name: str
    supplier_name: str
    sla_performance: float
    active_orders: int
    avg_fulfillment_time: float
    total_skus: int = Field(alias="totalSKUs")
    throughput: int
    status: str
    performance_score: int
    location: WarehouseLocation


class WarehouseKPIs(CamelModel):
    avg_sla_percentage: Optional[float] = Field(default=None, alias="avgSLAPercentage")
    total_active_orders: Optional[int] = None
    avg_fulfillment_time: Optional[float] = None
    total_inbound_throughput: Optional[int] = None


class WarehouseRanking(CamelModel):
    rank: int
    warehouse_id: str
    warehouse_name: str
    sla_performance: float
    active_orders: int
    avg_fulfillment_time: float
    status: str


def warehouse_status(sla: float) -> str:
    if sla >= 95:
        return "Excellent"
    if sla >= 85:
        return "Good"
    return "Needs Attention"


def performance_score(sla: float, throughput: int, avg_hours: float) -> int:
    """40% SLA, 30% throughput (per 100 units, capped), 30% speed against a 48h target"""
    throughput_part = min(throughput / 100, 100)
    speed_part = min(TARGET_FULFILLMENT_HOURS / max(avg_hours, 1) * 100, 100)
    return round(sla * 0.4 + throughput_part * 0.3 + speed_part * 0.3)


def _on_time(shipment: Shipment) -> bool:
    if shipment.expected_arrival_date is None or shipment.arrival_date is None:
        return False
    return shipment.arrival_date <= shipment.expected_arrival_date


def _is_active(shipment: Shipment) -> bool:
    status = shipment.status.lower()
    return any(marker in status for marker in ACTIVE_STATUS_MARKERS)


def calculate_warehouse_performance(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
) -> List[WarehousePerformance]:
    """One entry per warehouse, best performance score first"""
    groups: Dict[str, List[Shipment]] = {}
    for shipment in shipments:
        if shipment.warehouse_id:
            groups.setdefault(shipment.warehouse_id, []).append(shipment)

    products_by_item: Dict[str, List[Product]] = {}
    for product in products:
        if product.inventory_item_id:
            products_by_item.setdefault(product.inventory_item_id, []).append(product)

    results = []
    for warehouse_id, items in groups.items():
        first = items[0]
        supplier = first.supplier or "Unknown Supplier"

        sku_ids = {
            p.product_id
            for s in items if s.inventory_item_id
            for p in products_by_item.get(s.inventory_item_id, [])
        }
        hours = [
            (s.arrival_date - s.created_date) / HOUR
            for s in items
            if s.created_date and s.arrival_date
        ]
        avg_hours = sum(hours) / len(hours) if hours else 0.0
        sla = sum(1 for s in items if _on_time(s)) / len(items) * 100
        throughput = sum(s.received_quantity for s in items)

        results.append(WarehousePerformance(
            warehouse_id=warehouse_id,
            warehouse_name=f"Warehouse {supplier}",
            supplier_name=supplier,
            sla_performance=round(sla, 1),
            active_orders=sum(1 for s in items if _is_active(s)),
            avg_fulfillment_time=round(avg_hours, 1),
            total_skus=len(sku_ids),
            throughput=throughput,
            status=warehouse_status(sla),
            performance_score=performance_score(sla, throughput, avg_hours),
            location=WarehouseLocation(
                city=first.ship_from_city,
                state=first.ship_from_state,
                country=first.ship_from_country,
            ),
        ))

    results.sort(key=lambda w: w.performance_score, reverse=True)
    return results


def calculate_warehouse_kpis(warehouses: Sequence[WarehousePerformance]) -> WarehouseKPIs:
    """Network averages; every field is null when there are no warehouses"""
    if not warehouses:
        return WarehouseKPIs()

    count = len(warehouses)
    return WarehouseKPIs(
        avg_sla_percentage=round(sum(w.sla_performance for w in warehouses) / count, 1),
        total_active_orders=sum(w.active_orders for w in warehouses),
        avg_fulfillment_time=round(sum(w.avg_fulfillment_time for w in warehouses) / count, 1),
        total_inbound_throughput=sum(w.throughput for w in warehouses),
    )


def calculate_performance_rankings(warehouses: Sequence[WarehousePerformance]) -> List[WarehouseRanking]:
    ordered = sorted(warehouses, key=lambda w: w.performance_score, reverse=True)
    return [
        WarehouseRanking(
            rank=index + 1,
            warehouse_id=w.warehouse_id,
            warehouse_name=w.warehouse_name,
            sla_performance=w.sla_performance,
            active_orders=w.active_orders,
            avg_fulfillment_time=w.avg_fulfillment_time,
            status=w.status,
        )
        for index, w in enumerate(ordered)
    ]


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def generate_warehouse_insights(
    warehouses: Sequence[WarehousePerformance],
    kpis: WarehouseKPIs,
    now: datetime,
) -> List[Insight]:
    """Rule-based insights on underperformers, network SLA and expansion candidates"""
    insights = []

    poor = [w for w in warehouses if w.status == "Needs Attention"]
    if poor:
        insights.append(Insight(
            id="warehouse-performance",
            title="Warehouse Performance Issues Detected",
            description=(
                f"{len(poor)} warehouse{_plural(len(poor))} showing suboptimal performance. "
                f"{', '.join(w.warehouse_name for w in poor)} require immediate attention "
                "to improve SLA metrics and operational efficiency."
            ),
            severity=InsightSeverity.CRITICAL,
            # roughly $50 of exposure per unit moved through a struggling site
            dollar_impact=sum(w.throughput for w in poor) * 50,
            suggested_actions=[
                "Review operational procedures at underperforming warehouses",
                "Implement performance monitoring dashboards",
                "Consider staff training or resource reallocation",
                "Analyze root causes of fulfillment delays",
            ],
            source=WAREHOUSE_SOURCE,
            created_at=now,
        ))

    if kpis.avg_sla_percentage is not None and kpis.avg_sla_percentage < SLA_TARGET:
        insights.append(Insight(
            id="warehouse-sla",
            title="Overall SLA Performance Below Target",
            description=(
                f"Average SLA performance across all warehouses is {kpis.avg_sla_percentage:.1f}%, "
                "below the recommended 90% threshold. This indicates systemic issues in "
                "fulfillment processes that require strategic intervention."
            ),
            severity=InsightSeverity.WARNING,
            dollar_impact=round((kpis.total_inbound_throughput or 0) * 25),
            suggested_actions=[
                "Implement automated SLA monitoring systems",
                "Review and optimize fulfillment workflows",
                "Establish performance benchmarks and targets",
                "Consider supplier/warehouse partnership improvements",
            ],
            source=WAREHOUSE_SOURCE,
            created_at=now,
        ))

    excellent = [w for w in warehouses if w.status == "Excellent"]
    if excellent:
        insights.append(Insight(
            id="warehouse-optimization",
            title="Warehouse Optimization Opportunities",
            description=(
                f"{len(excellent)} high-performing warehouse{_plural(len(excellent))} identified "
                "for capacity expansion. These facilities demonstrate excellent operational "
                "efficiency and could handle increased volume with strategic investment."
            ),
            severity=InsightSeverity.INFO,
            dollar_impact=sum(w.throughput for w in excellent) * 10,
            suggested_actions=[
                "Analyze capacity expansion opportunities",
                "Consider redirecting volume to high-performing warehouses",
                "Implement best practices from top performers across network",
                "Explore automation and technology upgrades",
            ],
            source=WAREHOUSE_SOURCE,
            created_at=now,
        ))

    return insights
