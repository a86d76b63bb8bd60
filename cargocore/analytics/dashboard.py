"""
Dashboard Summary Calculators

Headline KPIs, the quick overview strip, per-warehouse inventory and the
simple operational alerts shown on the main dashboard.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import Field

from cargocore.analytics.kpis import is_fulfilled
from cargocore.models import CamelModel, InsightSeverity, Product, Shipment

OPEN_EXCLUDED_STATUSES = ("completed", "cancelled")
WORKFLOW_STATUSES = ("receiving", "completed")
UNFULFILLABLE_ALERT_THRESHOLD = 100


def _status(shipment: Shipment) -> str:
    return shipment.status.strip().lower()


def _none_if_zero(value: int) -> Optional[int]:
    return value if value > 0 else None


class DashboardKPIs(CamelModel):
    """Headline counters; zero counts other than unfulfillable SKUs are null"""
    total_orders_today: Optional[int] = None
    at_risk_orders: Optional[int] = None
    open_pos: Optional[int] = Field(default=None, alias="openPOs")
    unfulfillable_skus: int = Field(default=0, alias="unfulfillableSKUs")


class QuickOverview(CamelModel):
    top_issues: int
    whats_working: int
    dollar_impact: int
    completed_workflows: int


class WarehouseInventory(CamelModel):
    warehouse_id: str
    total_inventory: int
    product_count: int
    average_cost: int


class OperationalAlert(CamelModel):
    """Simple threshold alert on the dashboard"""
    id: str
    type: str
    title: str
    description: str
    severity: InsightSeverity
    created_at: datetime


def orders_today(shipments: Sequence[Shipment], now: datetime) -> int:
    today = now.date()
    return sum(1 for s in shipments if s.created_date and s.created_date.date() == today)


def open_purchase_orders(shipments: Sequence[Shipment]) -> int:
    """Distinct PO numbers on shipments that are neither completed nor cancelled"""
    return len({
        s.purchase_order_number
        for s in shipments
        if s.purchase_order_number and _status(s) not in OPEN_EXCLUDED_STATUSES
    })


def calculate_dashboard_kpis(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    now: datetime,
) -> DashboardKPIs:
    return DashboardKPIs(
        total_orders_today=_none_if_zero(orders_today(shipments, now)),
        at_risk_orders=_none_if_zero(sum(1 for s in shipments if s.is_at_risk)),
        open_pos=_none_if_zero(open_purchase_orders(shipments)),
        unfulfillable_skus=sum(1 for p in products if not p.active),
    )


def calculate_quick_overview(shipments: Sequence[Shipment]) -> QuickOverview:
    dollar_impact = sum(
        s.quantity_difference * (s.unit_cost or 0)
        for s in shipments
        if s.has_discrepancy
    )
    workflows = {
        s.purchase_order_number
        for s in shipments
        if s.purchase_order_number and _status(s) in WORKFLOW_STATUSES
    }
    return QuickOverview(
        top_issues=sum(1 for s in shipments if s.is_at_risk),
        whats_working=sum(1 for s in shipments if is_fulfilled(s)),
        dollar_impact=round(dollar_impact),
        completed_workflows=len(workflows),
    )


def calculate_warehouse_inventory(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
) -> List[WarehouseInventory]:
    """Received units, linked products and mean unit cost per warehouse, in first-seen order"""
    by_warehouse: Dict[str, List[Shipment]] = {}
    for shipment in shipments:
        if shipment.warehouse_id:
            by_warehouse.setdefault(shipment.warehouse_id, []).append(shipment)

    results = []
    for warehouse_id, items in by_warehouse.items():
        item_ids = {s.inventory_item_id for s in items if s.inventory_item_id}
        costs = [s.unit_cost for s in items if s.unit_cost is not None]
        results.append(WarehouseInventory(
            warehouse_id=warehouse_id,
            total_inventory=sum(s.received_quantity for s in items),
            product_count=sum(1 for p in products if p.inventory_item_id in item_ids),
            average_cost=round(sum(costs) / len(costs)) if costs else 0,
        ))
    return results


def detect_operational_alerts(
    kpis: DashboardKPIs,
    now: datetime,
) -> List[OperationalAlert]:
    alerts = []
    if kpis.unfulfillable_skus > UNFULFILLABLE_ALERT_THRESHOLD:
        alerts.append(OperationalAlert(
            id="anomaly-1",
            type="high_unfulfillable_skus",
            title="High Unfulfillable SKUs",
            description=f"{kpis.unfulfillable_skus} SKUs cannot be fulfilled",
            severity=InsightSeverity.CRITICAL,
            created_at=now,
        ))
    if not kpis.total_orders_today:
        alerts.append(OperationalAlert(
            id="anomaly-2",
            type="low_order_volume",
            title="Low Order Volume",
            description="No orders detected today",
            severity=InsightSeverity.INFO,
            created_at=now,
        ))
    return alerts
