"""
Analytics Breakdown Calculators

Performance metrics, data-coverage insights and the operational breakdown
panels of the analytics page.
"""

from datetime import datetime
from typing import Sequence

from pydantic import Field

from cargocore.analytics.kpis import is_fulfilled, order_volume_growth, percentage
from cargocore.models import CamelModel, Product, Shipment

LOW_STOCK_LEVEL = 10


class OrderVolumeTrend(CamelModel):
    growth_rate: float
    total_orders_analyzed: int


class FulfillmentPerformance(CamelModel):
    efficiency_rate: float
    on_time_orders: int


class PerformanceMetrics(CamelModel):
    order_volume_trend: OrderVolumeTrend
    fulfillment_performance: FulfillmentPerformance


class ActiveWarehouses(CamelModel):
    count: int
    avg_sla: int = Field(default=0, alias="avgSLA")


class InventoryHealthSummary(CamelModel):
    percentage: int
    skus_in_stock: int


class DataInsights(CamelModel):
    total_data_points: int
    active_warehouses: ActiveWarehouses
    unique_brands: int
    inventory_health: InventoryHealthSummary


class OrderAnalysis(CamelModel):
    total_orders: int
    on_time_orders: int
    delayed_orders: int
    on_time_rate: float


class InventoryAnalysis(CamelModel):
    total_skus: int = Field(alias="totalSKUs")
    in_stock: int
    low_stock: int
    out_of_stock: int
    avg_inventory_level: int


class OperationalBreakdown(CamelModel):
    order_analysis: OrderAnalysis
    inventory_analysis: InventoryAnalysis


def calculate_performance_metrics(shipments: Sequence[Shipment], now: datetime) -> PerformanceMetrics:
    fulfilled = sum(1 for s in shipments if is_fulfilled(s))
    return PerformanceMetrics(
        order_volume_trend=OrderVolumeTrend(
            growth_rate=order_volume_growth(shipments, now),
            total_orders_analyzed=len(shipments),
        ),
        fulfillment_performance=FulfillmentPerformance(
            efficiency_rate=percentage(fulfilled, len(shipments)),
            on_time_orders=fulfilled,
        ),
    )


def calculate_data_insights(products: Sequence[Product], shipments: Sequence[Shipment]) -> DataInsights:
    active = sum(1 for p in products if p.active)
    fulfilled = sum(1 for s in shipments if is_fulfilled(s))
    return DataInsights(
        total_data_points=len(products) + len(shipments),
        active_warehouses=ActiveWarehouses(
            count=len({s.warehouse_id for s in shipments if s.warehouse_id}),
            avg_sla=round(percentage(fulfilled, len(shipments), digits=4)),
        ),
        unique_brands=len({p.brand_name for p in products}),
        inventory_health=InventoryHealthSummary(
            percentage=round(percentage(active, len(products), digits=4)),
            skus_in_stock=active,
        ),
    )


def calculate_operational_breakdown(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
) -> OperationalBreakdown:
    on_time = sum(1 for s in shipments if is_fulfilled(s))
    stocked = [p for p in products if p.active and p.unit_quantity > 0]
    return OperationalBreakdown(
        order_analysis=OrderAnalysis(
            total_orders=len(shipments),
            on_time_orders=on_time,
            delayed_orders=sum(1 for s in shipments if s.is_at_risk),
            on_time_rate=percentage(on_time, len(shipments)),
        ),
        inventory_analysis=InventoryAnalysis(
            total_skus=len(products),
            in_stock=len(stocked),
            low_stock=sum(1 for p in stocked if p.unit_quantity < LOW_STOCK_LEVEL),
            out_of_stock=sum(1 for p in products if not p.active or p.unit_quantity == 0),
            avg_inventory_level=(
                round(sum(p.unit_quantity for p in products) / len(products)) if products else 0
            ),
        ),
    )
