"""
Metric Calculators Module

Pure calculations over one (products, shipments) snapshot, shared by every
route handler.
"""
from .brands import calculate_brand_performance, rank_brands
from .breakdown import (
    calculate_data_insights,
    calculate_operational_breakdown,
    calculate_performance_metrics,
)
from .costs import (
    calculate_cost_centers,
    calculate_cost_kpis,
    calculate_historical_trends,
    calculate_supplier_performance,
    shipments_frame,
)
from .dashboard import (
    calculate_dashboard_kpis,
    calculate_quick_overview,
    calculate_warehouse_inventory,
    detect_operational_alerts,
)
from .inventory import calculate_inventory_kpis, transform_products_to_inventory
from .kpis import (
    calculate_financial_impacts,
    fulfillment_efficiency,
    inventory_health,
    order_volume_growth,
    return_rate,
)
from .orders import (
    calculate_inbound_intelligence,
    calculate_orders_kpis,
    transform_shipments_to_orders,
)
from .trends import calculate_analytics_kpis
from .warehouses import (
    calculate_performance_rankings,
    calculate_warehouse_kpis,
    calculate_warehouse_performance,
    generate_warehouse_insights,
)

__all__ = [
    "calculate_analytics_kpis",
    "calculate_brand_performance",
    "calculate_cost_centers",
    "calculate_cost_kpis",
    "calculate_dashboard_kpis",
    "calculate_data_insights",
    "calculate_financial_impacts",
    "calculate_historical_trends",
    "calculate_inbound_intelligence",
    "calculate_inventory_kpis",
    "calculate_operational_breakdown",
    "calculate_orders_kpis",
    "calculate_performance_metrics",
    "calculate_performance_rankings",
    "calculate_quick_overview",
    "calculate_supplier_performance",
    "calculate_warehouse_inventory",
    "calculate_warehouse_kpis",
    "calculate_warehouse_performance",
    "detect_operational_alerts",
    "fulfillment_efficiency",
    "generate_warehouse_insights",
    "inventory_health",
    "order_volume_growth",
    "rank_brands",
    "return_rate",
    "shipments_frame",
    "transform_products_to_inventory",
    "transform_shipments_to_orders",
]
