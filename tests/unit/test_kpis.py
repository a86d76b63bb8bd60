"""
Unit Tests - KPI and Dashboard Calculators
"""
from datetime import timedelta

import pytest

from cargocore.analytics import (
    calculate_analytics_kpis,
    calculate_brand_performance,
    calculate_dashboard_kpis,
    calculate_data_insights,
    calculate_financial_impacts,
    calculate_operational_breakdown,
    calculate_quick_overview,
    calculate_warehouse_inventory,
    detect_operational_alerts,
    fulfillment_efficiency,
    inventory_health,
    order_volume_growth,
    rank_brands,
    return_rate,
)
from cargocore.analytics.brands import performance_level
from cargocore.quality import TrendDirection


class TestCoreKPIs:
    """Tests for the ratio KPIs"""

    def test_empty_snapshot_is_zero(self, now):
        """No data yields zero ratios rather than an error"""
        assert fulfillment_efficiency([]) == 0
        assert return_rate([]) == 0
        assert inventory_health([]) == 0
        assert order_volume_growth([], now) == 0

    def test_fulfillment_efficiency(self, make_shipment):
        """Cancelled and short shipments are not fulfilled"""
        shipments = [
            make_shipment(),
            make_shipment(),
            make_shipment(received_quantity=90),
            make_shipment(status="Cancelled"),
        ]

        assert fulfillment_efficiency(shipments) == 50.0

    def test_fulfillment_efficiency_bounds(self, make_shipment):
        """Efficiency always lies in [0, 100]"""
        all_bad = [make_shipment(status="cancelled") for _ in range(3)]
        all_good = [make_shipment() for _ in range(3)]

        assert fulfillment_efficiency(all_bad) == 0.0
        assert fulfillment_efficiency(all_good) == 100.0

    def test_return_rate_counts_discrepancies_only(self, make_shipment):
        """Cancelled shipments with full quantities are not returns"""
        shipments = [
            make_shipment(received_quantity=80),
            make_shipment(status="cancelled"),
            make_shipment(),
        ]

        assert return_rate(shipments) == 33.3

    def test_inventory_health(self, make_product):
        """Share of active products, one decimal"""
        products = [make_product(), make_product(), make_product(active=False)]

        assert inventory_health(products) == 66.7

    def test_order_volume_growth(self, make_shipment, now):
        """Trailing 30 days against the 30-60 day window"""
        recent = [make_shipment(created_date=(now - timedelta(days=5)).isoformat()) for _ in range(3)]
        older = [make_shipment(created_date=(now - timedelta(days=45)).isoformat()) for _ in range(2)]

        assert order_volume_growth(recent + older, now) == 50.0

    def test_order_volume_growth_without_history(self, make_shipment, now):
        """Growth is 0 when the older window is empty"""
        recent = [make_shipment(created_date=(now - timedelta(days=5)).isoformat())]

        assert order_volume_growth(recent, now) == 0.0


class TestFinancialImpacts:
    """Tests for dollar exposure figures"""

    def test_quantity_discrepancy_impact(self, make_shipment):
        """Two shipments short by 5 units at $50 cost $500"""
        shipments = [make_shipment(unit_cost=50) for _ in range(8)]
        shipments += [
            make_shipment(unit_cost=50, expected_quantity=100, received_quantity=95),
            make_shipment(unit_cost=50, expected_quantity=100, received_quantity=95),
        ]

        impacts = calculate_financial_impacts([], shipments)

        assert impacts.quantity_discrepancy_impact == 500

    def test_cancelled_and_inactive_impacts(self, make_product, make_shipment):
        """Cancelled value uses expected units; inactive stock is a month of revenue"""
        shipments = [make_shipment(status="cancelled", expected_quantity=10, received_quantity=10, unit_cost=20)]
        products = [make_product(active=False, unit_cost=2, unit_quantity=5)]

        impacts = calculate_financial_impacts(products, shipments)

        assert impacts.cancelled_shipments_impact == 200
        assert impacts.inactive_products_value == 300
        assert impacts.total_financial_risk == 500

    def test_missing_cost_contributes_nothing(self, make_shipment):
        """Shipments without a unit cost have no dollar impact"""
        shipments = [make_shipment(unit_cost=None, received_quantity=10)]

        assert calculate_financial_impacts([], shipments).quantity_discrepancy_impact == 0


class TestDashboardCalculators:
    """Tests for the dashboard summary"""

    def test_kpis_null_when_zero(self, now):
        """Zero counters are reported as null"""
        kpis = calculate_dashboard_kpis([], [], now)

        assert kpis.total_orders_today is None
        assert kpis.at_risk_orders is None
        assert kpis.open_pos is None
        assert kpis.unfulfillable_skus == 0

    def test_kpis_counts(self, make_product, make_shipment, now):
        """Today's orders, at-risk shipments and open POs"""
        shipments = [
            make_shipment(created_date=now.isoformat(), status="receiving", purchase_order_number="PO-A"),
            make_shipment(status="receiving", purchase_order_number="PO-A", received_quantity=1),
            make_shipment(status="completed", purchase_order_number="PO-B"),
        ]
        products = [make_product(active=False), make_product()]

        kpis = calculate_dashboard_kpis(products, shipments, now)

        assert kpis.total_orders_today == 1
        assert kpis.at_risk_orders == 1
        assert kpis.open_pos == 1
        assert kpis.unfulfillable_skus == 1

    def test_kpis_serialize_with_acronym_aliases(self, now):
        """Acronym fields keep their upper-case aliases"""
        payload = calculate_dashboard_kpis([], [], now).model_dump(by_alias=True)

        assert "openPOs" in payload
        assert "unfulfillableSKUs" in payload
        assert "totalOrdersToday" in payload

    def test_quick_overview(self, make_shipment):
        """Issues, successes, dollar impact and completed workflows"""
        shipments = [
            make_shipment(purchase_order_number="PO-1"),
            make_shipment(purchase_order_number="PO-1", status="receiving"),
            make_shipment(unit_cost=4, received_quantity=90, status="in-transit"),
        ]

        overview = calculate_quick_overview(shipments)

        assert overview.top_issues == 1
        assert overview.whats_working == 2
        assert overview.dollar_impact == 40
        assert overview.completed_workflows == 1

    def test_warehouse_inventory(self, make_product, make_shipment):
        """Received units, linked products and mean cost per warehouse"""
        products = [make_product(inventory_item_id="item-a"), make_product(inventory_item_id="item-x")]
        shipments = [
            make_shipment(warehouse_id="wh-1", inventory_item_id="item-a", received_quantity=10, unit_cost=4),
            make_shipment(warehouse_id="wh-1", inventory_item_id="item-b", received_quantity=5, unit_cost=7),
            make_shipment(warehouse_id="wh-2", inventory_item_id="item-c", unit_cost=None),
        ]

        inventory = calculate_warehouse_inventory(products, shipments)

        assert [w.warehouse_id for w in inventory] == ["wh-1", "wh-2"]
        assert inventory[0].total_inventory == 15
        assert inventory[0].product_count == 1
        assert inventory[0].average_cost == 6
        assert inventory[1].average_cost == 0

    def test_operational_alerts(self, now):
        """No orders today raises the low-volume alert"""
        kpis = calculate_dashboard_kpis([], [], now)

        alerts = detect_operational_alerts(kpis, now)

        assert [a.type for a in alerts] == ["low_order_volume"]


class TestAnalyticsCalculators:
    """Tests for the analytics page calculators"""

    def test_empty_snapshot(self, now):
        """Zero KPIs and neutral trends without data"""
        kpis = calculate_analytics_kpis([], [], now)

        assert kpis.inventory_health_score == 0
        assert kpis.fulfillment_efficiency == 0
        assert kpis.order_volume_trend == TrendDirection.NEUTRAL
        assert kpis.order_volume_ma7 == 0

    def test_rising_volume_trend(self, make_shipment, now):
        """A burst of shipments today pushes the volume EMA up"""
        shipments = [make_shipment(created_date=now.isoformat()) for _ in range(5)]

        kpis = calculate_analytics_kpis([], shipments, now)

        assert kpis.order_volume_trend == TrendDirection.UP

    def test_data_insights(self, make_product, make_shipment):
        """Data point totals and warehouse coverage"""
        products = [make_product(brand_name="A"), make_product(brand_name="B", active=False)]
        shipments = [make_shipment(warehouse_id="wh-1"), make_shipment(warehouse_id="wh-2", status="cancelled")]

        insights = calculate_data_insights(products, shipments)

        assert insights.total_data_points == 4
        assert insights.active_warehouses.count == 2
        assert insights.active_warehouses.avg_sla == 50
        assert insights.unique_brands == 2
        assert insights.inventory_health.percentage == 50
        assert insights.model_dump(by_alias=True)["activeWarehouses"]["avgSLA"] == 50

    def test_operational_breakdown(self, make_product, make_shipment):
        """Stock buckets from product quantities"""
        products = [
            make_product(unit_quantity=5),
            make_product(unit_quantity=50),
            make_product(unit_quantity=0),
            make_product(active=False, unit_quantity=20),
        ]
        shipments = [make_shipment(), make_shipment(received_quantity=0)]

        breakdown = calculate_operational_breakdown(products, shipments)

        assert breakdown.order_analysis.on_time_orders == 1
        assert breakdown.order_analysis.delayed_orders == 1
        assert breakdown.order_analysis.on_time_rate == 50.0
        assert breakdown.inventory_analysis.in_stock == 2
        assert breakdown.inventory_analysis.low_stock == 1
        assert breakdown.inventory_analysis.out_of_stock == 2
        assert breakdown.inventory_analysis.avg_inventory_level == 19


class TestBrandRanking:
    """Tests for brand ranking"""

    def test_ranked_by_sku_count(self, make_product):
        """Most SKUs first with rank and share"""
        products = [make_product(brand_name="B")] + [make_product(brand_name="A") for _ in range(3)]

        rankings = rank_brands(products)

        assert [r.brand_name for r in rankings] == ["A", "B"]
        assert rankings[0].rank == 1
        assert rankings[0].inventory_percentage == 75.0
        assert rankings[0].performance_level == "Leading Brand"

    def test_ties_keep_first_appearance(self, make_product):
        """Equal SKU counts stay in input order"""
        products = [make_product(brand_name=name) for name in ("Zeta", "Alpha", "Mid")]

        assert [r.brand_name for r in rank_brands(products)] == ["Zeta", "Alpha", "Mid"]

    def test_missing_brand_grouped(self, make_product):
        """Products without a brand share one bucket"""
        products = [make_product(brand_name=None), make_product(brand_name="")]

        rankings = rank_brands(products)

        assert len(rankings) == 1
        assert rankings[0].brand_name == "Unknown Brand"

    @pytest.mark.parametrize(
        "index,total,expected",
        [
            (0, 10, "Leading Brand"),
            (2, 10, "Top Performer"),
            (3, 10, "Strong Performer"),
            (7, 10, "Average Performer"),
            (9, 10, "Developing Brand"),
        ],
    )
    def test_performance_levels(self, index, total, expected):
        """Labels follow rank position"""
        assert performance_level(index, total) == expected

    def test_no_products(self):
        """Empty input yields a placeholder top brand"""
        performance = calculate_brand_performance([])

        assert performance.total_brands == 0
        assert performance.top_brand.name == "No Data"
