"""
Unit Tests - Cost Management Calculators
"""
from datetime import datetime, timedelta, timezone

import pytest

from cargocore.analytics import (
    calculate_cost_centers,
    calculate_cost_kpis,
    calculate_historical_trends,
    calculate_supplier_performance,
    shipments_frame,
)
from cargocore.analytics.costs import supplier_status


@pytest.fixture
def cost_shipments(make_shipment, now):
    """Two warehouses: one busy this month, one idle since April"""
    recent = (now - timedelta(days=1)).isoformat()
    april = datetime(2025, 4, 10, tzinfo=timezone.utc).isoformat()
    return [
        make_shipment(warehouse_id="wh-0001", supplier="Globex", unit_cost=10, arrival_date=recent),
        make_shipment(
            warehouse_id="wh-0001", supplier="Globex", unit_cost=10,
            expected_quantity=100, received_quantity=50, arrival_date=recent,
        ),
        make_shipment(warehouse_id="wh-0002", supplier="Initech", unit_cost=20, arrival_date=april),
    ]


class TestShipmentsFrame:
    """Tests for the shipment frame"""

    def test_columns(self, cost_shipments):
        """Cost is unit cost times received units"""
        frame = shipments_frame(cost_shipments)

        assert frame.height == 3
        assert frame["cost"].to_list() == [1000.0, 500.0, 2000.0]
        assert frame["arrival_month"].to_list() == ["2025-06", "2025-06", "2025-04"]
        assert frame["fulfilled"].to_list() == [True, False, True]

    def test_empty(self):
        """An empty snapshot still has the full schema"""
        frame = shipments_frame([])

        assert frame.height == 0
        assert "cost" in frame.columns


class TestCostKPIs:
    """Tests for calculate_cost_kpis"""

    def test_kpis(self, cost_shipments, now):
        """Monthly totals, efficiency and warehouse counts"""
        kpis = calculate_cost_kpis(shipments_frame(cost_shipments), now)

        assert kpis.total_monthly_costs == 1500
        assert kpis.monthly_throughput == 150
        assert kpis.cost_efficiency_rate == 83
        assert kpis.top_performing_warehouses == 1
        assert kpis.total_cost_centers == 2
        assert kpis.total_warehouses == 2
        assert kpis.active_cost_centers == 1
        assert kpis.avg_sla_performance == 67

    def test_empty(self, now):
        """Zeros without shipments"""
        kpis = calculate_cost_kpis(shipments_frame([]), now)

        assert kpis.total_monthly_costs == 0
        assert kpis.model_dump(by_alias=True)["avgSLAPerformance"] == 0


class TestCostCenters:
    """Tests for calculate_cost_centers"""

    def test_most_expensive_first(self, cost_shipments, now):
        """One center per warehouse ordered by cost"""
        centers = calculate_cost_centers(shipments_frame(cost_shipments), now)

        assert [c.warehouse_id for c in centers] == ["wh-0002", "wh-0001"]

        idle, busy = centers
        assert idle.warehouse_name == "Warehouse 0002"
        assert idle.status == "Inactive"
        assert idle.utilization_rate == 0
        assert idle.monthly_costs == 2000
        assert idle.cost_breakdown.receiving == 800
        assert idle.cost_breakdown.overhead == 200

        assert busy.status == "Active"
        assert busy.sla_performance == 50
        assert busy.total_shipments == 2
        assert busy.on_time_shipments == 1
        assert busy.cost_per_shipment == 750
        assert busy.cost_efficiency == 75
        assert busy.utilization_rate == 100

    def test_shipments_without_warehouse_ignored(self, make_shipment, now):
        """Only shipments with a warehouse form cost centers"""
        centers = calculate_cost_centers(shipments_frame([make_shipment(warehouse_id=None)]), now)

        assert centers == []


class TestSupplierPerformance:
    """Tests for calculate_supplier_performance"""

    def test_suppliers(self, cost_shipments):
        """Spend, reliability and variance against the network average"""
        suppliers = calculate_supplier_performance(shipments_frame(cost_shipments))

        assert [s.supplier_name for s in suppliers] == ["Initech", "Globex"]
        globex = suppliers[1]
        assert globex.total_cost == 1500
        assert globex.avg_cost_per_unit == 10.0
        assert globex.sla_performance == 50
        assert globex.cost_variance == -36
        assert globex.efficiency_score == 54
        assert globex.status == "High Cost"

    def test_missing_supplier_grouped(self, make_shipment):
        """Shipments without a supplier share one bucket"""
        suppliers = calculate_supplier_performance(shipments_frame([make_shipment(supplier=None)]))

        assert suppliers[0].supplier_name == "Unknown Supplier"

    @pytest.mark.parametrize(
        "score,variance,expected",
        [
            (85, 5, "Efficient"),
            (55, 5, "High Cost"),
            (85, 30, "High Cost"),
            (70, 15, "Needs Attention"),
        ],
    )
    def test_status(self, score, variance, expected):
        """Status thresholds"""
        assert supplier_status(score, variance) == expected


class TestHistoricalTrends:
    """Tests for calculate_historical_trends"""

    def test_monthly_series(self, cost_shipments):
        """Months in order with month-over-month change of the per-shipment average"""
        trends = calculate_historical_trends(shipments_frame(cost_shipments))

        assert [t.month for t in trends] == ["2025-04", "2025-06"]
        assert trends[0].cost_change_percentage == 0
        assert trends[1].total_cost == 1500
        assert trends[1].shipment_count == 2
        assert trends[1].avg_cost_per_shipment == 750
        assert trends[1].cost_change_percentage == -62

    def test_month_limit(self, make_shipment):
        """Only the most recent months are kept"""
        shipments = [
            make_shipment(arrival_date=datetime(2024, month, 1, tzinfo=timezone.utc).isoformat())
            for month in range(1, 13)
        ]

        trends = calculate_historical_trends(shipments_frame(shipments), months=3)

        assert [t.month for t in trends] == ["2024-10", "2024-11", "2024-12"]
