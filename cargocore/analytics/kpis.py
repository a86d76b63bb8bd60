"""
Core KPI Calculators

Pure functions over one (products, shipments) snapshot. Ratios guard
division by zero and return 0; percentages are rounded to one decimal.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

from cargocore.models import CamelModel, Product, Shipment

DAY = timedelta(days=1)


def percentage(part: float, whole: float, digits: int = 1) -> float:
    """part / whole x 100, or 0 when whole is 0"""
    if not whole:
        return 0.0
    return round(part / whole * 100, digits)


def is_fulfilled(shipment: Shipment) -> bool:
    return not shipment.has_discrepancy and not shipment.is_cancelled


def fulfillment_efficiency(shipments: Sequence[Shipment]) -> float:
    """Share of shipments received in full and not cancelled"""
    return percentage(sum(1 for s in shipments if is_fulfilled(s)), len(shipments))


def at_risk_rate(shipments: Sequence[Shipment]) -> float:
    """Share of shipments with a quantity discrepancy or cancelled"""
    return percentage(sum(1 for s in shipments if s.is_at_risk), len(shipments))


def return_rate(shipments: Sequence[Shipment]) -> float:
    """Share of shipments with a quantity discrepancy"""
    return percentage(sum(1 for s in shipments if s.has_discrepancy), len(shipments))


def inventory_health(products: Sequence[Product]) -> float:
    """Share of active products"""
    return percentage(sum(1 for p in products if p.active), len(products))


def days_ago(timestamp: Optional[datetime], now: datetime) -> Optional[float]:
    if timestamp is None:
        return None
    return (now - timestamp) / DAY


def volume_windows(shipments: Sequence[Shipment], now: datetime, window_days: int = 30):
    """Shipment counts in the trailing window and the window before it"""
    recent = older = 0
    for shipment in shipments:
        age = days_ago(shipment.created_date, now)
        if age is None:
            continue
        if age <= window_days:
            recent += 1
        elif age <= window_days * 2:
            older += 1
    return recent, older


def order_volume_growth(shipments: Sequence[Shipment], now: datetime) -> float:
    """Trailing 30 days vs the 30-60 day window; 0 when the older window is empty"""
    recent, older = volume_windows(shipments, now)
    if older == 0:
        return 0.0
    return round((recent - older) / older * 100, 1)


class FinancialImpacts(CamelModel):
    """Dollar exposure derived from shipment and product state"""
    quantity_discrepancy_impact: int
    cancelled_shipments_impact: int
    inactive_products_value: int
    at_risk_inventory_value: int
    total_financial_risk: int


def calculate_financial_impacts(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
) -> FinancialImpacts:
    """All figures rounded to whole dollars"""
    discrepancy = sum(
        s.quantity_difference * s.unit_cost
        for s in shipments
        if s.has_discrepancy and s.unit_cost
    )
    cancelled = sum(
        s.expected_quantity * s.unit_cost
        for s in shipments
        if s.is_cancelled and s.unit_cost
    )
    # monthly revenue potential of inactive stock
    inactive = sum(
        p.unit_cost * p.unit_quantity * 30
        for p in products
        if not p.active and p.unit_cost
    )
    at_risk = sum(
        s.received_quantity * (s.unit_cost or 0)
        for s in shipments
        if s.is_at_risk
    )

    return FinancialImpacts(
        quantity_discrepancy_impact=round(discrepancy),
        cancelled_shipments_impact=round(cancelled),
        inactive_products_value=round(inactive),
        at_risk_inventory_value=round(at_risk),
        total_financial_risk=round(discrepancy + cancelled + inactive),
    )
