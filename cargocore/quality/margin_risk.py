"""
Margin Risk Scoring

Composite per-brand risk from SKU complexity, unit-cost level, inactive
inventory share and shipment-discrepancy dollars.
"""

from collections import OrderedDict
from typing import Dict, List, Sequence

import structlog

from cargocore.models import UNKNOWN_BRAND, MarginRiskAlert, Product, RiskLevel, Shipment

logger = structlog.get_logger(__name__)


def risk_level(score: int) -> RiskLevel:
    if score >= 60:
        return RiskLevel.HIGH
    if score >= 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def discrepancy_impact(shipments: Sequence[Shipment]) -> float:
    """Sum of |expected - received| x unit cost over discrepant, costed shipments"""
    return sum(
        s.quantity_difference * s.unit_cost
        for s in shipments
        if s.has_discrepancy and s.unit_cost
    )


def score_brand(
    brand_name: str,
    products: Sequence[Product],
    shipments: Sequence[Shipment],
) -> MarginRiskAlert:
    """Score one brand; every threshold contributes independently"""
    costs = [p.unit_cost for p in products if p.unit_cost is not None]
    avg_unit_cost = sum(costs) / len(costs) if costs else 0.0
    sku_count = len(products)
    inactive_count = sum(1 for p in products if not p.active)
    inactive_pct = inactive_count / sku_count * 100 if sku_count else 0.0
    shipment_impact = discrepancy_impact(shipments)

    score = 0
    drivers: List[str] = []

    if sku_count > 50:
        score += 25
        drivers.append("High SKU complexity")
    elif sku_count > 20:
        score += 15
        drivers.append("Moderate SKU complexity")

    if avg_unit_cost > 50:
        score += 30
        drivers.append("High unit costs")
    elif avg_unit_cost > 20:
        score += 15
        drivers.append("Elevated unit costs")

    if inactive_pct > 30:
        score += 25
        drivers.append("High inactive inventory")
    elif inactive_pct > 15:
        score += 10
        drivers.append("Growing inactive inventory")

    if shipment_impact > 5000:
        score += 20
        drivers.append("Shipment discrepancies")

    return MarginRiskAlert(
        brand_name=brand_name,
        current_margin=round(max(0.0, 100 - avg_unit_cost)),
        risk_level=risk_level(score),
        risk_score=score,
        primary_drivers=drivers,
        # inactive SKUs valued at a year of monthly carrying cost
        financial_impact=round(shipment_impact + inactive_count * avg_unit_cost * 12),
        sku_count=sku_count,
        avg_unit_cost=round(avg_unit_cost),
        inactive_percentage=round(inactive_pct),
    )


def calculate_margin_risks(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    min_skus: int = 5,
    limit: int = 5,
) -> List[MarginRiskAlert]:
    """
    Score every brand and return the riskiest.

    Only brands with a positive score and more than `min_skus` SKUs are
    reported, sorted by score descending.
    """
    brand_products: Dict[str, List[Product]] = OrderedDict()
    for product in products:
        brand_products.setdefault(product.brand_name or UNKNOWN_BRAND, []).append(product)

    brand_shipments: Dict[str, List[Shipment]] = {}
    for shipment in shipments:
        brand = shipment.brand_name or UNKNOWN_BRAND
        if brand in brand_products:
            brand_shipments.setdefault(brand, []).append(shipment)

    alerts = []
    for brand, items in brand_products.items():
        alert = score_brand(brand, items, brand_shipments.get(brand, []))
        if alert.risk_score > 0 and alert.sku_count > min_skus:
            alerts.append(alert)

    alerts.sort(key=lambda a: a.risk_score, reverse=True)
    logger.debug("Margin risk scored", brands=len(brand_products), at_risk=len(alerts))
    return alerts[:limit]
