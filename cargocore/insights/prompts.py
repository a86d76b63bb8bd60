"""
Prompt Templates

System and user prompts for the LLM-backed recommendation, insight and chat
features. Request payloads are arbitrary JSON from the front end, so every
field lookup tolerates missing or non-numeric values.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cargocore.analytics.kpis import FinancialImpacts, percentage
from cargocore.models import Product, Shipment

ONE_ACTION_RULE = (
    "Each recommendation should be a single, clear action (15-20 words max). "
    "No explanations or bullet points."
)

RECOMMENDATION_SYSTEM_PROMPTS: Dict[str, str] = {
    "cost-variance": (
        "You are a world-class supply chain cost optimization expert with 20+ years of "
        "experience in 3PL operations. Provide specific, actionable recommendations that "
        "drive measurable cost savings. " + ONE_ACTION_RULE
    ),
    "margin-risk": (
        "You are a margin protection specialist with deep 3PL expertise. Provide specific "
        "actions to mitigate margin risks and improve profitability. " + ONE_ACTION_RULE
    ),
    "brand-optimization": (
        "You are a brand portfolio optimization expert for 3PL operations. Provide specific "
        "strategies to optimize brand investments and performance. " + ONE_ACTION_RULE
    ),
    "warehouse-optimization": (
        "You are a warehouse efficiency expert with extensive 3PL experience. Provide "
        "specific actions to improve warehouse operations and throughput. " + ONE_ACTION_RULE
    ),
    "dashboard-insights": (
        "You are a world-class operations consultant with 20+ years of experience in 3PL "
        "and supply chain management. Provide specific, actionable recommendations that "
        "drive measurable operational improvements. " + ONE_ACTION_RULE
    ),
    "inventory-management": (
        "You are an inventory optimization expert specializing in 3PL operations. Provide "
        "specific strategies to optimize stock levels and inventory efficiency. " + ONE_ACTION_RULE
    ),
}

INSIGHT_SYSTEM_PROMPTS: Dict[str, str] = {
    "orders": (
        "You are a supply chain optimization expert. Analyze order flow patterns and provide "
        "operational intelligence for process improvement. Generate 2-3 critical insights "
        "with specific metrics and actionable recommendations."
    ),
    "analytics": (
        "You are a data analytics expert specializing in 3PL operations. Analyze performance "
        "metrics and provide strategic insights for optimization. Generate 2-3 key insights "
        "with performance indicators."
    ),
    "cost-management": (
        "You are a cost optimization expert analyzing warehouse and operational costs. Provide "
        "strategic insights for cost reduction and efficiency improvement. Generate 2-3 "
        "cost-focused insights."
    ),
    "inventory": (
        "You are an inventory optimization expert analyzing stock levels and brand performance. "
        "Provide insights for inventory efficiency and investment optimization. Generate 2-3 "
        "inventory-focused insights."
    ),
    "warehouses": (
        "You are a warehouse operations expert analyzing facility performance and throughput. "
        "Provide insights for operational excellence and efficiency. Generate 2-3 warehouse "
        "optimization insights."
    ),
}

INSIGHT_FORMAT = """
FORMAT: Return a JSON array only, no additional text. Each element:
{"title": "...", "description": "...", "severity": "critical|warning|info", "dollarImpact": 0, "suggestedActions": ["..."]}"""

COST_VARIANCE_SYSTEM_PROMPT = (
    "You are a world-class supply chain cost optimization expert with 20+ years of experience "
    "in 3PL operations. Provide specific, actionable recommendations that drive measurable "
    "cost savings. Each recommendation should be a single, clear action (15-20 words max). "
    "No explanations or bullet points - just the actionable steps."
)

COST_INSIGHTS_SYSTEM_PROMPT = (
    "You are a world-class cost management consultant. Generate specific, actionable insights "
    "with quantified financial impact. Return only valid JSON array."
)

GEO_RISK_COUNTRIES = ("China", "Russia", "Ukraine", "Taiwan")


def _num(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _fmt(value: Any) -> str:
    """Thousands-separated number; integral floats print without decimals"""
    number = _num(value)
    if isinstance(number, float) and number.is_integer():
        number = int(number)
    return f"{number:,}"


def _money(value: Any) -> str:
    return f"${_fmt(value)}"


def _get(data: Optional[Mapping[str, Any]], *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _items(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _text(value: Any, default: str) -> str:
    return str(value) if value not in (None, "") else default


# =============================================================================
# Recommendations
# =============================================================================

def recommendation_user_prompt(
    rec_type: str,
    data: Mapping[str, Any],
    context: Optional[Mapping[str, Any]] = None,
) -> str:
    context = context or {}
    if rec_type == "cost-variance":
        return (
            "Analyze this cost variance anomaly and provide actionable cost reduction strategies:\n"
            f"Type: {_text(data.get('type'), 'Unknown')}\n"
            f"Current Cost: {_money(data.get('currentCost'))}\n"
            f"Expected Cost: {_money(data.get('expectedCost'))}\n"
            f"Variance: {_fmt(data.get('variance'))}%\n"
            f"Impact: {_money(data.get('impact'))}\n\n"
            f"Context: {_fmt(context.get('totalAnomalies'))} total anomalies, "
            f"{_money(context.get('totalImpact'))} total impact"
        )
    if rec_type == "margin-risk":
        drivers = data.get("primaryRiskDrivers") or data.get("primaryDrivers")
        drivers_text = ", ".join(str(d) for d in drivers) if isinstance(drivers, list) and drivers else "Unknown"
        return (
            "Analyze this margin risk situation and provide actionable mitigation strategies:\n"
            f"Brand: {_text(data.get('brand') or data.get('brandName'), 'Unknown')}\n"
            f"Current Margin: {_fmt(data.get('currentMargin'))}%\n"
            f"Risk Score: {_fmt(data.get('riskScore'))}/100\n"
            f"SKU Count: {_fmt(data.get('skuCount'))}\n"
            f"Avg Unit Cost: {_money(data.get('avgUnitCost'))}\n\n"
            f"Risk Drivers: {drivers_text}"
        )
    if rec_type == "brand-optimization":
        return (
            "Analyze this brand performance and provide optimization strategies:\n"
            f"Brand: {_text(data.get('brand_name') or data.get('brandName'), 'Unknown')}\n"
            f"Efficiency Score: {_fmt(data.get('efficiency_score'))}%\n"
            f"Total Value: {_money(data.get('total_value'))}\n"
            f"SKU Count: {_fmt(data.get('sku_count') or data.get('skuCount'))}\n"
            f"Performance Tier: {_text(data.get('performance_tier') or data.get('performanceLevel'), 'Unknown')}\n\n"
            f"Portfolio Context: {_fmt(context.get('totalBrands'))} brands, "
            f"{_fmt(context.get('topPerformers'))} top performers"
        )
    if rec_type == "warehouse-optimization":
        return (
            "Analyze this warehouse performance and provide optimization strategies:\n"
            f"Warehouse: {_text(data.get('name') or data.get('warehouseName') or data.get('id'), 'Unknown')}\n"
            f"Performance Score: {_fmt(data.get('performance_score') or data.get('performanceScore'))}%\n"
            f"Throughput: {_fmt(data.get('throughput'))} units/day\n"
            f"Efficiency: {_fmt(data.get('efficiency'))}%\n"
            f"Capacity Utilization: {_fmt(data.get('capacity_utilization'))}%\n\n"
            f"Network Context: {_fmt(context.get('totalWarehouses'))} warehouses, "
            f"{_fmt(context.get('avgPerformance'))}% avg performance"
        )
    if rec_type == "inventory-management":
        return (
            "Analyze this inventory situation and provide optimization strategies:\n"
            f"Brand: {_text(data.get('brand_name') or data.get('name'), 'Unknown')}\n"
            f"Stock Level: {_fmt(data.get('quantity'))} units\n"
            f"Value: {_money(data.get('total_value'))}\n"
            f"Turnover: {_fmt(data.get('turnover_rate'))}x\n"
            f"Performance: {_fmt(data.get('efficiency_score'))}%\n\n"
            f"Inventory Context: {_fmt(context.get('totalSKUs'))} SKUs, "
            f"{_fmt(context.get('portfolioValue'))} portfolio value"
        )
    return (
        "Analyze this operational insight and provide actionable improvement strategies:\n"
        f"Title: {_text(data.get('title'), 'Operational insight')}\n"
        f"Severity: {_text(data.get('severity'), 'info')}\n"
        f"Description: {_text(data.get('description'), '')}\n"
        f"Impact: {_money(data.get('dollarImpact'))}\n\n"
        f"Operational Context: {_fmt(context.get('totalShipments'))} shipments, "
        f"{_fmt(context.get('totalOrders'))} orders, {_fmt(context.get('atRiskOrders'))} at-risk orders"
    )


# =============================================================================
# Page insights
# =============================================================================

def _mean_of(items: Sequence[Mapping[str, Any]], *keys: str) -> float:
    values = [_num(next((item.get(k) for k in keys if item.get(k) is not None), 0)) for item in items]
    return round(sum(values) / max(len(values), 1), 1)


def insight_user_prompt(
    insight_type: str,
    data: Mapping[str, Any],
    context: Optional[Mapping[str, Any]] = None,
) -> str:
    if insight_type == "orders":
        body = (
            "Analyze order processing performance and provide operational insights:\n\n"
            "ORDER METRICS:\n"
            f"- Daily Orders: {_fmt(_get(data, 'kpis', 'ordersToday'))}\n"
            f"- At-Risk Orders: {_fmt(_get(data, 'kpis', 'atRiskOrders'))}\n"
            f"- Open POs: {_fmt(_get(data, 'kpis', 'openPOs'))}\n"
            f"- Unfulfillable SKUs: {_fmt(_get(data, 'kpis', 'unfulfillableSKUs'))}\n\n"
            "INBOUND INTELLIGENCE:\n"
            f"- Total Shipments: {_fmt(_get(data, 'inboundIntelligence', 'totalInbound'))}\n"
            f"- Delayed Shipments: {_fmt(_get(data, 'inboundIntelligence', 'delayedShipments', 'count'))}\n"
            f"- Value at Risk: {_money(_get(data, 'inboundIntelligence', 'valueAtRisk'))}\n"
            f"- Avg Delay: {_fmt(_get(data, 'inboundIntelligence', 'avgDelayDays'))} days"
        )
    elif insight_type == "analytics":
        brands = _items(_get(data, "brandPerformance", "brandRankings") or data.get("brandPerformance"))
        body = (
            "Analyze performance metrics and provide strategic insights:\n\n"
            "PERFORMANCE OVERVIEW:\n"
            f"- Growth Rate: {_fmt(_get(data, 'performanceMetrics', 'orderVolumeTrend', 'growthRate'))}%\n"
            f"- Efficiency Rate: {_fmt(_get(data, 'performanceMetrics', 'fulfillmentPerformance', 'efficiencyRate'))}%\n"
            f"- On-Time Orders: {_fmt(_get(data, 'performanceMetrics', 'fulfillmentPerformance', 'onTimeOrders'))}\n\n"
            "BRAND PERFORMANCE:\n"
            f"- Total Brands: {len(brands)}\n"
            f"- Leading Brand: {_text(brands[0].get('brandName') if brands else None, 'None')}"
        )
    elif insight_type == "cost-management":
        body = (
            "Analyze cost structure and provide optimization insights:\n\n"
            "COST METRICS:\n"
            f"- Monthly Costs: {_money(_get(data, 'kpis', 'totalMonthlyCosts'))}\n"
            f"- Efficiency Rate: {_fmt(_get(data, 'kpis', 'costEfficiencyRate'))}%\n"
            f"- Cost Centers: {len(_items(data.get('costCenters')))}\n"
            f"- Supplier Performance: {len(_items(data.get('supplierPerformance')))} suppliers\n\n"
            "TREND ANALYSIS:\n"
            f"- Historical Trends: {len(_items(data.get('historicalTrends')))} data points"
        )
    elif insight_type == "inventory":
        body = (
            "Analyze inventory performance and provide optimization insights:\n\n"
            "INVENTORY METRICS:\n"
            f"- Total SKUs: {_fmt(_get(data, 'kpis', 'totalSKUs'))}\n"
            f"- Stock Value: {_money(_get(data, 'kpis', 'totalStockValue'))}\n"
            f"- Turnover Rate: {_fmt(_get(data, 'kpis', 'averageTurnoverRate'))}x\n"
            f"- Stock-out Risk: {_fmt(_get(data, 'kpis', 'stockOutRisk'))}%"
        )
    else:
        warehouses = _items(data.get("warehouses"))
        body = (
            "Analyze warehouse performance and provide operational insights:\n\n"
            "WAREHOUSE NETWORK:\n"
            f"- Total Facilities: {len(warehouses)}\n"
            f"- Avg Performance: {_mean_of(warehouses, 'performanceScore', 'performance_score')}%\n"
            f"- Avg SLA: {_mean_of(warehouses, 'slaPerformance', 'sla_performance')}%\n"
            f"- Total Throughput: {_fmt(sum(_num(w.get('throughput')) for w in warehouses))} units"
        )
    return body + "\n" + INSIGHT_FORMAT


# =============================================================================
# Cost variance recommendations
# =============================================================================

def cost_variance_prompt(anomaly: Mapping[str, Any], context: Mapping[str, Any]) -> str:
    risk_factors = anomaly.get("riskFactors")
    factors = ", ".join(str(f) for f in risk_factors) if isinstance(risk_factors, list) else ""
    anomaly_type = anomaly.get("type")

    if anomaly_type == "Quantity Discrepancy":
        return (
            "QUANTITY DISCREPANCY COST CONTROL:\n\n"
            "Warehouse Issue:\n"
            f"- Location: {_text(anomaly.get('warehouseId'), 'Unknown')}\n"
            f"- Discrepancy Rate: {_fmt(anomaly.get('currentValue'))}% "
            f"(expected: {_fmt(anomaly.get('expectedValue'))}%)\n"
            f"- Financial Impact: {_money(anomaly.get('financialImpact'))}\n"
            f"- Processing Issues: {factors}\n\n"
            "Operations Context:\n"
            f"- Multiple warehouses affected: {_fmt(context.get('warehouseCount'))}\n"
            f"- Supply chain variance: {_fmt(context.get('avgVariance'))}%\n"
            f"- Total operational impact: {_money(context.get('totalImpact'))}\n\n"
            "Generate 3-4 operational excellence recommendations focusing on:\n"
            "1. Immediate process controls to reduce discrepancies\n"
            "2. Technology solutions for accuracy improvement\n"
            "3. Training and accountability measures\n"
            "4. Cost recovery and prevention strategies"
        )
    if anomaly_type == "Supplier Variance":
        return (
            "SUPPLIER COST VARIANCE OPTIMIZATION:\n\n"
            "Supplier Performance Issue:\n"
            f"- Supplier: {_text(anomaly.get('supplier'), 'Unknown')}\n"
            f"- Cost Deviation: {_fmt(anomaly.get('variance'))}% above baseline\n"
            f"- Expected Cost: {_money(anomaly.get('expectedValue'))} | "
            f"Actual: {_money(anomaly.get('currentValue'))}\n"
            f"- Financial Impact: {_money(anomaly.get('financialImpact'))}\n\n"
            "Supply Chain Context:\n"
            f"- Active suppliers in network: {_fmt(context.get('supplierCount'))}\n"
            f"- Average cost variance: {_fmt(context.get('avgVariance'))}%\n"
            f"- Total supplier-related cost impact: {_money(context.get('totalImpact'))}\n\n"
            "Generate 3-4 strategic supplier management recommendations:\n"
            "1. Contract renegotiation strategies with specific terms\n"
            "2. Alternative supplier evaluation and onboarding\n"
            "3. Performance-based pricing mechanisms\n"
            "4. Supply chain diversification tactics"
        )
    return (
        "COST SPIKE ANALYSIS & MITIGATION:\n\n"
        "Current Situation:\n"
        f"- Supplier: {_text(anomaly.get('supplier'), 'Unknown')}\n"
        f"- Cost Variance: +{_fmt(anomaly.get('variance'))}% "
        f"({_money(anomaly.get('currentValue'))} vs expected {_money(anomaly.get('expectedValue'))})\n"
        f"- Financial Impact: {_money(anomaly.get('financialImpact'))}\n"
        f"- Risk Factors: {factors}\n"
        f"- Severity: {_text(anomaly.get('severity'), 'Medium')}\n\n"
        "Context:\n"
        f"- Total cost anomalies detected: {_fmt(context.get('totalAnomalies'))}\n"
        f"- Network-wide variance average: {_fmt(context.get('avgVariance'))}%\n"
        f"- Total impact across operations: {_money(context.get('totalImpact'))}\n\n"
        "Generate 3-4 specific, immediately actionable cost reduction strategies. Focus on:\n"
        "1. Immediate cost containment actions\n"
        "2. Supplier negotiation tactics\n"
        "3. Process improvements to prevent recurrence\n"
        "4. Alternative sourcing strategies"
    )


# =============================================================================
# Dashboard and cost page insights
# =============================================================================

def dashboard_insights_prompt(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    impacts: FinancialImpacts,
) -> str:
    active = sum(1 for p in products if p.active)
    inactive = len(products) - active
    accurate = sum(1 for s in shipments if not s.has_discrepancy)
    variances = len(shipments) - accurate
    shipment_value = sum(s.received_quantity * (s.unit_cost or 0) for s in shipments)
    per_shipment = shipment_value / len(shipments) if shipments else 0.0

    risky = [s for s in shipments if s.ship_from_country in GEO_RISK_COUNTRIES]
    risky_countries = list(dict.fromkeys(s.ship_from_country for s in risky))[:3]
    supplier_counts = Counter(s.supplier or "Unknown" for s in shipments)
    top_three = sum(count for _, count in supplier_counts.most_common(3))

    return f"""You are a senior 3PL operations analyst. Analyze this logistics data and provide strategic insights with quantified financial impact.

INVENTORY & PRODUCT ANALYSIS:
- Total Products: {len(products)} ({active} active, {inactive} inactive)
- Product Diversity: {len({p.brand_name for p in products})} brands across {len({p.supplier_name for p in products})} suppliers
- SKU Utilization: {percentage(active, len(products))}% active portfolio
- Inactive Product Value: ${impacts.inactive_products_value:,}/month lost opportunity

SHIPMENT & FULFILLMENT PERFORMANCE:
- Total Shipments: {len(shipments)}
- Quantity Accuracy: {percentage(accurate, len(shipments))}% ({variances} with variances)
- Financial Impact of Discrepancies: ${impacts.quantity_discrepancy_impact:,}
- Cancelled Shipment Impact: ${impacts.cancelled_shipments_impact:,}

RISK & FINANCIAL EXPOSURE:
- Received Shipment Value: ${round(shipment_value):,}
- Geographic Risk Concentration: {percentage(len(risky), len(shipments))}% from {', '.join(risky_countries) or 'none'}
- Supplier Concentration Risk: {percentage(top_three, len(shipments))}% (top 3 suppliers)
- Total Financial Risk: ${impacts.total_financial_risk:,}

EFFICIENCY:
- Cost Per Shipment: ${per_shipment:.2f}
- Portfolio Optimization: {percentage(inactive, len(products))}% inactive SKUs

PROVIDE STRATEGIC ANALYSIS (2-4 insights based on data significance).
Each insight must include a specific dollar impact calculated from the data above
and 1-4 specific, prioritized actions.
{INSIGHT_FORMAT}"""


def cost_insights_prompt(
    kpis: Mapping[str, Any],
    cost_centers: Sequence[Mapping[str, Any]],
    total_shipments: int,
) -> str:
    high_cost = sum(1 for c in cost_centers if _num(c.get("costEfficiency")) < 70)
    inactive = sum(1 for c in cost_centers if c.get("status") == "Inactive")
    avg_cost = (
        sum(_num(c.get("costPerShipment")) for c in cost_centers) / len(cost_centers)
        if cost_centers else 0.0
    )
    return f"""You are a senior operations consultant specializing in 3PL cost optimization. Analyze the following cost management data and generate 2-3 critical insights with specific financial impact.

COST MANAGEMENT DATA:
- Total Monthly Costs: {_money(kpis.get('totalMonthlyCosts'))}
- Cost Efficiency Rate: {_fmt(kpis.get('costEfficiencyRate'))}%
- Top Performing Warehouses: {_fmt(kpis.get('topPerformingWarehouses'))}/{_fmt(kpis.get('totalCostCenters'))}
- Active Facilities: {_fmt(kpis.get('activeCostCenters'))}
- Inactive Facilities: {inactive}
- Monthly Throughput: {_fmt(kpis.get('monthlyThroughput'))} units
- High-Cost Centers: {high_cost}
- Average Cost per Shipment: ${avg_cost:.2f}
- Total Shipments: {total_shipments}

Focus on cost efficiency, underperforming facilities and process improvements.
{INSIGHT_FORMAT}"""


# =============================================================================
# Chat assistant
# =============================================================================

QUICK_ACTIONS: List[Dict[str, str]] = [
    {
        "id": "top-brands",
        "label": "Name my top brands",
        "prompt": (
            "Based on my current operational data, name my top 5 brands by total activity "
            "(SKUs + shipments). Include specific metrics for each brand and their operational "
            "performance."
        ),
    },
    {
        "id": "warehouse-status",
        "label": "List my warehouses",
        "prompt": (
            "List all my active warehouses with their current SLA performance, shipment volume, "
            "and operational status. Rank them by performance and identify any that need attention."
        ),
    },
    {
        "id": "daily-priorities",
        "label": "What should I act on today?",
        "prompt": (
            "Analyze my current operations and identify the top 3-5 most critical issues I should "
            "address today. Focus on at-risk shipments, processing problems, and financial impact."
        ),
    },
    {
        "id": "at-risk-orders",
        "label": "Show at-risk orders",
        "prompt": (
            "Identify all shipments and orders that are currently at-risk. Include quantity "
            "discrepancies, cancelled orders, and delayed shipments with their potential "
            "financial impact."
        ),
    },
]

LIMITED_CONTEXT_NOTE = "Note: Operating with limited context due to data access issues."


def operational_context(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    now: datetime,
) -> str:
    """Plain-text operations summary embedded in the chat system prompt"""
    stamp = now.strftime("%Y-%m-%d %H:%M UTC")
    active = sum(1 for p in products if p.active)
    today = now.date()
    today_count = sum(1 for s in shipments if s.created_date and s.created_date.date() == today)
    at_risk = sum(1 for s in shipments if s.is_at_risk)
    completed = sum(1 for s in shipments if s.status.strip().lower() in ("completed", "delivered"))
    impact = sum(s.quantity_difference * s.unit_cost for s in shipments if s.has_discrepancy and s.unit_cost)

    brands: Dict[str, List[int]] = {}
    for product in products:
        brands.setdefault(product.brand_name or "Unknown", [0, 0])[0] += 1
    for shipment in shipments:
        counts = brands.get(shipment.brand_name or "Unknown")
        if counts is not None:
            counts[1] += 1
    top_brands = sorted(brands.items(), key=lambda item: sum(item[1]), reverse=True)[:5]

    warehouses: Dict[str, List[int]] = {}
    for shipment in shipments:
        if shipment.warehouse_id:
            counts = warehouses.setdefault(shipment.warehouse_id, [0, 0])
            counts[0] += 1
            counts[1] += 0 if shipment.is_at_risk else 1
    top_warehouses = sorted(
        ((wid, total, round(ok / total * 100)) for wid, (total, ok) in warehouses.items()),
        key=lambda item: item[2],
        reverse=True,
    )[:3]

    brand_lines = "\n".join(
        f"{i}. {name} ({skus} SKUs, {count} shipments)"
        for i, (name, (skus, count)) in enumerate(top_brands, start=1)
    ) or "No brand data"
    warehouse_lines = "\n".join(
        f"{i}. Warehouse {wid}: {sla}% SLA ({total} shipments)"
        for i, (wid, total, sla) in enumerate(top_warehouses, start=1)
    ) or "No warehouse data"
    recent_lines = "\n".join(
        f"- {s.purchase_order_number or s.shipment_id}: {s.brand_name or 'Unknown'}, {s.status or 'unknown'}, "
        f"{'Qty Variance' if s.has_discrepancy else 'On Track'}"
        for s in shipments[:3]
    ) or "No recent shipments"

    return f"""CURRENT 3PL OPERATIONS CONTEXT ({stamp}):

=== REAL-TIME METRICS ===
- Total SKUs: {len(products)} ({active} active, {len(products) - active} inactive)
- Orders Today: {today_count}
- At-Risk Shipments: {at_risk} out of {len(shipments)}
- Completed Shipments: {completed}
- Financial Impact: ${round(impact):,}

=== TOP PERFORMING BRANDS ===
{brand_lines}

=== WAREHOUSE PERFORMANCE ===
{warehouse_lines}

=== OPERATIONAL STATUS ===
- Inventory Health: {round(percentage(active, len(products)))}% active SKUs
- Processing Accuracy: {round(percentage(len(shipments) - at_risk, len(shipments)))}%
- Critical Issues: {at_risk} shipments need attention

=== RECENT ACTIVITY SAMPLE ===
{recent_lines}"""


def chat_system_prompt(context: str) -> str:
    return f"""You are CargoCore AI, a 3PL operations consultant with real-time access to the user's operational data.

Analyze the operational data below before responding. Never give generic answers: back every claim with specific numbers, warehouse IDs, brands or shipment details from the data.

RESPONSE STANDARDS:
- Lead with the most critical insight from current data
- Provide 3-5 specific recommendations with financial impact
- Suggest immediate actions the user can take today
- End with the highest-priority item requiring attention

REAL-TIME OPERATIONAL INTELLIGENCE:
{context}"""
