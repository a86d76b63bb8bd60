"""
Trend Enhancement

Daily shipment series over a trailing window, smoothed with a 7-period EMA,
feeding the trend arrows on the analytics KPIs.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from cargocore.analytics.kpis import (
    fulfillment_efficiency,
    inventory_health,
    order_volume_growth,
    return_rate,
)
from cargocore.models import CamelModel, Product, Shipment
from cargocore.quality.moving_averages import TrendDirection, ema, trend_direction


def _day_buckets(shipments: Sequence[Shipment], now: datetime, days: int) -> List[List[Shipment]]:
    """Shipments per UTC calendar day, oldest day first, ending today"""
    today = now.astimezone(timezone.utc).date()
    first_day = today - timedelta(days=days - 1)
    buckets: List[List[Shipment]] = [[] for _ in range(days)]

    for shipment in shipments:
        if shipment.created_date is None:
            continue
        index = (shipment.created_date.date() - first_day).days
        if 0 <= index < days:
            buckets[index].append(shipment)
    return buckets


def daily_shipment_counts(shipments: Sequence[Shipment], now: datetime, days: int = 14) -> List[float]:
    return [float(len(bucket)) for bucket in _day_buckets(shipments, now, days)]


def daily_fulfillment_rates(shipments: Sequence[Shipment], now: datetime, days: int = 14) -> List[float]:
    """Per-day fulfillment efficiency; days without shipments count as 0"""
    return [fulfillment_efficiency(bucket) for bucket in _day_buckets(shipments, now, days)]


class AnalyticsKPIs(CamelModel):
    order_volume_growth: float
    return_rate: float
    fulfillment_efficiency: float
    inventory_health_score: float
    order_volume_trend: TrendDirection = TrendDirection.NEUTRAL
    order_volume_ma7: Optional[int] = None
    fulfillment_trend: TrendDirection = TrendDirection.NEUTRAL
    fulfillment_efficiency_ma: Optional[float] = None


def calculate_analytics_kpis(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    now: datetime,
    window_days: int = 14,
    ma_period: int = 7,
) -> AnalyticsKPIs:
    """Headline analytics KPIs plus EMA trend fields"""
    volume_ma = ema(daily_shipment_counts(shipments, now, window_days), ma_period)
    fulfillment_ma = ema(daily_fulfillment_rates(shipments, now, window_days), ma_period)

    return AnalyticsKPIs(
        order_volume_growth=order_volume_growth(shipments, now),
        return_rate=return_rate(shipments),
        fulfillment_efficiency=fulfillment_efficiency(shipments),
        inventory_health_score=inventory_health(products),
        order_volume_trend=trend_direction(volume_ma),
        order_volume_ma7=round(float(volume_ma[-1])) if len(volume_ma) else None,
        fulfillment_trend=trend_direction(fulfillment_ma),
        fulfillment_efficiency_ma=round(float(fulfillment_ma[-1]), 1) if len(fulfillment_ma) else None,
    )
