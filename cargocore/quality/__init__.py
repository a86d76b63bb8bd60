"""
Cost Quality Module

Cost baselines, anomaly detection and margin risk scoring.
"""
from .anomaly_detector import AnomalyReport, CostVarianceDetector
from .margin_risk import calculate_margin_risks
from .moving_averages import (
    AdaptiveThreshold,
    TrendDirection,
    adaptive_threshold,
    ema,
    trend_direction,
    volatility_score,
)

__all__ = [
    "AdaptiveThreshold",
    "AnomalyReport",
    "CostVarianceDetector",
    "TrendDirection",
    "adaptive_threshold",
    "calculate_margin_risks",
    "ema",
    "trend_direction",
    "volatility_score",
]
