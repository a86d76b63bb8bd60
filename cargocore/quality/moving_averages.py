"""
Moving Average Utilities

Exponential moving averages, volatility scoring and adaptive thresholds used
for trend arrows and per-supplier cost baselines. Every function tolerates
empty or non-finite input and returns a neutral result instead of raising.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np


class TrendDirection(str, Enum):
    """Direction of the most recent movement in a series"""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class AdaptiveThreshold:
    """EMA baseline with multiplicative bounds"""
    baseline: float
    upper_threshold: float
    lower_threshold: float
    confidence: float
    period: int


def _finite(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return arr[np.isfinite(arr)]


def ema(values: Sequence[float], period: int) -> np.ndarray:
    """
    Exponential moving average seeded with the first observation.

    Uses alpha = 2 / (period + 1) and returns one smoothed value per input.
    Returns an empty array when the period is not positive or exceeds the
    number of finite observations.
    """
    data = _finite(values)
    if period <= 0 or len(data) == 0 or period > len(data):
        return np.array([], dtype=float)

    alpha = 2.0 / (period + 1)
    out = np.empty_like(data)
    out[0] = data[0]
    for i in range(1, len(data)):
        out[i] = alpha * data[i] + (1 - alpha) * out[i - 1]
    return out


def volatility_score(values: Sequence[float]) -> float:
    """Coefficient of variation as a 0-100 score (population std / |mean|)"""
    data = _finite(values)
    if len(data) < 2:
        return 0.0

    mean = float(np.mean(data))
    if mean == 0:
        return 0.0

    score = float(np.std(data)) / abs(mean) * 100
    return float(round(min(score, 100.0)))


def trend_direction(values: Sequence[float], tolerance: float = 0.01) -> TrendDirection:
    """Compare the last two values; changes within 1% of the previous are neutral"""
    data = _finite(values)
    if len(data) < 2:
        return TrendDirection.NEUTRAL

    current, previous = float(data[-1]), float(data[-2])
    difference = current - previous
    if abs(difference) <= abs(previous) * tolerance:
        return TrendDirection.NEUTRAL
    return TrendDirection.UP if difference > 0 else TrendDirection.DOWN


def adaptive_threshold(
    values: Sequence[float],
    period: int = 14,
    multiplier: float = 1.25,
    min_confidence: float = 50.0,
    max_confidence: float = 95.0,
) -> Optional[AdaptiveThreshold]:
    """
    Build an adaptive threshold from an EMA baseline.

    The period is clamped to the history length so short histories still get
    a baseline. Confidence starts from stability (100 - volatility over the
    last `period` observations, bounded to [min_confidence, max_confidence])
    and is scaled by history coverage n / period.

    Returns None when the baseline cannot be computed (no data, or an EMA
    that is non-finite or non-positive).
    """
    data = _finite(values)
    if len(data) == 0 or period <= 0 or multiplier <= 0:
        return None

    effective_period = min(period, len(data))
    smoothed = ema(data, effective_period)
    if len(smoothed) == 0:
        return None

    baseline = float(smoothed[-1])
    if not np.isfinite(baseline) or baseline <= 0:
        return None

    stability = 100.0 - volatility_score(data[-period:])
    coverage = min(1.0, len(data) / period)
    confidence = max(0.0, min(max_confidence, max(min_confidence, stability)) * coverage)

    return AdaptiveThreshold(
        baseline=round(baseline, 2),
        upper_threshold=round(baseline * multiplier, 2),
        lower_threshold=round(baseline / multiplier, 2),
        confidence=float(round(confidence)),
        period=effective_period,
    )
