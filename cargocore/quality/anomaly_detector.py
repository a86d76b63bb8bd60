"""
Cost Variance Anomaly Detection

Per-supplier cost baselines and warehouse discrepancy patterns over one
shipment snapshot. Implements:
- Adaptive EMA baselines with a static mean fallback
- Cost Spike detection against the adaptive threshold and the simple mean
- Warehouse quantity-discrepancy rate detection
- A dollar-impact floor so only material anomalies are reported
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from cargocore.models import (
    AnomalySeverity,
    AnomalyType,
    CostVarianceAnomaly,
    Shipment,
    SupplierCostBaseline,
)
from cargocore.quality.moving_averages import adaptive_threshold

logger = structlog.get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class AnomalyReport:
    """Complete cost variance detection report"""
    detected_at: datetime
    suppliers_checked: int
    warehouses_checked: int
    baselines: Dict[str, SupplierCostBaseline] = field(default_factory=dict)
    skipped_suppliers: List[str] = field(default_factory=list)
    anomalies: List[CostVarianceAnomaly] = field(default_factory=list)

    @property
    def high_severity_count(self) -> int:
        return sum(1 for a in self.anomalies if a.severity == AnomalySeverity.HIGH)

    @property
    def total_impact(self) -> float:
        return sum(a.financial_impact for a in self.anomalies)


class CostVarianceDetector:
    """
    Detects supplier cost spikes and warehouse processing issues.

    A supplier needs at least `min_observations` costed shipments before it
    is judged; sparse histories are skipped, never flagged.

    Example:
        detector = CostVarianceDetector()
        report = detector.detect(shipments)
        for anomaly in report.anomalies:
            ...
    """

    def __init__(
        self,
        baseline_period: int = 14,
        threshold_multiplier: float = 1.25,
        static_multiplier: float = 1.4,
        mean_deviation_threshold: float = 0.40,
        high_deviation_threshold: float = 0.80,
        min_observations: int = 3,
        cost_impact_floor: float = 1000.0,
        discrepancy_rate_threshold: float = 0.30,
        high_discrepancy_rate: float = 0.50,
        discrepancy_impact_floor: float = 2000.0,
        min_warehouse_shipments: int = 5,
        max_anomalies: int = 8,
    ):
        self.baseline_period = baseline_period
        self.threshold_multiplier = threshold_multiplier
        self.static_multiplier = static_multiplier
        self.mean_deviation_threshold = mean_deviation_threshold
        self.high_deviation_threshold = high_deviation_threshold
        self.min_observations = min_observations
        self.cost_impact_floor = cost_impact_floor
        self.discrepancy_rate_threshold = discrepancy_rate_threshold
        self.high_discrepancy_rate = high_discrepancy_rate
        self.discrepancy_impact_floor = discrepancy_impact_floor
        self.min_warehouse_shipments = min_warehouse_shipments
        self.max_anomalies = max_anomalies

    @staticmethod
    def supplier_histories(shipments: Sequence[Shipment]) -> Dict[str, List[Shipment]]:
        """Costed shipments per supplier, oldest first (stable for equal dates)"""
        grouped: Dict[str, List[Shipment]] = defaultdict(list)
        for shipment in shipments:
            if shipment.unit_cost is None or not shipment.supplier:
                continue
            grouped[shipment.supplier].append(shipment)

        return {
            supplier: sorted(items, key=lambda s: s.created_date or _EPOCH)
            for supplier, items in grouped.items()
        }

    def build_baseline(self, supplier: str, costs: Sequence[float]) -> Optional[SupplierCostBaseline]:
        """
        Build a supplier baseline from its chronological cost history.

        Returns None when the history is too short or its mean is not
        positive.
        """
        if len(costs) < self.min_observations:
            return None

        values = np.asarray(costs, dtype=float)
        mean = float(np.mean(values))
        if not np.isfinite(mean) or mean <= 0:
            return None

        coverage = min(1.0, len(values) / self.baseline_period)
        adaptive = adaptive_threshold(
            values,
            period=self.baseline_period,
            multiplier=self.threshold_multiplier,
        )

        if adaptive is not None:
            return SupplierCostBaseline(
                supplier=supplier,
                history=[float(v) for v in values],
                baseline=adaptive.baseline,
                upper_threshold=adaptive.upper_threshold,
                lower_threshold=adaptive.lower_threshold,
                confidence=adaptive.confidence,
                mean=round(mean, 2),
                method="adaptive",
            )

        return SupplierCostBaseline(
            supplier=supplier,
            history=[float(v) for v in values],
            baseline=round(mean, 2),
            upper_threshold=round(mean * self.static_multiplier, 2),
            lower_threshold=round(mean / self.static_multiplier, 2),
            confidence=float(round(50 * coverage)),
            mean=round(mean, 2),
            method="static",
        )

    def _detect_cost_spikes(
        self,
        history: Sequence[Shipment],
        baseline: SupplierCostBaseline,
        detected_at: datetime,
    ) -> List[CostVarianceAnomaly]:
        """Flag shipments priced above the adaptive threshold or far from the mean"""
        anomalies = []

        for shipment in history:
            cost = float(shipment.unit_cost)
            mean_deviation = abs(cost - baseline.mean) / baseline.mean
            if not (cost > baseline.upper_threshold or mean_deviation > self.mean_deviation_threshold):
                continue

            impact = round(abs(cost - baseline.baseline) * shipment.received_quantity, 2)
            if impact <= self.cost_impact_floor:
                continue

            deviation = (cost - baseline.baseline) / baseline.baseline
            severity = (
                AnomalySeverity.HIGH if abs(deviation) > self.high_deviation_threshold
                else AnomalySeverity.MEDIUM
            )
            variance = round(deviation * 100)
            direction = "above" if deviation >= 0 else "below"

            anomalies.append(CostVarianceAnomaly(
                id=f"cost-spike-{shipment.shipment_id}",
                type=AnomalyType.COST_SPIKE,
                title=f"{baseline.supplier} Cost Anomaly",
                description=(
                    f"Unit cost of ${cost:,.2f} is {abs(variance)}% {direction} "
                    f"expected ${baseline.baseline:,.2f} baseline"
                ),
                severity=severity,
                warehouse_id=shipment.warehouse_id,
                supplier=baseline.supplier,
                current_value=cost,
                expected_value=baseline.baseline,
                variance=variance,
                risk_factors=[
                    "Extreme cost deviation" if severity == AnomalySeverity.HIGH
                    else f"Significant cost {'increase' if deviation >= 0 else 'decrease'}",
                    "High financial impact" if impact > 5000 else "Material financial impact",
                ],
                financial_impact=impact,
                confidence=baseline.confidence,
                created_at=detected_at,
            ))

        return anomalies

    def _detect_quantity_discrepancies(
        self,
        shipments: Sequence[Shipment],
        detected_at: datetime,
    ) -> List[CostVarianceAnomaly]:
        """Flag warehouses whose receiving accuracy is poor and costly"""
        anomalies = []
        totals: Dict[str, Dict[str, float]] = {}

        for shipment in shipments:
            if not shipment.warehouse_id:
                continue
            stats = totals.setdefault(
                shipment.warehouse_id, {"total": 0, "discrepancies": 0, "impact": 0.0}
            )
            stats["total"] += 1
            if shipment.has_discrepancy:
                stats["discrepancies"] += 1
                stats["impact"] += shipment.quantity_difference * (shipment.unit_cost or 0)

        for warehouse_id, stats in totals.items():
            total = int(stats["total"])
            rate = stats["discrepancies"] / total
            impact = round(stats["impact"], 2)

            if not (
                rate > self.discrepancy_rate_threshold
                and impact > self.discrepancy_impact_floor
                and total > self.min_warehouse_shipments
            ):
                continue

            severity = (
                AnomalySeverity.HIGH if rate > self.high_discrepancy_rate
                else AnomalySeverity.MEDIUM
            )
            anomalies.append(CostVarianceAnomaly(
                id=f"qty-discrepancy-{warehouse_id}",
                type=AnomalyType.QUANTITY_DISCREPANCY,
                title=f"Warehouse {warehouse_id} Processing Issues",
                description=(
                    f"{round(rate * 100)}% of shipments have quantity discrepancies "
                    f"with ${impact:,.0f} financial impact"
                ),
                severity=severity,
                warehouse_id=warehouse_id,
                current_value=round(rate * 100),
                expected_value=5,
                variance=round((rate - 0.05) * 100),
                risk_factors=[
                    "Critical processing accuracy" if severity == AnomalySeverity.HIGH
                    else "Poor processing accuracy",
                    "High financial impact" if impact > 10000 else "Material financial impact",
                ],
                financial_impact=impact,
                discrepancy_rate=rate,
                total_shipments=total,
                created_at=detected_at,
            ))

        return anomalies

    def detect(
        self,
        shipments: Sequence[Shipment],
        now: Optional[datetime] = None,
    ) -> AnomalyReport:
        """
        Run cost variance detection over a shipment snapshot.

        Args:
            shipments: Shipments of the current request
            now: Detection timestamp; pass a fixed value for reproducible output

        Returns:
            AnomalyReport with the top anomalies by financial impact
        """
        detected_at = now or datetime.now(timezone.utc)
        histories = self.supplier_histories(shipments)

        baselines: Dict[str, SupplierCostBaseline] = {}
        skipped: List[str] = []
        anomalies: List[CostVarianceAnomaly] = []

        for supplier, history in histories.items():
            baseline = self.build_baseline(supplier, [s.unit_cost for s in history])
            if baseline is None:
                skipped.append(supplier)
                continue
            baselines[supplier] = baseline
            anomalies.extend(self._detect_cost_spikes(history, baseline, detected_at))

        discrepancy_anomalies = self._detect_quantity_discrepancies(shipments, detected_at)
        anomalies.extend(discrepancy_anomalies)

        # sorted() is stable, so equal impacts keep detection order
        anomalies = sorted(anomalies, key=lambda a: a.financial_impact, reverse=True)

        report = AnomalyReport(
            detected_at=detected_at,
            suppliers_checked=len(histories),
            warehouses_checked=len({s.warehouse_id for s in shipments if s.warehouse_id}),
            baselines=baselines,
            skipped_suppliers=skipped,
            anomalies=anomalies[: self.max_anomalies],
        )

        if report.high_severity_count:
            logger.warning(
                "High severity cost anomalies detected",
                high_severity=report.high_severity_count,
                total_anomalies=len(report.anomalies),
            )
        else:
            logger.info(
                "Cost variance detection complete",
                anomalies=len(report.anomalies),
                suppliers=report.suppliers_checked,
                skipped_suppliers=len(skipped),
            )

        return report
