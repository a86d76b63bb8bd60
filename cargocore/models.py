"""
Domain Models

Upstream records (Product, Shipment) are validated leniently: unknown fields
are ignored, optional fields may be missing, and malformed timestamps or
quantities degrade to None/0 rather than failing the whole batch.

Output records serialize with camelCase keys for the web front end.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


UNKNOWN_BRAND = "Unknown Brand"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an upstream timestamp into an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings (with or without a trailing Z, with a
    space or T separator) and epoch seconds. Naive values are taken as UTC.
    Anything unparseable returns None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _to_quantity(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_cost(value: Any) -> Optional[float]:
    value = _blank_to_none(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Upstream records
# =============================================================================

class RecordModel(BaseModel):
    """Base for upstream records"""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class Product(RecordModel):
    """A SKU record from the analytics backend"""

    product_id: str
    company_url: str = ""
    brand_id: Optional[str] = None
    brand_name: Optional[str] = None
    product_name: str = ""
    product_sku: Optional[str] = None
    active: bool = False
    supplier_name: Optional[str] = None
    product_supplier: Optional[str] = None
    unit_cost: Optional[float] = None
    unit_quantity: int = 0
    country_of_origin: Optional[str] = None
    inventory_item_id: Optional[str] = None
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None

    @field_validator("active", mode="before")
    @classmethod
    def coerce_active(cls, v: Any) -> Any:
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes", "y", "t", "on", "active")
        return bool(v)

    @field_validator("unit_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Optional[float]:
        return _to_cost(v)

    @field_validator("unit_quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> int:
        return _to_quantity(v)

    @field_validator("created_date", "updated_date", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)

    @field_validator(
        "brand_id", "brand_name", "product_sku", "supplier_name",
        "product_supplier", "country_of_origin", "inventory_item_id",
        mode="before",
    )
    @classmethod
    def coerce_blank(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("company_url", "product_name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return "" if v is None else v


class Shipment(RecordModel):
    """An inbound shipment/receipt record from the warehouse backend"""

    shipment_id: str
    company_url: str = ""
    brand_id: Optional[str] = None
    brand_name: Optional[str] = None
    supplier: Optional[str] = None
    warehouse_id: Optional[str] = None
    inventory_item_id: Optional[str] = None
    sku: Optional[str] = None
    expected_quantity: int = 0
    received_quantity: int = 0
    unit_cost: Optional[float] = None
    status: str = ""
    created_date: Optional[datetime] = None
    expected_arrival_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None
    purchase_order_number: Optional[str] = None
    ship_from_city: Optional[str] = None
    ship_from_state: Optional[str] = None
    ship_from_country: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("expected_quantity", "received_quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> int:
        return _to_quantity(v)

    @field_validator("unit_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Optional[float]:
        return _to_cost(v)

    @field_validator("created_date", "expected_arrival_date", "arrival_date", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)

    @field_validator(
        "brand_id", "brand_name", "supplier", "warehouse_id", "inventory_item_id",
        "sku", "purchase_order_number", "ship_from_city", "ship_from_state",
        "ship_from_country", "notes",
        mode="before",
    )
    @classmethod
    def coerce_blank(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("company_url", "status", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def has_discrepancy(self) -> bool:
        return self.expected_quantity != self.received_quantity

    @property
    def is_cancelled(self) -> bool:
        return self.status.strip().lower() == "cancelled"

    @property
    def is_at_risk(self) -> bool:
        return self.has_discrepancy or self.is_cancelled

    @property
    def quantity_difference(self) -> int:
        return abs(self.expected_quantity - self.received_quantity)


# =============================================================================
# Output records
# =============================================================================

class CamelModel(BaseModel):
    """Base for response records; serializes with camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InsightSeverity(str, Enum):
    """Severity levels for insights"""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Insight(CamelModel):
    """A narrative finding with suggested actions"""

    id: str
    title: str
    description: str
    severity: InsightSeverity
    dollar_impact: float = 0
    suggested_actions: List[str] = Field(min_length=1, max_length=4)
    source: str = "rule_engine"
    created_at: datetime


class AnomalyType(str, Enum):
    """Kinds of cost-variance anomalies"""
    COST_SPIKE = "Cost Spike"
    QUANTITY_DISCREPANCY = "Quantity Discrepancy"


class AnomalySeverity(str, Enum):
    """Severity levels for cost-variance anomalies"""
    HIGH = "High"
    MEDIUM = "Medium"


class CostVarianceAnomaly(CamelModel):
    """A flagged supplier cost spike or warehouse discrepancy pattern"""

    id: str
    type: AnomalyType
    title: str
    description: str
    severity: AnomalySeverity
    warehouse_id: Optional[str] = None
    supplier: Optional[str] = None
    current_value: float
    expected_value: float
    variance: float
    risk_factors: List[str] = Field(default_factory=list)
    financial_impact: float
    confidence: Optional[float] = None
    discrepancy_rate: Optional[float] = None
    total_shipments: Optional[int] = None
    created_at: datetime


class SupplierCostBaseline(CamelModel):
    """Per-supplier cost history with its smoothed baseline and threshold"""

    supplier: str
    history: List[float]
    baseline: float
    upper_threshold: float
    lower_threshold: float
    confidence: float
    mean: float
    method: str

    @property
    def observations(self) -> int:
        return len(self.history)


class RiskLevel(str, Enum):
    """Margin risk levels"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class MarginRiskAlert(CamelModel):
    """Composite margin risk for one brand"""

    brand_name: str
    current_margin: float
    risk_level: RiskLevel
    risk_score: int
    primary_drivers: List[str]
    financial_impact: float
    sku_count: int
    avg_unit_cost: float
    inactive_percentage: float
