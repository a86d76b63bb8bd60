"""
Orders Calculators

Inbound shipments projected as orders, order KPIs and inbound intelligence
(delayed arrivals and the value they put at risk).
"""

import math
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import Field

from cargocore.analytics.kpis import DAY, percentage
from cargocore.models import CamelModel, Shipment

MAX_ORDERS = 500
MAX_LISTED_SHIPMENTS = 10


class Order(CamelModel):
    order_id: str
    created_date: Optional[datetime] = None
    brand_name: Optional[str] = None
    status: str
    sla_status: str
    expected_date: Optional[datetime] = None
    arrival_date: Optional[datetime] = None
    supplier: Optional[str] = None
    warehouse_id: Optional[str] = None
    product_sku: Optional[str] = None
    expected_quantity: int
    received_quantity: int
    unit_cost: Optional[float] = None
    ship_from_country: Optional[str] = None
    notes: Optional[str] = None
    shipment_id: str
    inventory_item_id: Optional[str] = None

    @property
    def is_delayed(self) -> bool:
        if self.expected_date is None or self.arrival_date is None:
            return False
        return self.arrival_date > self.expected_date

    @property
    def delay_days(self) -> int:
        """Whole days late, rounded up"""
        if not self.is_delayed:
            return 0
        return max(0, math.ceil((self.arrival_date - self.expected_date) / DAY))


class OrdersKPIs(CamelModel):
    orders_today: int
    at_risk_orders: int
    open_pos: int = Field(alias="openPOs")
    unfulfillable_skus: int = Field(alias="unfulfillableSKUs")


class DelayedShipments(CamelModel):
    count: int
    percentage: int


class InboundIntelligence(CamelModel):
    total_inbound: int
    delayed_shipments: DelayedShipments
    avg_delay_days: int
    value_at_risk: int
    recent_shipments: List[Order]
    delayed_shipments_list: List[Order]


def to_order(shipment: Shipment) -> Order:
    status = shipment.status.strip().lower()
    return Order(
        order_id=shipment.shipment_id,
        created_date=shipment.created_date,
        brand_name=shipment.brand_name,
        status=shipment.status,
        sla_status="on_time" if status == "completed" else "pending",
        expected_date=shipment.expected_arrival_date,
        arrival_date=shipment.arrival_date,
        supplier=shipment.supplier,
        warehouse_id=shipment.warehouse_id,
        product_sku=shipment.sku,
        expected_quantity=shipment.expected_quantity,
        received_quantity=shipment.received_quantity,
        unit_cost=shipment.unit_cost,
        ship_from_country=shipment.ship_from_country,
        notes=shipment.notes,
        shipment_id=shipment.shipment_id,
        inventory_item_id=shipment.inventory_item_id,
    )


def transform_shipments_to_orders(shipments: Sequence[Shipment]) -> List[Order]:
    return [to_order(s) for s in shipments]


def calculate_orders_kpis(orders: Sequence[Order], now: datetime) -> OrdersKPIs:
    today = now.date()
    open_orders = [o for o in orders if o.status.strip().lower() not in ("completed", "cancelled")]
    return OrdersKPIs(
        orders_today=sum(1 for o in orders if o.created_date and o.created_date.date() == today),
        at_risk_orders=sum(
            1 for o in orders
            if o.expected_quantity != o.received_quantity or o.status.strip().lower() == "cancelled"
        ),
        open_pos=len({o.order_id for o in open_orders}),
        unfulfillable_skus=sum(1 for o in orders if not o.product_sku),
    )


def calculate_inbound_intelligence(orders: Sequence[Order]) -> InboundIntelligence:
    delayed = [o for o in orders if o.is_delayed]
    avg_delay = sum(o.delay_days for o in delayed) / len(delayed) if delayed else 0
    value_at_risk = sum(o.expected_quantity * (o.unit_cost or 0) for o in delayed)

    return InboundIntelligence(
        total_inbound=len(orders),
        delayed_shipments=DelayedShipments(
            count=len(delayed),
            percentage=round(percentage(len(delayed), len(orders), digits=4)),
        ),
        avg_delay_days=round(avg_delay),
        value_at_risk=round(value_at_risk),
        recent_shipments=list(orders[:MAX_LISTED_SHIPMENTS]),
        delayed_shipments_list=delayed[:MAX_LISTED_SHIPMENTS],
    )
