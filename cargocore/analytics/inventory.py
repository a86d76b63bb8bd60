"""
Inventory Calculators

Products projected as inventory items with a stock status, and inventory KPIs.
"""

from typing import List, Optional, Sequence

from pydantic import Field

from cargocore.models import CamelModel, Product

COMMITTED_SHARE = 0.10
LOW_STOCK_LEVEL = 10
OVERSTOCK_LEVEL = 100
TURNOVER_DAYS = 30


class InventoryItem(CamelModel):
    sku: str
    product_name: str
    brand_name: Optional[str] = None
    on_hand: int
    committed: int
    available: int
    status: str
    supplier: Optional[str] = None
    last_updated: Optional[str] = None


class InventoryKPIs(CamelModel):
    total_skus: int = Field(alias="totalSKUs")
    in_stock_count: int
    unfulfillable_count: int
    overstocked_count: int
    avg_days_on_hand: Optional[int] = None


def stock_status(available: int) -> str:
    if available == 0:
        return "Out of Stock"
    if available < LOW_STOCK_LEVEL:
        return "Low Stock"
    if available > OVERSTOCK_LEVEL:
        return "Overstocked"
    return "In Stock"


def to_inventory_item(product: Product) -> InventoryItem:
    on_hand = max(0, product.unit_quantity)
    committed = int(on_hand * COMMITTED_SHARE)
    available = max(0, on_hand - committed)
    return InventoryItem(
        sku=product.product_sku or product.product_id,
        product_name=product.product_name,
        brand_name=product.brand_name,
        on_hand=on_hand,
        committed=committed,
        available=available,
        status=stock_status(available),
        supplier=product.supplier_name or product.product_supplier,
        last_updated=product.updated_date.isoformat() if product.updated_date else None,
    )


def transform_products_to_inventory(products: Sequence[Product]) -> List[InventoryItem]:
    return [to_inventory_item(p) for p in products]


def calculate_inventory_kpis(items: Sequence[InventoryItem]) -> InventoryKPIs:
    total = len(items)
    on_hand = sum(item.on_hand for item in items)
    return InventoryKPIs(
        total_skus=total,
        in_stock_count=sum(1 for item in items if item.status in ("In Stock", "Overstocked")),
        unfulfillable_count=sum(1 for item in items if item.status == "Out of Stock"),
        overstocked_count=sum(1 for item in items if item.status == "Overstocked"),
        # unit count as a rough proxy for a month of turnover per unit
        avg_days_on_hand=round(on_hand / total * TURNOVER_DAYS) if total else None,
    )
