"""
Brand Ranking

Brands ordered by SKU count with a categorical performance label by rank.
"""

import math
from collections import OrderedDict
from typing import Dict, List, Sequence

from cargocore.models import UNKNOWN_BRAND, CamelModel, Product


class BrandRanking(CamelModel):
    rank: int
    brand_name: str
    sku_count: int
    inventory_percentage: float
    performance_level: str


class TopBrand(CamelModel):
    name: str
    sku_count: int


class BrandPerformance(CamelModel):
    total_brands: int
    top_brand: TopBrand
    brand_rankings: List[BrandRanking]


def performance_level(index: int, total: int) -> str:
    """Label for the brand at zero-based rank `index` out of `total`"""
    if index == 0:
        return "Leading Brand"
    if index <= 2:
        return "Top Performer"
    if index <= math.ceil(total * 0.3):
        return "Strong Performer"
    if index <= math.ceil(total * 0.7):
        return "Average Performer"
    return "Developing Brand"


def rank_brands(products: Sequence[Product]) -> List[BrandRanking]:
    """
    Rank brands by SKU count descending.

    Ties keep first-appearance order from the input.
    """
    counts: Dict[str, int] = OrderedDict()
    for product in products:
        brand = product.brand_name or UNKNOWN_BRAND
        counts[brand] = counts.get(brand, 0) + 1

    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    total_products = len(products)

    return [
        BrandRanking(
            rank=index + 1,
            brand_name=brand,
            sku_count=sku_count,
            inventory_percentage=round(sku_count / total_products * 100, 2) if total_products else 0.0,
            performance_level=performance_level(index, len(ordered)),
        )
        for index, (brand, sku_count) in enumerate(ordered)
    ]


def calculate_brand_performance(products: Sequence[Product]) -> BrandPerformance:
    rankings = rank_brands(products)
    if rankings:
        top = TopBrand(name=rankings[0].brand_name, sku_count=rankings[0].sku_count)
    else:
        top = TopBrand(name="No Data", sku_count=0)
    return BrandPerformance(total_brands=len(rankings), top_brand=top, brand_rankings=rankings)
