"""
Upstream Data Ingestion Module
"""
from .clients import (
    DataSnapshot,
    ProductsClient,
    ShipmentsClient,
    fetch_snapshot,
)

__all__ = [
    "DataSnapshot",
    "ProductsClient",
    "ShipmentsClient",
    "fetch_snapshot",
]
