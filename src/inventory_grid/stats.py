from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .normalizer import Product, display_row, parse_price

STOCK_LOW = "low"
STOCK_MEDIUM = "medium"
STOCK_HIGH = "high"


@dataclass(frozen=True)
class InventoryStats:
    total_products: int
    total_items: int
    total_value: str


def stock_level(quantity: int, low_threshold: int = 10, medium_threshold: int = 50) -> str:
    if quantity < low_threshold:
        return STOCK_LOW
    if quantity < medium_threshold:
        return STOCK_MEDIUM
    return STOCK_HIGH


def inventory_stats(products: Sequence[Product]) -> InventoryStats:
    total_items = 0
    total_value = 0.0
    for product in products:
        row = display_row(product)
        total_items += row.quantity
        total_value += parse_price(row.price) * row.quantity
    return InventoryStats(
        total_products=len(products),
        total_items=total_items,
        total_value=f"{total_value:.2f}",
    )
