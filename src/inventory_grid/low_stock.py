from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .config import GridSettings
from .normalizer import Product, display_row
from .pagination import PageSlice, slice_page


def low_stock_products(products: Sequence[Product], threshold: int = 10) -> list[Product]:
    return [product for product in products if display_row(product).quantity < threshold]


@dataclass
class LowStockView:
    """Low-stock subview with its own page state, derived from already loaded products."""

    threshold: int = 10
    rows_per_page: int = 5
    page: int = 1
    items: list[Product] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: GridSettings) -> LowStockView:
        return cls(threshold=settings.low_stock_threshold, rows_per_page=settings.low_stock_rows_per_page)

    def recompute(self, products: Sequence[Product]) -> None:
        self.items = low_stock_products(products, self.threshold)
        last_page = max(1, -(-len(self.items) // self.rows_per_page))
        self.page = min(self.page, last_page)

    def change_page(self, page: int) -> None:
        self.page = max(1, page)

    def change_rows_per_page(self, rows_per_page: int) -> None:
        if rows_per_page < 1:
            raise ValueError("rows_per_page must be >= 1")
        self.rows_per_page = rows_per_page
        self.page = 1

    def visible(self) -> PageSlice:
        return slice_page(self.items, self.page, self.rows_per_page)
