from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence, TypeVar

from .normalizer import Product, display_row, parse_price

T = TypeVar("T")

ELLIPSIS = "..."

SORT_ASC = "asc"
SORT_DESC = "desc"

SORTABLE_COLUMNS = ("name", "sku", "plu", "quantity", "price", "category", "supplier")


@dataclass(frozen=True)
class PageSlice:
    items: list[Any]
    page: int
    rows_per_page: int
    total: int
    total_pages: int
    start_index: int
    end_index: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.total_pages > 0 and self.page < self.total_pages

    @property
    def summary(self) -> str:
        return results_summary(self.start_index, self.end_index, self.total)


def total_pages(total: int, rows_per_page: int) -> int:
    if total <= 0 or rows_per_page <= 0:
        return 0
    return math.ceil(total / rows_per_page)


def slice_page(items: Sequence[T], page: int, rows_per_page: int) -> PageSlice:
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be >= 1")
    total = len(items)
    pages = total_pages(total, rows_per_page)
    current = max(1, page)
    start = min((current - 1) * rows_per_page, total)
    end = min(start + rows_per_page, total)
    return PageSlice(
        items=list(items[start:end]),
        page=current,
        rows_per_page=rows_per_page,
        total=total,
        total_pages=pages,
        start_index=start,
        end_index=end,
    )


def server_page(items: Sequence[T], page: int, rows_per_page: int, total: int, pages: int | None = None) -> PageSlice:
    """Wrap a page the remote store already sliced."""
    current = max(1, page)
    start = (current - 1) * rows_per_page
    return PageSlice(
        items=list(items),
        page=current,
        rows_per_page=rows_per_page,
        total=total,
        total_pages=pages if pages is not None else total_pages(total, rows_per_page),
        start_index=min(start, total),
        end_index=min(start + len(items), total),
    )


def results_summary(start_index: int, end_index: int, total: int) -> str:
    if total <= 0:
        return "Showing 0 to 0 of 0 results"
    return f"Showing {start_index + 1} to {min(end_index, total)} of {total} results"


def page_window(current: int, pages: int) -> list[int | str]:
    """Page buttons: first, last, current +/- 1, with an ellipsis at current +/- 2."""
    window: list[int | str] = []
    for number in range(1, pages + 1):
        if number in (1, pages) or current - 1 <= number <= current + 1:
            window.append(number)
        elif number in (current - 2, current + 2):
            window.append(ELLIPSIS)
    return window


def filter_products(products: Sequence[Product], term: str) -> list[Product]:
    needle = term.strip().lower()
    if not needle:
        return list(products)
    matched = []
    for product in products:
        row = display_row(product)
        haystack = (product.name, row.name, product.sku, row.sku, product.plu, row.plu)
        if any(value and needle in value.lower() for value in haystack):
            matched.append(product)
    return matched


def _sort_value(product: Product, key: str) -> Any:
    row = display_row(product)
    if key == "quantity":
        return row.quantity
    if key == "price":
        return parse_price(row.price)
    if key == "category":
        return product.category.display_name.lower()
    if key == "supplier":
        return product.supplier.display_name.lower()
    value = getattr(row, key, None)
    return value.lower() if isinstance(value, str) else None


def sort_products(products: Sequence[Product], key: str | None, direction: str = SORT_ASC) -> list[Product]:
    if not key:
        return list(products)
    if key not in SORTABLE_COLUMNS:
        raise ValueError(f"Unsupported sort column: {key}")
    keyed = [(_sort_value(product, key), product) for product in products]
    present = [pair for pair in keyed if pair[0] is not None]
    missing = [product for value, product in keyed if value is None]
    present.sort(key=_first, reverse=direction == SORT_DESC)
    return [product for _, product in present] + missing


def _first(pair: tuple[Any, Product]) -> Any:
    return pair[0]

