from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .normalizer import UNCATEGORIZED, Product


@dataclass
class RowExpander:
    expanded_products: set[str] = field(default_factory=set)
    expanded_categories: set[str] = field(default_factory=set)

    def toggle_product(self, key: str) -> bool:
        return _flip(self.expanded_products, key)

    def toggle_category(self, key: str) -> bool:
        return _flip(self.expanded_categories, key)

    def is_product_expanded(self, key: str) -> bool:
        return key in self.expanded_products

    def is_category_expanded(self, key: str) -> bool:
        return key in self.expanded_categories

    def prune_products(self, keys: Iterable[str]) -> None:
        """Keep only expanded products still present after a refetch."""
        self.expanded_products &= set(keys)

    def reset_categories(self) -> None:
        self.expanded_categories.clear()

    def clear(self) -> None:
        self.expanded_products.clear()
        self.expanded_categories.clear()


def _flip(keys: set[str], key: str) -> bool:
    if key in keys:
        keys.discard(key)
        return False
    keys.add(key)
    return True


def group_by_category(products: Sequence[Product]) -> dict[str, list[Product]]:
    groups: dict[str, list[Product]] = {}
    for product in products:
        name = product.category.display_name or UNCATEGORIZED
        groups.setdefault(name, []).append(product)
    return groups
