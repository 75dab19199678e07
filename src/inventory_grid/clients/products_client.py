from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import quote

from ..models_products import (
    BulkDeleteRequest,
    BulkDeleteResult,
    ProductPage,
    ProductQuery,
    extract_items,
    parse_bulk_delete_result,
    parse_product_page,
)
from .base import BaseClient


class ProductsClient(BaseClient):
    def list_products(self, query: ProductQuery) -> ProductPage:
        params = self._scoped(build_product_params(query))
        payload = self._request("GET", "/product/list", params=params, operation="product.list")
        return parse_product_page(payload, page=query.page or 1, limit=query.limit or 10)

    def search_products(self, term: str, store_id: str | None = None) -> list[Any]:
        params = self._scoped({"q": term}, store_id)
        payload = self._request("GET", "/product/search", params=params, operation="product.search")
        return extract_items(payload)

    def update_product_quantity(self, product_id: str, quantity: int) -> None:
        self._request(
            "PUT",
            f"/product/{_segment(product_id)}",
            json_body={"itemQuantity": quantity},
            operation="product.update_quantity",
        )

    def update_variant_quantity_by_key(self, plu_upc: str, quantity: int) -> None:
        self._request(
            "PUT",
            f"/product/variant/{_segment(plu_upc)}/quantity",
            json_body={"quantity": quantity},
            operation="variant.update_quantity",
        )

    def delete_product(self, product_id: str) -> None:
        self._request("DELETE", f"/product/{_segment(product_id)}", operation="product.delete")

    def delete_variant(self, plu_upc: str) -> None:
        self._request("DELETE", f"/product/variant/{_segment(plu_upc)}", operation="variant.delete")

    def bulk_delete_variants(self, plu_upcs: Sequence[str]) -> BulkDeleteResult:
        keys = [key for key in plu_upcs if key]
        if not keys:
            raise ValueError("plu_upcs must contain at least one key")
        payload = BulkDeleteRequest(plu_upcs=keys)
        data = self._request(
            "POST",
            "/product/variants/bulk-delete",
            json_body=payload.model_dump(by_alias=True),
            operation="variant.bulk_delete",
        )
        return parse_bulk_delete_result(data, keys)


def build_product_params(query: ProductQuery, default_store_id: str | None = None) -> dict[str, Any]:
    params = query.model_dump(by_alias=True, exclude_none=True, mode="json")
    if default_store_id and not params.get("storeId"):
        params["storeId"] = default_store_id
    return {key: value for key, value in params.items() if value != ""}


def _segment(value: str) -> str:
    return quote(str(value), safe="")
