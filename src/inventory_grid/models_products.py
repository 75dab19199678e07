from __future__ import annotations

import math
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field


class ProductQuery(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    page: int | None = None
    limit: int | None = None
    search: str | None = None
    sort_key: str | None = Field(default=None, alias="sortKey")
    sort_dir: str | None = Field(default=None, alias="sortDir")
    store_id: str | None = Field(default=None, alias="storeId")
    category_id: str | None = Field(default=None, alias="categoryId")


class ProductPage(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # raw records stay untyped, the normalizer owns their shape
    items: list[Any] = Field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = Field(default=0, alias="totalPages")


class BulkDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plu_upcs: list[str] = Field(alias="pluUpcs")


class BulkDeleteResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    requested: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    itemized: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.deleted)


def extract_items(payload: Any) -> list[Any]:
    """Find the record list inside any of the envelopes the product API returns."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, dict):
        for key in ("products", "items"):
            if isinstance(data.get(key), list):
                return data[key]
        for value in data.values():
            if isinstance(value, list):
                return value
        return []
    if isinstance(data, list):
        return data
    for key in ("products", "items", "rows"):
        if isinstance(payload.get(key), list):
            return payload[key]
    return []


def parse_product_page(payload: Any, *, page: int = 1, limit: int = 10) -> ProductPage:
    items = extract_items(payload)
    meta: dict[str, Any] = {}
    if isinstance(payload, dict):
        meta.update(payload)
        for key in ("data", "meta", "pagination"):
            nested = payload.get(key)
            if isinstance(nested, dict):
                meta.update(nested)

    safe_page = _first_int(meta, "page", "currentPage") or max(1, page)
    safe_limit = _first_int(meta, "limit", "pageSize", "perPage") or max(1, limit)
    total = _first_int(meta, "total", "totalProducts", "totalItems")
    if total is None:
        total = (safe_page - 1) * safe_limit + len(items)
    total_pages = _first_int(meta, "totalPages")
    if total_pages is None:
        total_pages = math.ceil(total / safe_limit) if total else 0
    return ProductPage(items=items, page=safe_page, limit=safe_limit, total=total, total_pages=total_pages)


def parse_bulk_delete_result(payload: Any, requested: Sequence[str]) -> BulkDeleteResult:
    keys = list(requested)
    body = payload.get("data", payload) if isinstance(payload, dict) else None
    if not isinstance(body, dict):
        return BulkDeleteResult(requested=keys, deleted=keys)

    deleted = body.get("deleted")
    failed = body.get("failed")
    if isinstance(deleted, list) or isinstance(failed, list):
        failed_keys = [str(key) for key in failed or []]
        if isinstance(deleted, list):
            deleted_keys = [str(key) for key in deleted]
        else:
            deleted_keys = [key for key in keys if key not in failed_keys]
        return BulkDeleteResult(requested=keys, deleted=deleted_keys, failed=failed_keys, itemized=True)

    results = body.get("results")
    if isinstance(results, list):
        deleted_keys: list[str] = []
        failed_keys: list[str] = []
        for entry in results:
            if not isinstance(entry, dict) or not entry.get("pluUpc"):
                continue
            status = str(entry.get("status") or "").lower()
            target = deleted_keys if status in {"deleted", "ok", "success"} else failed_keys
            target.append(str(entry["pluUpc"]))
        return BulkDeleteResult(requested=keys, deleted=deleted_keys, failed=failed_keys, itemized=True)

    return BulkDeleteResult(requested=keys, deleted=keys)


def _first_int(meta: dict[str, Any], *keys: str) -> int | None:
    for key in keys:
        value = meta.get(key)
        try:
            if value is None or value == "" or isinstance(value, bool):
                continue
            return int(value)
        except (TypeError, ValueError):
            continue
    return None
