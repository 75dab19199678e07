from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..clients.products_client import ProductsClient
from ..config import ClientConfig
from ..exceptions import ApiError
from ..http_client import HttpClient
from ..models_products import BulkDeleteResult, ProductPage, ProductQuery

_KIND_MESSAGES = {
    "network": "Could not reach the product store. Check your connection and try again.",
    "auth": "Your session cannot access this store.",
}


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None


def to_user_facing_error(exc: ApiError) -> UserFacingError:
    message = _KIND_MESSAGES.get(exc.kind) or exc.message.strip() or "Request failed"
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details:
        details = f"{details}: {exc.details}"
    return UserFacingError(message=message, details=details, trace_id=exc.trace_id)


@dataclass(frozen=True)
class InventoryServiceError(RuntimeError):
    message: str
    details: str | None = None
    trace_id: str | None = None

    def __str__(self) -> str:
        return self.message


class InventoryService:
    """Remote product store facade that raises a single error type."""

    def __init__(self, client: ProductsClient) -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: ClientConfig, access_token: str | None = None) -> InventoryService:
        http = HttpClient(config=config)
        return cls(ProductsClient(http=http, access_token=access_token, store_id=config.store_id))

    def list_products(self, query: Mapping[str, Any] | ProductQuery) -> ProductPage:
        product_query = query if isinstance(query, ProductQuery) else ProductQuery.model_validate(query)
        try:
            return self.client.list_products(product_query)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def search_products(self, term: str, store_id: str | None = None) -> list[Any]:
        try:
            return self.client.search_products(term, store_id=store_id)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def update_product_quantity(self, product_id: str, quantity: int) -> None:
        try:
            self.client.update_product_quantity(product_id, quantity)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def update_variant_quantity(self, plu_upc: str, quantity: int) -> None:
        try:
            self.client.update_variant_quantity_by_key(plu_upc, quantity)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def delete_product(self, product_id: str) -> None:
        try:
            self.client.delete_product(product_id)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def delete_variant(self, plu_upc: str) -> None:
        try:
            self.client.delete_variant(plu_upc)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    def bulk_delete_variants(self, plu_upcs: Sequence[str]) -> BulkDeleteResult:
        try:
            return self.client.bulk_delete_variants(plu_upcs)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    @staticmethod
    def _normalize_error(exc: Exception) -> InventoryServiceError:
        if isinstance(exc, InventoryServiceError):
            return exc
        if isinstance(exc, ApiError):
            user_facing = to_user_facing_error(exc)
            return InventoryServiceError(
                message=user_facing.message,
                details=user_facing.details,
                trace_id=user_facing.trace_id,
            )
        if isinstance(exc, ValueError):
            return InventoryServiceError(message=str(exc), details="CLIENT_VALIDATION")
        return InventoryServiceError(message=str(exc) or "Unexpected product store error")
