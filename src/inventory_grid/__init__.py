from .config import ClientConfig, ConfigError, GridSettings, load_config, load_grid_settings
from .exceptions import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .listing_state import FetchTicket, ListingCoordinator, SortState
from .models_products import BulkDeleteResult, ProductPage, ProductQuery
from .normalizer import DisplayName, DisplayRow, Product, Variant, display_row, expandable_rows, normalize_product
from .quantity_edit import (
    MIN_EDITABLE_QUANTITY,
    EditTarget,
    Editing,
    Idle,
    QuantityEditor,
    Saving,
    validate_staged_quantity,
)
from .services.inventory_service import InventoryService, InventoryServiceError
from .variant_deletion import VariantDeletion

__all__ = [
    "ApiError",
    "BulkDeleteResult",
    "ClientConfig",
    "ConfigError",
    "ConflictError",
    "DisplayName",
    "DisplayRow",
    "EditTarget",
    "Editing",
    "FetchTicket",
    "ForbiddenError",
    "GridSettings",
    "HttpClient",
    "Idle",
    "InventoryService",
    "InventoryServiceError",
    "ListingCoordinator",
    "MIN_EDITABLE_QUANTITY",
    "NotFoundError",
    "Product",
    "ProductPage",
    "ProductQuery",
    "QuantityEditor",
    "RateLimitError",
    "Saving",
    "ServerError",
    "SortState",
    "TransportError",
    "UnauthorizedError",
    "ValidationError",
    "Variant",
    "VariantDeletion",
    "display_row",
    "expandable_rows",
    "load_config",
    "load_grid_settings",
    "normalize_product",
    "validate_staged_quantity",
]
