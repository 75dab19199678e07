from .base import BaseClient
from .products_client import ProductsClient

__all__ = ["BaseClient", "ProductsClient"]
