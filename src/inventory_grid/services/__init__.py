from .inventory_service import InventoryService, InventoryServiceError, UserFacingError, to_user_facing_error

__all__ = ["InventoryService", "InventoryServiceError", "UserFacingError", "to_user_facing_error"]
