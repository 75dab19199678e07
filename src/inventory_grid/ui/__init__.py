from .inventory_grid_view import InventoryGridView
from .notification_center import NotificationCenter
from .view_state import ViewState, ViewStateStatus, resolve_state

__all__ = ["InventoryGridView", "NotificationCenter", "ViewState", "ViewStateStatus", "resolve_state"]
