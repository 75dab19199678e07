from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ..config import GridSettings
from ..debounce import monotonic_ms
from ..expander import RowExpander, group_by_category
from ..listing_state import FETCH_SEARCH, FetchTicket, ListingCoordinator
from ..logger import get_logger, log_action
from ..low_stock import LowStockView
from ..normalizer import DisplayRow, Product, display_row, expandable_rows, product_identifier, product_key
from ..pagination import page_window
from ..quantity_edit import EditTarget, Editing, QuantityEditor, SaveOutcome, SaveRequest, send_update
from ..services.inventory_service import InventoryService, InventoryServiceError
from ..stats import inventory_stats, stock_level
from ..variant_deletion import DeletionOutcome, VariantDeletion
from .notification_center import NotificationCenter
from .view_state import resolve_state

logger = get_logger(__name__)

MISSING = "N/A"


@dataclass
class InventoryGridView:
    service: InventoryService
    settings: GridSettings = field(default_factory=GridSettings)
    store_id: str | None = None
    category_id: str | None = None
    now: Callable[[], float] = monotonic_ms
    grouped: bool = False
    is_loading: bool = False
    error_message: str | None = None
    trace_id: str | None = None
    disposed: bool = False
    expander: RowExpander = field(default_factory=RowExpander)
    editor: QuantityEditor = field(default_factory=QuantityEditor)
    deletion: VariantDeletion = field(default_factory=VariantDeletion)
    notifications: NotificationCenter = field(default_factory=NotificationCenter)

    def __post_init__(self) -> None:
        self.listing = ListingCoordinator(settings=self.settings, now=self.now)
        self.low_stock = LowStockView.from_settings(self.settings)
        self._keys: dict[int, str] = {}

    # listing

    def load(self) -> bool:
        if self.disposed:
            return False
        return self._run(self.listing.refresh())

    def retry(self) -> bool:
        return self.load()

    def type_search(self, term: str) -> None:
        self.listing.set_search_text(term)

    def tick(self) -> bool:
        ticket = self.listing.tick()
        if ticket is None:
            return False
        return self._run(ticket)

    def submit_search(self) -> bool:
        return self._run(self.listing.submit_search())

    def sort_by(self, key: str) -> bool:
        return self._run(self.listing.toggle_sort(key))

    def go_to_page(self, page: int) -> bool:
        return self._run(self.listing.change_page(page))

    def set_rows_per_page(self, rows_per_page: int) -> bool:
        return self._run(self.listing.change_rows_per_page(rows_per_page))

    def _run(self, ticket: FetchTicket | None) -> bool:
        if ticket is None or self.disposed:
            return False
        self.is_loading = True
        try:
            if ticket.kind == FETCH_SEARCH:
                items = self.service.search_products(ticket.search, store_id=self.store_id)
                applied = self.listing.apply_search(ticket, items)
            else:
                page = self.service.list_products(ticket.query(store_id=self.store_id, category_id=self.category_id))
                applied = self.listing.apply_page(ticket, page)
        except InventoryServiceError as exc:
            if self.listing.apply_error(ticket, exc):
                self.error_message = exc.message
                self.trace_id = exc.trace_id
                log_action(logger, module="inventory_grid", action=f"fetch.{ticket.kind}", trace_id=exc.trace_id, outcome="error")
            return False
        finally:
            self.is_loading = self.listing.pending
        if applied:
            self.error_message = None
            self.trace_id = None
            self._data_changed()
        return applied

    def _data_changed(self) -> None:
        source = self.listing.source_products()
        self._keys = {id(product): product_key(product, index) for index, product in enumerate(source)}
        self.expander.prune_products(self._keys.values())
        self.low_stock.recompute(source)

    def _key_of(self, product: Product) -> str:
        return self._keys[id(product)]

    def find_product(self, key: str) -> Product | None:
        for product in self.listing.source_products():
            if self._keys.get(id(product)) == key:
                return product
        return None

    # expansion

    def toggle_product(self, key: str) -> bool:
        return self.expander.toggle_product(key)

    def toggle_category(self, name: str) -> bool:
        return self.expander.toggle_category(name)

    def set_grouped(self, grouped: bool) -> None:
        if grouped != self.grouped:
            self.grouped = grouped
            self.expander.reset_categories()

    # quantity editing

    def begin_edit(self, key: str, variant_index: int | None = None) -> bool:
        product = self.find_product(key)
        if product is None:
            return False
        if variant_index is None and product.has_variants and product.variants:
            variant_index = 0
        return self.editor.begin_edit(product, key, variant_index)

    def change_quantity(self, staged: str) -> None:
        self.editor.change(staged)

    def key_press(self, key: str) -> SaveOutcome | None:
        return self._save(self.editor.handle_key(key))

    def blur(self) -> SaveOutcome | None:
        return self._save(self.editor.blur())

    def save_edit(self) -> SaveOutcome | None:
        return self._save(self.editor.submit())

    def cancel_edit(self) -> None:
        self.editor.cancel()

    def _save(self, request: SaveRequest | None) -> SaveOutcome | None:
        if request is None:
            return None
        try:
            send_update(self.service, request)
        except InventoryServiceError as exc:
            outcome = self.editor.complete_save(request, exc)
        else:
            outcome = self.editor.complete_save(request)
        if outcome is None:
            return None
        if outcome.ok:
            self.notifications.push(level="success", title="Quantity updated", message=f"Quantity set to {request.quantity}")
            self.load()
        else:
            self._notify_error("Quantity update failed", outcome.error)
        return outcome

    # deletion

    def open_bulk_delete(self, key: str) -> bool:
        product = self.find_product(key)
        return product is not None and self.deletion.open(product, key)

    def close_bulk_delete(self) -> None:
        self.deletion.close()

    def toggle_variant_selection(self, plu_upc: str | None) -> bool:
        return self.deletion.toggle(plu_upc)

    def select_all_variants(self, checked: bool = True) -> None:
        self.deletion.select_all(checked)

    def confirm_bulk_delete(self) -> DeletionOutcome | None:
        return self._after_delete(self.deletion.confirm(self.service))

    def request_variant_delete(self, key: str, variant_index: int) -> bool:
        product = self.find_product(key)
        return product is not None and self.deletion.request_variant_delete(product, key, variant_index) is not None

    def request_product_delete(self, key: str) -> bool:
        product = self.find_product(key)
        return product is not None and self.deletion.request_product_delete(product, key) is not None

    def cancel_delete(self) -> None:
        self.deletion.cancel_pending()

    def confirm_delete(self) -> DeletionOutcome | None:
        return self._after_delete(self.deletion.confirm_pending(self.service))

    def _after_delete(self, outcome: DeletionOutcome | None) -> DeletionOutcome | None:
        if outcome is None:
            return None
        if outcome.error is not None:
            self._notify_error("Delete failed", outcome.error)
        elif outcome.failed:
            self.notifications.push(
                level="warning",
                title="Some variants were not deleted",
                message=f"{len(outcome.deleted)} deleted, {len(outcome.failed)} failed",
                details={"failed": list(outcome.failed)},
            )
        else:
            noun = "item" if len(outcome.deleted) == 1 else "items"
            self.notifications.push(level="success", title="Deleted", message=f"Deleted {len(outcome.deleted)} {noun}")
        if outcome.needs_refresh:
            self.load()
        return outcome

    def dismiss_notification(self, index: int) -> None:
        self.notifications.dismiss(index)

    def _notify_error(self, title: str, error: Exception | None) -> None:
        self.notifications.push(
            level="error",
            title=title,
            message=str(error) if error is not None else title,
            details={"trace_id": getattr(error, "trace_id", None)},
        )

    # teardown

    def dispose(self) -> None:
        self.disposed = True
        self.listing.dispose()
        self.editor.dispose()
        self.deletion.dispose()
        self.expander.clear()
        self.notifications.clear()

    # rendering

    def render(self) -> dict[str, Any]:
        page = self.listing.visible()
        rows = [self._render_product(product) for product in page.items]
        state = resolve_state(
            is_loading=self.is_loading,
            error=self.error_message,
            has_data=bool(page.items),
            searching=bool(self.listing.search_term),
            trace_id=self.trace_id,
        )
        payload: dict[str, Any] = {
            "view_state": state.render(),
            "search": {
                "raw": self.listing.debouncer.raw_term,
                "debounced": self.listing.search_term,
                "overlay": self.listing.search_overlay_active,
            },
            "sort": {"key": self.listing.sort.key, "direction": self.listing.sort.direction},
            "pagination": {
                "page": page.page,
                "rows_per_page": page.rows_per_page,
                "options": list(self.settings.rows_per_page_options),
                "total": page.total,
                "total_pages": page.total_pages,
                "window": page_window(page.page, page.total_pages),
                "summary": page.summary,
                "has_previous": page.has_previous,
                "has_next": page.has_next,
            },
            "editing_locked": self.editor.editing_locked,
            "stats": self._render_stats(),
            "low_stock": self._render_low_stock(),
            "bulk_delete": self._render_modal(),
            "pending_delete": self._render_pending(),
            "notifications": self.notifications.render(),
        }
        if self.grouped:
            payload["groups"] = [
                {
                    "category": name,
                    "count": len(members),
                    "expanded": self.expander.is_category_expanded(name),
                    "rows": [row for row in rows if row["category"] == name]
                    if self.expander.is_category_expanded(name)
                    else [],
                }
                for name, members in group_by_category(page.items).items()
            ]
        else:
            payload["rows"] = rows
        return payload

    def _render_product(self, product: Product) -> dict[str, Any]:
        key = self._key_of(product)
        row = display_row(product)
        expanded = self.expander.is_product_expanded(key)
        payload = self._render_row(key, row)
        payload.update(
            {
                "key": key,
                "category": product.category.display_name,
                "supplier": product.supplier.display_name,
                "has_variants": product.has_variants and bool(product.variants),
                "variant_count": len(product.variants) if product.has_variants else 0,
                "expanded": expanded,
                "actionable": product_identifier(product) is not None,
                "variants": [self._render_row(key, sub) for sub in expandable_rows(product)] if expanded else [],
            }
        )
        return payload

    def _render_row(self, key: str, row: DisplayRow) -> dict[str, Any]:
        target = EditTarget(product_key=key, variant_index=row.variant_index)
        editing = self.editor.is_editing(target)
        state = self.editor.state
        return {
            "name": row.name,
            "label": row.label,
            "sku": row.sku or MISSING,
            "plu": row.plu or MISSING,
            "price": row.price,
            "quantity": row.quantity,
            "variant_index": row.variant_index,
            "stock_level": stock_level(
                row.quantity,
                self.settings.low_stock_threshold,
                self.settings.medium_stock_threshold,
            ),
            "selectable": bool(row.plu),
            "selected": self.deletion.modal is not None and row.plu in self.deletion.modal.selected,
            "quantity_cell": {
                "editing": editing,
                "staged": state.staged if editing and isinstance(state, Editing) else None,
                "error": state.error if editing and isinstance(state, Editing) else None,
                "saving": self.editor.is_saving(target),
                "editable": not self.editor.editing_locked,
            },
        }

    def _render_stats(self) -> dict[str, Any]:
        stats = inventory_stats(self.listing.source_products())
        return {
            "total_products": stats.total_products,
            "total_items": stats.total_items,
            "total_value": stats.total_value,
        }

    def _render_low_stock(self) -> dict[str, Any]:
        page = self.low_stock.visible()
        return {
            "threshold": self.low_stock.threshold,
            "count": page.total,
            "rows": [
                {"name": row.name, "quantity": row.quantity, "sku": row.sku or MISSING, "plu": row.plu or MISSING}
                for row in (display_row(product) for product in page.items)
            ],
            "page": page.page,
            "total_pages": page.total_pages,
            "summary": page.summary,
        }

    def _render_modal(self) -> dict[str, Any] | None:
        modal = self.deletion.modal
        if modal is None:
            return None
        product = self.find_product(modal.product_key)
        variants = []
        if product is not None:
            for index, variant in enumerate(product.variants):
                variants.append(
                    {
                        "name": variant.name or f"Variant {index + 1}",
                        "plu": variant.plu_upc or MISSING,
                        "selectable": bool(variant.plu_upc) and variant.plu_upc in modal.deletable,
                        "selected": bool(variant.plu_upc) and variant.plu_upc in modal.selected,
                    }
                )
        return {
            "product_key": modal.product_key,
            "product_name": modal.product_name,
            "variants": variants,
            "selected_count": len(modal.selected),
            "all_selected": modal.all_selected,
            "can_confirm": modal.can_confirm,
            "deleting": modal.deleting,
            "error": modal.error,
            "warning": modal.warning,
        }

    def _render_pending(self) -> dict[str, Any] | None:
        pending = self.deletion.pending
        if pending is None:
            return None
        return {"kind": pending.kind, "key": pending.key, "label": pending.label, "product_key": pending.product_key}
