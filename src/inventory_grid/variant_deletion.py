from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .logger import get_logger, log_action
from .models_products import BulkDeleteResult
from .normalizer import Product, product_identifier

logger = get_logger(__name__)

KIND_BULK = "bulk"
KIND_VARIANT = "variant"
KIND_PRODUCT = "product"


class DeletionStore(Protocol):
    def bulk_delete_variants(self, plu_upcs: Sequence[str]) -> BulkDeleteResult: ...

    def delete_variant(self, plu_upc: str) -> None: ...

    def delete_product(self, product_id: str) -> None: ...


def deletable_keys(product: Product) -> tuple[str, ...]:
    keys: list[str] = []
    for variant in product.variants:
        if variant.plu_upc and variant.plu_upc not in keys:
            keys.append(variant.plu_upc)
    return tuple(keys)


@dataclass
class BulkDeleteModal:
    product_key: str
    product_name: str
    deletable: tuple[str, ...]
    selected: set[str] = field(default_factory=set)
    deleting: bool = False
    error: str | None = None
    warning: str | None = None

    @property
    def all_selected(self) -> bool:
        return bool(self.deletable) and self.selected == set(self.deletable)

    @property
    def can_confirm(self) -> bool:
        return bool(self.selected) and not self.deleting

    def ordered_selection(self) -> list[str]:
        return [key for key in self.deletable if key in self.selected]


@dataclass(frozen=True)
class PendingDelete:
    kind: str
    key: str
    label: str
    product_key: str


@dataclass(frozen=True)
class DeletionOutcome:
    kind: str
    deleted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    error: Exception | None = None
    modal_closed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed

    @property
    def needs_refresh(self) -> bool:
        return bool(self.deleted)


@dataclass
class VariantDeletion:
    modal: BulkDeleteModal | None = None
    pending: PendingDelete | None = None
    disposed: bool = False

    def open(self, product: Product, product_key: str) -> bool:
        if self.disposed or not product.has_variants or not product.variants:
            return False
        self.modal = BulkDeleteModal(
            product_key=product_key,
            product_name=product.name,
            deletable=deletable_keys(product),
        )
        return True

    def close(self) -> None:
        if self.modal is not None and self.modal.deleting:
            return
        self.modal = None

    def is_selectable(self, plu_upc: str | None) -> bool:
        return self.modal is not None and bool(plu_upc) and plu_upc in self.modal.deletable

    def toggle(self, plu_upc: str | None) -> bool:
        if not self.is_selectable(plu_upc) or self.modal.deleting:
            return False
        if plu_upc in self.modal.selected:
            self.modal.selected.discard(plu_upc)
        else:
            self.modal.selected.add(plu_upc)
        return True

    def select_all(self, checked: bool = True) -> None:
        if self.modal is None or self.modal.deleting:
            return
        self.modal.selected = set(self.modal.deletable) if checked else set()

    def begin_confirm(self) -> list[str] | None:
        if self.disposed or self.modal is None or not self.modal.can_confirm:
            return None
        self.modal.deleting = True
        self.modal.error = None
        self.modal.warning = None
        return self.modal.ordered_selection()

    def complete_confirm(
        self,
        requested: Sequence[str],
        result: BulkDeleteResult | None = None,
        error: Exception | None = None,
    ) -> DeletionOutcome | None:
        if self.disposed or self.modal is None:
            return None
        modal = self.modal
        modal.deleting = False
        if error is not None or result is None:
            modal.error = str(error) if error is not None else "Bulk delete returned no result"
            self._log(KIND_BULK, "error", error, requested=len(requested))
            return DeletionOutcome(kind=KIND_BULK, error=error)

        deleted = tuple(key for key in requested if key in result.deleted)
        failed = tuple(key for key in requested if key not in deleted)
        self._log(KIND_BULK, "success" if not failed else "partial", None, deleted=len(deleted), failed=len(failed))
        if not failed:
            self.modal = None
            return DeletionOutcome(kind=KIND_BULK, deleted=deleted, modal_closed=True)

        modal.deletable = tuple(key for key in modal.deletable if key not in deleted)
        modal.selected = set(failed)
        modal.warning = f"{len(failed)} of {len(requested)} variants could not be deleted: {', '.join(failed)}"
        return DeletionOutcome(kind=KIND_BULK, deleted=deleted, failed=failed)

    def confirm(self, store: DeletionStore) -> DeletionOutcome | None:
        keys = self.begin_confirm()
        if keys is None:
            return None
        try:
            result = store.bulk_delete_variants(keys)
        except Exception as exc:
            return self.complete_confirm(keys, error=exc)
        return self.complete_confirm(keys, result=result)

    def request_variant_delete(self, product: Product, product_key: str, variant_index: int) -> PendingDelete | None:
        if self.disposed or not 0 <= variant_index < len(product.variants):
            return None
        variant = product.variants[variant_index]
        if not variant.plu_upc:
            return None
        self.pending = PendingDelete(
            kind=KIND_VARIANT,
            key=variant.plu_upc,
            label=variant.name or f"Variant {variant_index + 1}",
            product_key=product_key,
        )
        return self.pending

    def request_product_delete(self, product: Product, product_key: str) -> PendingDelete | None:
        identifier = product_identifier(product)
        if self.disposed or identifier is None:
            return None
        self.pending = PendingDelete(kind=KIND_PRODUCT, key=identifier, label=product.name, product_key=product_key)
        return self.pending

    def cancel_pending(self) -> None:
        self.pending = None

    def confirm_pending(self, store: DeletionStore) -> DeletionOutcome | None:
        pending = self.pending
        if self.disposed or pending is None:
            return None
        self.pending = None
        try:
            if pending.kind == KIND_VARIANT:
                store.delete_variant(pending.key)
            else:
                store.delete_product(pending.key)
        except Exception as exc:
            self._log(pending.kind, "error", exc)
            return DeletionOutcome(kind=pending.kind, failed=(pending.key,), error=exc)
        self._log(pending.kind, "success", None)
        return DeletionOutcome(kind=pending.kind, deleted=(pending.key,))

    def dispose(self) -> None:
        self.disposed = True
        self.modal = None
        self.pending = None

    @staticmethod
    def _log(kind: str, outcome: str, error: Exception | None, **context: object) -> None:
        log_action(
            logger,
            module="variant_deletion",
            action=f"{kind}.delete",
            trace_id=getattr(error, "trace_id", None),
            outcome=outcome,
            **context,
        )
