from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from inventory_grid.models_products import BulkDeleteResult
from inventory_grid.normalizer import normalize_product
from inventory_grid.services.inventory_service import InventoryServiceError
from inventory_grid.variant_deletion import KIND_BULK, KIND_PRODUCT, KIND_VARIANT, VariantDeletion, deletable_keys

THREE_VARIANTS = normalize_product(
    {
        "id": "p1",
        "name": "Blend",
        "hasVariants": True,
        "variants": [
            {"name": "Dark", "pluUpc": "A1"},
            {"name": "Light", "pluUpc": None},
            {"name": "Medium", "pluUpc": "A3"},
        ],
    }
)


@dataclass
class FakeDeletionStore:
    result: BulkDeleteResult | None = None
    error: Exception | None = None
    bulk_calls: list[list[str]] = field(default_factory=list)
    deleted_variants: list[str] = field(default_factory=list)
    deleted_products: list[str] = field(default_factory=list)

    def bulk_delete_variants(self, plu_upcs: Sequence[str]) -> BulkDeleteResult:
        self.bulk_calls.append(list(plu_upcs))
        if self.error:
            raise self.error
        return self.result or BulkDeleteResult(requested=list(plu_upcs), deleted=list(plu_upcs))

    def delete_variant(self, plu_upc: str) -> None:
        if self.error:
            raise self.error
        self.deleted_variants.append(plu_upc)

    def delete_product(self, product_id: str) -> None:
        if self.error:
            raise self.error
        self.deleted_products.append(product_id)


def test_select_all_skips_variants_without_plu() -> None:
    deletion = VariantDeletion()
    assert deletion.open(THREE_VARIANTS, "p1")
    deletion.select_all()
    assert deletion.modal.selected == {"A1", "A3"}
    assert deletion.modal.all_selected


def test_confirm_issues_one_batched_call_with_selected_keys() -> None:
    store = FakeDeletionStore()
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    deletion.select_all()

    outcome = deletion.confirm(store)

    assert store.bulk_calls == [["A1", "A3"]]
    assert outcome.kind == KIND_BULK
    assert outcome.deleted == ("A1", "A3")
    assert outcome.modal_closed
    assert outcome.needs_refresh
    assert deletion.modal is None


def test_variant_without_plu_is_never_selectable() -> None:
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    assert deletion.toggle(None) is False
    assert deletion.toggle("") is False
    assert deletion.toggle("ZZ") is False
    deletion.select_all(True)
    assert None not in deletion.modal.selected
    assert deletable_keys(THREE_VARIANTS) == ("A1", "A3")


def test_confirm_gating() -> None:
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    assert not deletion.modal.can_confirm
    assert deletion.confirm(FakeDeletionStore()) is None

    deletion.toggle("A1")
    assert deletion.modal.can_confirm
    keys = deletion.begin_confirm()
    assert keys == ["A1"]
    assert not deletion.modal.can_confirm
    assert deletion.begin_confirm() is None
    assert deletion.toggle("A3") is False

    deletion.select_all(False)
    assert deletion.modal.selected == {"A1"}


def test_partial_failure_keeps_failed_keys_selected() -> None:
    store = FakeDeletionStore(result=BulkDeleteResult(requested=["A1", "A3"], deleted=["A1"], failed=["A3"], itemized=True))
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    deletion.select_all()

    outcome = deletion.confirm(store)

    assert outcome.deleted == ("A1",)
    assert outcome.failed == ("A3",)
    assert not outcome.ok
    assert outcome.needs_refresh
    assert deletion.modal is not None
    assert deletion.modal.selected == {"A3"}
    assert deletion.modal.deletable == ("A3",)
    assert "A3" in deletion.modal.warning
    assert not deletion.modal.deleting


def test_transport_failure_leaves_selection_for_retry() -> None:
    store = FakeDeletionStore(error=InventoryServiceError(message="Server unavailable", trace_id="t-9"))
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    deletion.select_all()

    outcome = deletion.confirm(store)

    assert outcome.error is not None
    assert not outcome.needs_refresh
    assert deletion.modal.selected == {"A1", "A3"}
    assert deletion.modal.error == "Server unavailable"
    assert deletion.modal.can_confirm


def test_open_requires_variants() -> None:
    deletion = VariantDeletion()
    assert deletion.open(normalize_product({"id": "p9"}), "p9") is False
    assert deletion.modal is None


def test_single_variant_delete_needs_confirmation() -> None:
    store = FakeDeletionStore()
    deletion = VariantDeletion()

    assert deletion.request_variant_delete(THREE_VARIANTS, "p1", 1) is None
    pending = deletion.request_variant_delete(THREE_VARIANTS, "p1", 2)
    assert pending.kind == KIND_VARIANT
    assert pending.key == "A3"
    assert store.deleted_variants == []

    outcome = deletion.confirm_pending(store)

    assert store.deleted_variants == ["A3"]
    assert outcome.deleted == ("A3",)
    assert deletion.pending is None


def test_cancel_pending_deletes_nothing() -> None:
    store = FakeDeletionStore()
    deletion = VariantDeletion()
    deletion.request_variant_delete(THREE_VARIANTS, "p1", 0)
    deletion.cancel_pending()
    assert deletion.confirm_pending(store) is None
    assert store.deleted_variants == []


def test_product_delete_uses_best_identifier() -> None:
    store = FakeDeletionStore()
    deletion = VariantDeletion()
    product = normalize_product({"sku": "SKU-9", "pluUpc": "111"})

    pending = deletion.request_product_delete(product, "product-0")
    outcome = deletion.confirm_pending(store)

    assert pending.kind == KIND_PRODUCT
    assert store.deleted_products == ["SKU-9"]
    assert outcome.ok
    assert deletion.request_product_delete(normalize_product({"name": "orphan"}), "product-1") is None


def test_failed_single_delete_reports_error() -> None:
    store = FakeDeletionStore(error=InventoryServiceError(message="Not found"))
    deletion = VariantDeletion()
    deletion.request_product_delete(THREE_VARIANTS, "p1")

    outcome = deletion.confirm_pending(store)

    assert outcome.error is not None
    assert outcome.failed == ("p1",)
    assert not outcome.needs_refresh


def test_dispose_drops_modal_and_late_results() -> None:
    deletion = VariantDeletion()
    deletion.open(THREE_VARIANTS, "p1")
    deletion.select_all()
    keys = deletion.begin_confirm()
    deletion.dispose()
    assert deletion.complete_confirm(keys, result=BulkDeleteResult(deleted=keys)) is None
    assert deletion.open(THREE_VARIANTS, "p1") is False
