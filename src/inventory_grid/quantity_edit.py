from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

from .logger import get_logger, log_action
from .normalizer import Product, product_identifier

logger = get_logger(__name__)

# "0" is a valid quantity both while typing and at save time.
MIN_EDITABLE_QUANTITY = 0

ROUTE_VARIANT = "variant"
ROUTE_PRODUCT = "product"

_WHOLE_NUMBER = re.compile(r"[+-]?\d+")


def validate_staged_quantity(staged: str) -> str | None:
    """Return an inline error for the staged text, or ``None`` when it is valid."""
    text = (staged or "").strip()
    if not text:
        return "Quantity is required"
    if not _WHOLE_NUMBER.fullmatch(text):
        return "Quantity must be a whole number"
    if int(text) < MIN_EDITABLE_QUANTITY:
        return "Quantity cannot be negative"
    return None


def parse_staged_quantity(staged: str) -> int:
    error = validate_staged_quantity(staged)
    if error:
        raise ValueError(error)
    return int(staged.strip())


@dataclass(frozen=True)
class EditTarget:
    product_key: str
    variant_index: int | None = None


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Editing:
    target: EditTarget
    staged: str
    error: str | None = None


@dataclass(frozen=True)
class Saving:
    target: EditTarget
    staged: str
    quantity: int


EditState = Idle | Editing | Saving


@dataclass(frozen=True)
class BeginEdit:
    target: EditTarget
    staged: str


@dataclass(frozen=True)
class Change:
    staged: str


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Settle:
    pass


EditEvent = BeginEdit | Change | Submit | Cancel | Settle


def reduce_edit_state(state: EditState, event: EditEvent) -> EditState:
    if isinstance(state, Idle):
        if isinstance(event, BeginEdit):
            return Editing(target=event.target, staged=event.staged)
        return state

    if isinstance(state, Editing):
        if isinstance(event, Change):
            return Editing(target=state.target, staged=event.staged, error=validate_staged_quantity(event.staged))
        if isinstance(event, Cancel):
            return Idle()
        if isinstance(event, Submit):
            error = validate_staged_quantity(state.staged)
            if error:
                return Editing(target=state.target, staged=state.staged, error=error)
            return Saving(target=state.target, staged=state.staged, quantity=parse_staged_quantity(state.staged))
        return state

    # Saving: an outstanding update cannot be cancelled, only settled.
    if isinstance(event, Settle):
        return Idle()
    return state


@dataclass(frozen=True)
class SaveRequest:
    target: EditTarget
    quantity: int
    staged: str
    route: str
    key: str


@dataclass(frozen=True)
class SaveOutcome:
    request: SaveRequest
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class QuantityStore(Protocol):
    def update_product_quantity(self, product_id: str, quantity: int) -> None: ...

    def update_variant_quantity(self, plu_upc: str, quantity: int) -> None: ...


def resolve_route(product: Product, variant_index: int | None) -> tuple[str, str] | None:
    if variant_index is not None and product.has_variants:
        if not 0 <= variant_index < len(product.variants):
            return None
        plu_upc = product.variants[variant_index].plu_upc
        if plu_upc:
            return ROUTE_VARIANT, plu_upc
    identifier = product_identifier(product)
    if identifier:
        return ROUTE_PRODUCT, identifier
    return None


def send_update(store: QuantityStore, request: SaveRequest) -> None:
    if request.route == ROUTE_VARIANT:
        store.update_variant_quantity(request.key, request.quantity)
    else:
        store.update_product_quantity(request.key, request.quantity)


def _current_quantity(product: Product, variant_index: int | None) -> int:
    if variant_index is not None and product.has_variants and variant_index < len(product.variants):
        return product.variants[variant_index].quantity
    return product.quantity


@dataclass
class QuantityEditor:
    """Grid-wide inline quantity editor with a single edit lock."""

    state: EditState = field(default_factory=Idle)
    in_flight: set[EditTarget] = field(default_factory=set)
    failed_drafts: dict[EditTarget, str] = field(default_factory=dict)
    disposed: bool = False
    _route: tuple[str, str] | None = field(default=None, init=False, repr=False)

    @property
    def editing_locked(self) -> bool:
        return not isinstance(self.state, Idle)

    @property
    def target(self) -> EditTarget | None:
        if isinstance(self.state, (Editing, Saving)):
            return self.state.target
        return None

    def is_editing(self, target: EditTarget) -> bool:
        return isinstance(self.state, Editing) and self.state.target == target

    def is_saving(self, target: EditTarget) -> bool:
        return target in self.in_flight

    def begin_edit(self, product: Product, product_key: str, variant_index: int | None = None) -> bool:
        if self.disposed or self.editing_locked:
            return False
        route = resolve_route(product, variant_index)
        if route is None:
            return False
        target = EditTarget(product_key=product_key, variant_index=variant_index)
        staged = self.failed_drafts.pop(target, None)
        if staged is None:
            staged = str(_current_quantity(product, variant_index))
        self._route = route
        self._dispatch(BeginEdit(target=target, staged=staged))
        return True

    def change(self, staged: str) -> None:
        self._dispatch(Change(staged=staged))

    def cancel(self) -> None:
        self._dispatch(Cancel())
        if isinstance(self.state, Idle):
            self._route = None

    def handle_key(self, key: str) -> SaveRequest | None:
        if key == "Enter":
            return self.submit()
        if key == "Escape":
            self.cancel()
        return None

    def blur(self) -> SaveRequest | None:
        return self.submit()

    def submit(self) -> SaveRequest | None:
        if not isinstance(self.state, Editing) or self._route is None:
            return None
        self._dispatch(Submit())
        if not isinstance(self.state, Saving):
            return None
        route, key = self._route
        self.in_flight.add(self.state.target)
        return SaveRequest(
            target=self.state.target,
            quantity=self.state.quantity,
            staged=self.state.staged,
            route=route,
            key=key,
        )

    def complete_save(self, request: SaveRequest, error: Exception | None = None) -> SaveOutcome | None:
        if self.disposed:
            return None
        self.in_flight.discard(request.target)
        if isinstance(self.state, Saving) and self.state.target == request.target:
            self._dispatch(Settle())
            self._route = None
        if error is None:
            self.failed_drafts.pop(request.target, None)
        else:
            self.failed_drafts[request.target] = request.staged
        log_action(
            logger,
            module="quantity_edit",
            action=f"{request.route}.update_quantity",
            trace_id=getattr(error, "trace_id", None),
            outcome="success" if error is None else "error",
            key=request.key,
            quantity=request.quantity,
        )
        return SaveOutcome(request=request, error=error)

    def save(self, store: QuantityStore) -> SaveOutcome | None:
        request = self.submit()
        if request is None:
            return None
        try:
            send_update(store, request)
        except Exception as exc:
            return self.complete_save(request, exc)
        return self.complete_save(request)

    def dispose(self) -> None:
        self.disposed = True
        self.in_flight.clear()
        self.state = Idle()
        self._route = None

    def _dispatch(self, event: EditEvent) -> None:
        self.state = reduce_edit_state(self.state, event)
