from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .config import GridSettings
from .debounce import SearchDebouncer, monotonic_ms
from .logger import get_logger, log_action
from .models_products import ProductPage, ProductQuery
from .normalizer import Product, normalize_products
from .pagination import (
    SORT_ASC,
    SORT_DESC,
    SORTABLE_COLUMNS,
    PageSlice,
    filter_products,
    server_page,
    slice_page,
    sort_products,
    total_pages,
)

logger = get_logger(__name__)

FETCH_LIST = "list"
FETCH_SEARCH = "search"


@dataclass(frozen=True)
class SortState:
    key: str | None = None
    direction: str = SORT_ASC

    def toggled(self, key: str) -> SortState:
        if self.key == key and self.direction == SORT_ASC:
            return SortState(key=key, direction=SORT_DESC)
        return SortState(key=key, direction=SORT_ASC)


@dataclass(frozen=True)
class FetchTicket:
    generation: int
    kind: str
    page: int
    rows_per_page: int
    search: str
    sort: SortState

    def query(self, store_id: str | None = None, category_id: str | None = None) -> ProductQuery:
        return ProductQuery(
            page=self.page,
            limit=self.rows_per_page,
            search=self.search or None,
            sort_key=self.sort.key,
            sort_dir=self.sort.direction if self.sort.key else None,
            store_id=store_id,
            category_id=category_id,
        )


class ListingCoordinator:
    """Owns page, rows per page, sort and search term for one grid.

    Every fetch is issued as a ``FetchTicket``; results are applied through
    ``apply_page``/``apply_search``/``apply_error`` which drop any ticket that
    is not the latest one issued.
    """

    def __init__(
        self,
        settings: GridSettings | None = None,
        now: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.settings = settings or GridSettings()
        self.page = 1
        self.rows_per_page = self.settings.default_rows_per_page
        self.sort = SortState()
        self.debouncer = SearchDebouncer(wait_ms=self.settings.search_debounce_ms, now=now)
        self.products: list[Product] = []
        self.total = 0
        self.total_pages = 0
        self.overlay: list[Product] | None = None
        self.error: Exception | None = None
        self.loaded = False
        self.disposed = False
        self._generation = 0
        self._pending: FetchTicket | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def search_overlay_active(self) -> bool:
        return self.overlay is not None

    @property
    def search_term(self) -> str:
        return self.debouncer.debounced_term

    def begin_fetch(self, kind: str = FETCH_LIST) -> FetchTicket:
        self._generation += 1
        ticket = FetchTicket(
            generation=self._generation,
            kind=kind,
            page=self.page,
            rows_per_page=self.rows_per_page,
            search=self.debouncer.debounced_term,
            sort=self.sort,
        )
        self._pending = ticket
        return ticket

    def refresh(self) -> FetchTicket:
        """Repeat the fetch for the active mode, e.g. as the retry action."""
        if self.search_term.strip():
            return self.begin_fetch(FETCH_SEARCH)
        return self.begin_fetch(FETCH_LIST)

    def set_search_text(self, term: str) -> None:
        self.debouncer.push(term)

    def tick(self) -> FetchTicket | None:
        """Advance the debounce timer; returns a ticket when the term settled."""
        if self.disposed:
            return None
        return self._settle(self.debouncer.poll())

    def submit_search(self) -> FetchTicket | None:
        """Settle the pending term now instead of waiting for the debounce."""
        if self.disposed:
            return None
        return self._settle(self.debouncer.flush())

    def _settle(self, settled: str | None) -> FetchTicket | None:
        if settled is None or settled != self.debouncer.raw_term:
            return None
        self.page = 1
        if settled.strip():
            return self.begin_fetch(FETCH_SEARCH)
        self.overlay = None
        return self.begin_fetch(FETCH_LIST)

    def toggle_sort(self, key: str) -> FetchTicket | None:
        if key not in SORTABLE_COLUMNS:
            log_action(logger, module="listing", action="sort", trace_id=None, outcome="rejected", key=key)
            return None
        self.sort = self.sort.toggled(key)
        if self.search_overlay_active:
            return None
        self.page = 1
        return self.begin_fetch(FETCH_LIST)

    def change_page(self, page: int) -> FetchTicket | None:
        target = max(1, page)
        last = self._last_page()
        if last:
            target = min(target, last)
        if target == self.page or self.pending:
            return None
        if self.search_overlay_active:
            self.page = target
            return None
        self.page = target
        return self.begin_fetch(FETCH_LIST)

    def change_rows_per_page(self, rows_per_page: int) -> FetchTicket | None:
        if rows_per_page < 1:
            raise ValueError("rows_per_page must be >= 1")
        if rows_per_page == self.rows_per_page or self.pending:
            return None
        self.rows_per_page = rows_per_page
        self.page = 1
        if self.search_overlay_active:
            return None
        return self.begin_fetch(FETCH_LIST)

    def is_current(self, ticket: FetchTicket) -> bool:
        return not self.disposed and self._pending is not None and ticket.generation == self._generation

    def apply_page(self, ticket: FetchTicket, result: ProductPage) -> bool:
        if not self._accept(ticket):
            return False
        self.products = normalize_products(result.items)
        self.total = result.total
        self.total_pages = result.total_pages
        self.page = result.page
        self.overlay = None
        self.error = None
        self.loaded = True
        return True

    def apply_search(self, ticket: FetchTicket, items: Sequence[Any]) -> bool:
        if not self._accept(ticket):
            return False
        self.overlay = normalize_products(items)
        self.error = None
        self.loaded = True
        return True

    def apply_error(self, ticket: FetchTicket, error: Exception) -> bool:
        if not self._accept(ticket):
            return False
        self.error = error
        return True

    def _accept(self, ticket: FetchTicket) -> bool:
        if not self.is_current(ticket):
            log_action(
                logger,
                module="listing",
                action=f"fetch.{ticket.kind}",
                trace_id=None,
                outcome="discarded",
                generation=ticket.generation,
                latest_generation=self._generation,
            )
            return False
        self._pending = None
        return True

    def source_products(self) -> list[Product]:
        """Every product the active mode knows about, unsliced."""
        if self.overlay is not None:
            return list(self.overlay)
        return list(self.products)

    def _overlay_rows(self) -> list[Product]:
        """Search results, narrowed locally by a newer term that has not settled yet."""
        rows = self.overlay or []
        typed = self.debouncer.raw_term
        if self.debouncer.pending and typed.strip() and typed != self.search_term:
            return filter_products(rows, typed)
        return list(rows)

    def _last_page(self) -> int:
        if self.overlay is not None:
            return total_pages(len(self._overlay_rows()), self.rows_per_page)
        return self.total_pages if self.loaded else 0

    def visible(self) -> PageSlice:
        if self.overlay is not None:
            ordered = sort_products(self._overlay_rows(), self.sort.key, self.sort.direction)
            return slice_page(ordered, min(self.page, max(1, self._last_page())), self.rows_per_page)
        return server_page(self.products, self.page, self.rows_per_page, self.total, self.total_pages)

    def dispose(self) -> None:
        self.debouncer.cancel()
        self.disposed = True
        self._pending = None

