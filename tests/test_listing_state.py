from __future__ import annotations

import pytest

from inventory_grid.config import GridSettings
from inventory_grid.listing_state import FETCH_LIST, FETCH_SEARCH, ListingCoordinator, SortState
from inventory_grid.models_products import ProductPage


def _raw(count: int) -> list[dict]:
    return [{"id": f"p{i}", "name": f"Product {i}", "itemQuantity": i} for i in range(count)]


def _coordinator(clock) -> ListingCoordinator:
    return ListingCoordinator(settings=GridSettings(), now=clock)


def test_typing_abc_issues_exactly_one_search_fetch(clock) -> None:
    listing = _coordinator(clock)
    tickets = []
    for term in ("a", "ab", "abc"):
        listing.set_search_text(term)
        clock.advance(200)
        ticket = listing.tick()
        if ticket:
            tickets.append(ticket)
    for _ in range(5):
        clock.advance(200)
        ticket = listing.tick()
        if ticket:
            tickets.append(ticket)

    assert len(tickets) == 1
    assert tickets[0].kind == FETCH_SEARCH
    assert tickets[0].search == "abc"
    assert tickets[0].page == 1


def test_settled_search_resets_page(clock) -> None:
    listing = _coordinator(clock)
    first = listing.begin_fetch()
    listing.apply_page(first, ProductPage(items=_raw(10), page=1, limit=10, total=40, total_pages=4))
    listing.change_page(3)
    listing.apply_page(listing.begin_fetch(), ProductPage(items=_raw(10), page=3, limit=10, total=40, total_pages=4))

    listing.set_search_text("tea")
    clock.advance(500)
    ticket = listing.tick()

    assert ticket is not None
    assert listing.page == 1


def test_clearing_search_returns_to_server_mode(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("tea")
    clock.advance(500)
    search = listing.tick()
    listing.apply_search(search, _raw(3))
    assert listing.search_overlay_active

    listing.set_search_text("")
    clock.advance(500)
    ticket = listing.tick()

    assert ticket is not None
    assert ticket.kind == FETCH_LIST
    assert not listing.search_overlay_active


def test_sort_toggle_cycle() -> None:
    state = SortState()
    state = state.toggled("name")
    assert (state.key, state.direction) == ("name", "asc")
    state = state.toggled("name")
    assert (state.key, state.direction) == ("name", "desc")
    state = state.toggled("price")
    assert (state.key, state.direction) == ("price", "asc")
    state = state.toggled("price").toggled("price")
    assert state.direction == "asc"


def test_sort_in_server_mode_refetches(clock) -> None:
    listing = _coordinator(clock)
    ticket = listing.toggle_sort("name")
    assert ticket is not None
    query = ticket.query(store_id="s1")
    assert query.sort_key == "name"
    assert query.sort_dir == "asc"
    assert query.store_id == "s1"


def test_sort_in_overlay_mode_resorts_locally(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("p")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(3))
    generation = listing.generation

    assert listing.toggle_sort("quantity") is None
    assert listing.toggle_sort("quantity") is None

    assert listing.generation == generation
    assert [p.quantity for p in listing.visible().items] == [2, 1, 0]


def test_change_page_same_page_or_pending_is_noop(clock) -> None:
    listing = _coordinator(clock)
    assert listing.change_page(1) is None

    ticket = listing.change_page(2)
    assert ticket is not None
    assert listing.change_page(3) is None
    assert listing.page == 2

    listing.apply_page(ticket, ProductPage(items=_raw(10), page=2, limit=10, total=30, total_pages=3))
    assert listing.change_page(3) is not None


def test_change_rows_per_page_resets_page(clock) -> None:
    listing = _coordinator(clock)
    first = listing.change_page(4)
    listing.apply_page(first, ProductPage(items=_raw(10), page=4, limit=10, total=50, total_pages=5))

    ticket = listing.change_rows_per_page(20)

    assert ticket is not None
    assert ticket.page == 1
    assert ticket.rows_per_page == 20
    assert listing.change_rows_per_page(20) is None
    with pytest.raises(ValueError):
        listing.change_rows_per_page(0)


def test_stale_response_is_discarded(clock) -> None:
    listing = _coordinator(clock)
    older = listing.begin_fetch()
    newer = listing.begin_fetch()

    assert listing.apply_page(older, ProductPage(items=_raw(1), total=1, total_pages=1)) is False
    assert listing.products == []
    assert listing.apply_page(newer, ProductPage(items=_raw(2), total=2, total_pages=1)) is True
    assert len(listing.products) == 2
    assert listing.apply_error(older, RuntimeError("late")) is False
    assert listing.error is None


def test_overlay_slices_client_side(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("product")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(23))

    assert listing.change_page(3) is None
    page = listing.visible()

    assert listing.page == 3
    assert len(page.items) == 3
    assert (page.start_index, page.end_index) == (20, 23)
    assert page.total == 23


def test_server_mode_trusts_remote_metadata(clock) -> None:
    listing = _coordinator(clock)
    ticket = listing.begin_fetch()
    listing.apply_page(ticket, ProductPage(items=_raw(10), page=1, limit=10, total=95, total_pages=10))

    page = listing.visible()

    assert page.total == 95
    assert page.total_pages == 10
    assert len(page.items) == 10


def test_refresh_repeats_active_mode(clock) -> None:
    listing = _coordinator(clock)
    assert listing.refresh().kind == FETCH_LIST

    listing.set_search_text("tea")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(2))
    assert listing.refresh().kind == FETCH_SEARCH


def test_dispose_cancels_debounce_and_ignores_results(clock) -> None:
    listing = _coordinator(clock)
    ticket = listing.begin_fetch()
    listing.set_search_text("tea")
    listing.dispose()
    clock.advance(1000)

    assert listing.tick() is None
    assert listing.apply_page(ticket, ProductPage(items=_raw(1), total=1, total_pages=1)) is False


def test_unknown_sort_key_is_rejected(clock) -> None:
    listing = _coordinator(clock)
    assert listing.toggle_sort("createdAt") is None
    assert listing.sort == SortState()
    assert listing.generation == 0

    listing.set_search_text("product")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(3))
    assert len(listing.visible().items) == 3


def test_refresh_after_failed_search_repeats_search(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("mug")
    clock.advance(500)
    failed = listing.tick()
    listing.apply_error(failed, RuntimeError("down"))
    assert not listing.search_overlay_active

    retry = listing.refresh()

    assert retry.kind == FETCH_SEARCH
    assert retry.search == "mug"


def test_unsettled_term_narrows_search_results_locally(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("product")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(23))

    listing.set_search_text("product 1")
    narrowed = listing.visible()

    assert narrowed.total == 11
    assert all("1" in product.name for product in narrowed.items)

    clock.advance(500)
    ticket = listing.tick()
    assert ticket.kind == FETCH_SEARCH
    assert ticket.search == "product 1"


def test_submit_search_skips_the_wait(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("tea")
    clock.advance(10)

    ticket = listing.submit_search()

    assert ticket is not None and ticket.kind == FETCH_SEARCH
    clock.advance(1000)
    assert listing.tick() is None
    assert listing.submit_search() is None


def test_change_page_clamps_to_last_known_page(clock) -> None:
    listing = _coordinator(clock)
    listing.apply_page(listing.begin_fetch(), ProductPage(items=_raw(10), page=1, limit=10, total=30, total_pages=3))

    ticket = listing.change_page(8)

    assert ticket is not None and ticket.page == 3
    listing.apply_page(ticket, ProductPage(items=_raw(10), page=3, limit=10, total=30, total_pages=3))
    assert listing.change_page(9) is None


def test_overlay_page_change_clamps(clock) -> None:
    listing = _coordinator(clock)
    listing.set_search_text("product")
    clock.advance(500)
    listing.apply_search(listing.tick(), _raw(12))

    listing.change_page(7)

    assert listing.page == 2
    assert len(listing.visible().items) == 2
