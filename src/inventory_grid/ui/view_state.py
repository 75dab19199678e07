from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ViewStateStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    SUCCESS = "success"
    PARTIAL_ERROR = "partial_error"
    FATAL_ERROR = "fatal_error"


_ICONS = {
    ViewStateStatus.LOADING: "spinner",
    ViewStateStatus.EMPTY: "inbox",
    ViewStateStatus.SUCCESS: "check",
    ViewStateStatus.PARTIAL_ERROR: "warning",
    ViewStateStatus.FATAL_ERROR: "error",
}


@dataclass(frozen=True)
class ViewState:
    status: ViewStateStatus
    message: str | None = None
    trace_id: str | None = None
    data_available: bool = False

    @property
    def can_retry(self) -> bool:
        return self.status in {ViewStateStatus.PARTIAL_ERROR, ViewStateStatus.FATAL_ERROR}

    def render(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "trace_id": self.trace_id,
            "data_available": self.data_available,
            "icon": _ICONS[self.status],
            "retry": self.can_retry,
        }


def resolve_state(
    *,
    is_loading: bool,
    error: str | None,
    has_data: bool,
    searching: bool = False,
    trace_id: str | None = None,
) -> ViewState:
    if is_loading and not has_data:
        return ViewState(ViewStateStatus.LOADING, "Loading products...", trace_id=trace_id)
    if error and has_data:
        return ViewState(ViewStateStatus.PARTIAL_ERROR, error, trace_id=trace_id, data_available=True)
    if error:
        return ViewState(ViewStateStatus.FATAL_ERROR, error, trace_id=trace_id)
    if not has_data:
        message = "No products match your search" if searching else "No products found"
        return ViewState(ViewStateStatus.EMPTY, message, trace_id=trace_id)
    return ViewState(ViewStateStatus.SUCCESS, "Ready", trace_id=trace_id, data_available=True)
