from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class SearchDebouncer:
    """Trailing debounce of the raw search text.

    The owner calls ``push`` on every keystroke and ``poll`` from its event
    loop; ``poll`` returns the settled term once ``wait_ms`` of inactivity has
    elapsed, exactly once per settle.
    """

    wait_ms: int = 500
    now: Callable[[], float] = field(default=monotonic_ms)
    raw_term: str = ""
    debounced_term: str = ""
    _deadline: float | None = field(default=None, init=False, repr=False)

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    @property
    def caught_up(self) -> bool:
        return not self.pending and self.raw_term == self.debounced_term

    def push(self, term: str) -> None:
        self.raw_term = term
        self._deadline = self.now() + self.wait_ms

    def poll(self) -> str | None:
        if self._deadline is None or self.now() < self._deadline:
            return None
        self._deadline = None
        if self.raw_term == self.debounced_term:
            return None
        self.debounced_term = self.raw_term
        return self.debounced_term

    def flush(self) -> str | None:
        """Settle immediately, e.g. when the user presses Enter in the search box."""
        if self._deadline is None:
            return None
        self._deadline = self.now()
        return self.poll()

    def cancel(self) -> None:
        self._deadline = None
