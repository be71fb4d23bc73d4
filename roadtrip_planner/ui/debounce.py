"""Debouncer - Run a value through only after a period of quiescence.

Streamlit has no timers: each rerun calls poll(), which hands back the
pending value once the delay has elapsed since the last submit(). The clock
is injectable so tests do not sleep.

st.text_input reports its text only on commit (Enter or focus loss), not
per keystroke. In the sidebar each submit() is therefore a commit: the
geocode runs delay_s after the last commit, and commits landing inside that
window collapse into the latest one. Keystrokes between commits are never
seen, so the delay acts as a short fixed wait after each commit.
"""

import time
from collections.abc import Callable
from typing import Generic, TypeVar

from roadtrip_planner.constants import SearchConfig

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Holds the latest submitted value until it has been quiet for delay_s."""

    def __init__(self, delay_s: float = SearchConfig.DEBOUNCE_S, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay_s = delay_s
        self._clock = clock
        self._pending: T | None = None
        self._submitted_at: float | None = None

    @property
    def has_pending(self) -> bool:
        return self._submitted_at is not None

    def submit(self, value: T) -> None:
        """Replace the pending value and restart the quiet period."""
        self._pending = value
        self._submitted_at = self._clock()

    def cancel(self) -> None:
        self._pending = None
        self._submitted_at = None

    def remaining(self) -> float:
        """Seconds until the pending value is due (0 when due or nothing pending)."""
        if self._submitted_at is None:
            return 0.0
        return max(0.0, self.delay_s - (self._clock() - self._submitted_at))

    def poll(self) -> T | None:
        """Return and clear the pending value if it is due, else None."""
        if self._submitted_at is None or self.remaining() > 0:
            return None
        value = self._pending
        self.cancel()
        return value
