"""RequestFence - Last-request-wins bookkeeping for independent fetch slots.

Every outgoing request takes a token from its slot. When the response
arrives, it is applied only if its token is still the latest issued for
that slot; otherwise a newer request superseded it and the response is
dropped.

Slots are independent: a geocode request never invalidates a charger fetch.
"""

import logging
from collections import defaultdict


logger = logging.getLogger(__name__)


class FetchSlot:
    """Logical fetch slots."""

    GEOCODE = "geocode"
    ROUTE = "route"
    CHARGERS = "chargers"
    FOOD = "food"


class RequestFence:
    """Monotonic per-slot request tokens.

    Example:
        token = fence.issue(FetchSlot.ROUTE)
        data = client.route(...)
        if fence.is_current(FetchSlot.ROUTE, token):
            apply(data)
    """

    def __init__(self) -> None:
        self._latest: defaultdict[str, int] = defaultdict(int)

    def issue(self, slot: str) -> int:
        """Take a new token for slot, superseding every earlier one."""
        self._latest[slot] += 1
        return self._latest[slot]

    def is_current(self, slot: str, token: int) -> bool:
        """True if token is the latest issued for slot."""
        current = self._latest[slot] == token
        if not current:
            logger.info(f"[FENCE] Dropping stale {slot} response (token {token}, latest {self._latest[slot]})")
        return current

    def invalidate(self, slot: str) -> None:
        """Supersede any in-flight request for slot without issuing a new one."""
        self._latest[slot] += 1

    def latest(self, slot: str) -> int:
        return self._latest[slot]
