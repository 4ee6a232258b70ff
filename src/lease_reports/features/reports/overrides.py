"""Session-scoped profit overrides.

A caller may post a corrected profit figure. It is remembered for that
caller's session only, in process memory, and is never written to the data
store or mixed into any computed aggregate.

The store is bounded: entries expire after `ttl_seconds`, and once
`max_entries` sessions are held the least recently written one is dropped.
"""

import time
from collections import OrderedDict
from typing import Callable, Optional

from fastapi import Request

from ...core.config import PROFIT_OVERRIDE_MAX_ENTRIES, PROFIT_OVERRIDE_TTL_SECONDS


class ProfitOverrideStore:
    def __init__(
        self,
        max_entries: int = PROFIT_OVERRIDE_MAX_ENTRIES,
        ttl_seconds: float = PROFIT_OVERRIDE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # session key -> (total profit, expiry time)
        self._values: "OrderedDict[str, tuple[float, float]]" = OrderedDict()

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._values)

    def set(self, session_key: str, total_profit: float) -> None:
        self._evict_expired()
        self._values.pop(session_key, None)
        self._values[session_key] = (total_profit, self._clock() + self.ttl_seconds)
        while len(self._values) > self.max_entries:
            self._values.popitem(last=False)

    def get(self, session_key: str) -> Optional[float]:
        self._evict_expired()
        entry = self._values.get(session_key)
        return entry[0] if entry else None

    def clear(self) -> None:
        self._values.clear()

    def _evict_expired(self) -> None:
        now = self._clock()
        # Insertion order is expiry order since every write uses the same ttl
        while self._values:
            key, (_, expires_at) = next(iter(self._values.items()))
            if expires_at > now:
                break
            del self._values[key]


def get_profit_overrides(request: Request) -> ProfitOverrideStore:
    return request.app.state.profit_overrides
