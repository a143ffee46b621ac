import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from splitmoney.schemas.balance_schema import Balance, BalanceSummary, Debt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedGroupBalances:
    balances: List[Balance]
    summary: List[BalanceSummary]
    debts: List[Debt]
    calculated_at: datetime


class BalanceCache:
    """Read-through cache of computed group balances, keyed by group id.

    Entries expire after ttl_seconds as measured by the injected clock and are
    dropped explicitly whenever a group's expenses, splits, settlements or
    members change. Entries are immutable snapshots swapped under a lock.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, tuple] = {}
        self._lock = threading.Lock()

    def get(self, group_id: str) -> Optional[CachedGroupBalances]:
        with self._lock:
            entry = self._entries.get(group_id)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[group_id]
                logger.debug(f"Balance cache entry for group {group_id} expired")
                return None
            return value

    def put(self, group_id: str, value: CachedGroupBalances) -> None:
        with self._lock:
            self._entries[group_id] = (self._clock(), value)

    def invalidate(self, group_id: str) -> None:
        with self._lock:
            if self._entries.pop(group_id, None) is not None:
                logger.debug(f"Balance cache invalidated for group {group_id}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
