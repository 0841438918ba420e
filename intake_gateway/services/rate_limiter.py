"""
Fixed Window Counter Rate Limiting

How It Works:
    1. The first request from a client identifier opens a window
       of window_seconds and sets the counter to 1
    2. Each later request inside the window increments the counter
    3. Once the counter reaches max_requests, requests are rejected
       until the window expires
    4. The first request after expiry opens a fresh window

The Edge Case:
    Windows start at each client's first request, so a burst at the end
    of one window followed by a burst at the start of the next can admit
    up to 2x max_requests in a short span. This approximation is accepted.

State:
    In-process only. Entries are expired lazily on access. Memory is
    bounded by max_entries: when a new identifier would exceed the cap,
    stale entries are dropped from the front of the expiry-ordered map
    and then the oldest entries are evicted.
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Mapping

from intake_gateway.errors import RateLimitExceeded
from intake_gateway.models import RateLimitResult

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitEntry:
    """Counter for one client identifier; stale once now >= expires_at."""
    hits: int
    expires_at: float


def get_client_id(headers: Mapping[str, str]) -> str:
    """
    Best-effort network origin of a request.

    Uses the first X-Forwarded-For hop, then X-Real-IP. Clients sending
    neither header share the "unknown" bucket.
    """
    forwarded_for = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded_for:
        return forwarded_for

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


class FixedWindowRateLimiter:
    """
    Per-client fixed window counter.

    All reads and writes of the entry map happen under one lock, so the
    read-check-increment sequence is atomic across threads.
    """

    def __init__(
        self,
        window_seconds: float = 300,
        max_requests: int = 10,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, client_id: str) -> RateLimitResult:
        """Record one request from client_id and return the decision."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(client_id)

            if entry is None or entry.expires_at <= now:
                if entry is None:
                    self._make_room(now)
                else:
                    del self._entries[client_id]
                self._entries[client_id] = RateLimitEntry(
                    hits=1, expires_at=now + self.window_seconds
                )
                return RateLimitResult(
                    allowed=True,
                    remaining=self.max_requests - 1,
                    limit=self.max_requests,
                )

            if entry.hits >= self.max_requests:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    limit=self.max_requests,
                    retry_after=max(math.ceil(entry.expires_at - now), 1),
                )

            entry.hits += 1
            return RateLimitResult(
                allowed=True,
                remaining=self.max_requests - entry.hits,
                limit=self.max_requests,
            )

    def admit(self, client_id: str) -> RateLimitResult:
        """
        Admit a request or raise.

        Raises:
            RateLimitExceeded: client_id has used up its current window
        """
        result = self.check(client_id)
        if not result.allowed:
            logger.warning(
                f"[RATE_LIMIT] Rejected {client_id} "
                f"({self.max_requests}/{self.window_seconds}s, retry in {result.retry_after}s)"
            )
            raise RateLimitExceeded(retry_after=result.retry_after, limit=result.limit)
        return result

    def sweep_expired(self) -> int:
        """Drop every stale entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def _make_room(self, now: float) -> None:
        # Caller holds the lock. Entries are kept in expiry order: every
        # window has the same length and a reset re-inserts at the end,
        # so stale entries are always at the front.
        if self.max_entries is None or len(self._entries) < self.max_entries:
            return

        removed = 0
        while self._entries:
            oldest = next(iter(self._entries.values()))
            if oldest.expires_at > now:
                break
            self._entries.popitem(last=False)
            removed += 1

        while len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
            removed += 1
        logger.info(f"[RATE_LIMIT] Evicted {removed} entries (cap {self.max_entries})")
