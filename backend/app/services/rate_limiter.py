"""
HeartSmiles Backend — Fixed Window Rate Limiter
=================================================

What:  Per-client request counter over a fixed time window.
Why:   Caps abusive traffic (default 100 requests / 15 minutes per client).
How:   Each client identity owns one (count, window_start) entry in a
       RateWindowStore. The first request after the window elapses resets
       the entry. There is no sweeper: expiry is checked on access.

Algorithm: Fixed Window Counter
    1. Look up the identity's entry; if missing or expired, start a new window
    2. Increment the count (every attempt is recorded, rejected ones too)
    3. Admit iff count <= limit
    Steps 1-3 run under the store lock, so concurrent bursts from one
    identity can never admit more than `limit` requests.

Why fixed (not sliding) window:
    The advertised contract is "N requests per 15 minutes, resets at
    RateLimit-Reset", which clients can display and honor directly.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again after 15 minutes"

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateWindowEntry:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateDecision:
    """Outcome of one admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    exempt: bool = False

    def reset_after(self, now: float) -> int:
        """Whole seconds until the current window resets (at least 0)."""
        return max(0, math.ceil(self.reset_at - now))


class RateWindowStore:
    """
    In-memory identity -> RateWindowEntry mapping.

    Thread Safety:
        `hit()` performs read, expiry check and increment under one lock.
        The lock is never held across an await, so it is safe to call
        from async middleware.

    Production Upgrade Path:
        Multi-instance deployments need a shared store (e.g. Redis
        INCR + EXPIRE). Only this class would change.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, RateWindowEntry] = {}

    def hit(self, key: str, now: float, window_seconds: float) -> RateWindowEntry:
        """Record one attempt for `key` and return the updated entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now - entry.window_start >= window_seconds:
                entry = RateWindowEntry(count=0, window_start=now)
            entry = RateWindowEntry(count=entry.count + 1, window_start=entry.window_start)
            self._entries[key] = entry
            return entry

    def get(self, key: str) -> Optional[RateWindowEntry]:
        with self._lock:
            return self._entries.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RateLimiter:
    """
    Admission decisions for one limit / window pair.

    Args:
        limit:          Max admitted requests per identity per window.
        window_seconds: Window length.
        exempt_paths:   Exact paths that bypass counting entirely.
        store:          Shared counter store (injected for tests).
        clock:          Time source in seconds (injected for tests).
    """

    def __init__(
        self,
        limit: int = 100,
        window_seconds: float = 15 * 60,
        exempt_paths: Iterable[str] = (),
        store: Optional[RateWindowStore] = None,
        clock: Clock = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.exempt_paths: Tuple[str, ...] = tuple(exempt_paths)
        self.store = store if store is not None else RateWindowStore()
        self.clock = clock

    def is_exempt(self, path: str) -> bool:
        return path in self.exempt_paths

    def admit(self, client_identity: str, path: str) -> RateDecision:
        now = self.clock()
        if self.is_exempt(path):
            return RateDecision(
                allowed=True,
                limit=self.limit,
                remaining=self.limit,
                reset_at=now + self.window_seconds,
                exempt=True,
            )

        entry = self.store.hit(client_identity, now, self.window_seconds)
        decision = RateDecision(
            allowed=entry.count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - entry.count),
            reset_at=entry.window_start + self.window_seconds,
        )
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                client_identity,
                entry.count,
                self.window_seconds,
            )
        return decision


def resolve_client_identity(
    forwarded_for: Optional[str],
    peer_host: Optional[str],
    trusted_hops: int = 1,
) -> str:
    """
    Client address as seen through `trusted_hops` reverse proxies.

    Each trusted proxy appends the address it received the request from,
    so with one hop the right-most X-Forwarded-For entry is the client.
    Entries further left were supplied by the client and are ignored.
    """
    if trusted_hops > 0 and forwarded_for:
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        if hops:
            return hops[-min(trusted_hops, len(hops))]
    return peer_host or "unknown"
