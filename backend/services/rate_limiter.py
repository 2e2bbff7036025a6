"""Per-client upload throttle on a sliding time window.

Built on the ``limits`` moving-window strategy (the engine behind slowapi).
Its ``hit`` checks and records a request in one storage operation: a lock
on the memory backend, a Lua script on Redis. Other backends may still race
under concurrent requests from one client; this is an abuse deterrent, not
a security boundary.

Storage calls are blocking; async callers run ``check_and_consume`` in a
worker thread.

Storage failures fail open: the request is allowed and a warning logged.
"""

import logging
import math
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi.util import get_remote_address
from starlette.requests import Request

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID = "127.0.0.1"
FORWARDED_HEADERS = ("x-forwarded-for", "forwarded")
PROXY_IP_HEADERS = ("x-real-ip", "cf-connecting-ip", "fly-client-ip")


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    client_id: str
    limit: int
    remaining: int
    reset_at: float  # epoch seconds
    reason: str  # ok | rate-limit-exceeded | storage-not-configured | storage-error

    @property
    def retry_after(self) -> int:
        """Seconds until the oldest counted request leaves the window."""
        if self.allowed:
            return 0
        return max(1, math.ceil(self.reset_at - time.time()))

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


def client_identifier(request: Request) -> str:
    """Best-effort client IP: proxy headers first, then the socket peer."""
    for name in FORWARDED_HEADERS:
        forwarded = request.headers.get(name, "")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    for name in PROXY_IP_HEADERS:
        value = request.headers.get(name, "").strip()
        if value:
            return value
    return get_remote_address(request) or DEFAULT_CLIENT_ID


class RateLimiter:
    """Allow at most ``limit`` requests per client in any ``window_seconds`` span."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        storage_uri: str = "memory://",
        storage: Storage | None = None,
        namespace: str = "upload",
    ) -> None:
        self.item = RateLimitItemPerSecond(limit, window_seconds)
        self.namespace = namespace
        self.storage_uri = storage_uri
        self._strategy: MovingWindowRateLimiter | None = None

        if storage is None:
            try:
                storage = storage_from_string(storage_uri)
            except Exception as e:
                logger.warning(
                    "Rate limit storage %r unavailable, requests will not be limited: %s",
                    storage_uri, e,
                )
        if storage is not None:
            self._strategy = MovingWindowRateLimiter(storage)

    @property
    def limit(self) -> int:
        return self.item.amount

    @property
    def window_seconds(self) -> int:
        return self.item.get_expiry()

    @property
    def configured(self) -> bool:
        return self._strategy is not None

    def _open(self, client_id: str, reason: str) -> RateDecision:
        return RateDecision(
            allowed=True,
            client_id=client_id,
            limit=self.limit,
            remaining=self.limit,
            reset_at=time.time() + self.window_seconds,
            reason=reason,
        )

    def check_and_consume(self, client_id: str) -> RateDecision:
        """Count this request for ``client_id`` if it fits in the window."""
        if self._strategy is None:
            return self._open(client_id, "storage-not-configured")

        try:
            allowed = self._strategy.hit(self.item, self.namespace, client_id)
            stats = self._strategy.get_window_stats(self.item, self.namespace, client_id)
        except Exception as e:
            logger.warning("Rate limit storage error for %s, allowing request: %s", client_id, e)
            return self._open(client_id, "storage-error")

        if not allowed:
            logger.warning("Rate limit exceeded for %s", client_id)
        return RateDecision(
            allowed=allowed,
            client_id=client_id,
            limit=self.limit,
            remaining=max(0, stats.remaining),
            reset_at=float(stats.reset_time),
            reason="ok" if allowed else "rate-limit-exceeded",
        )

    def reset(self) -> None:
        """Drop all counters (storage permitting)."""
        if self._strategy is not None:
            self._strategy.storage.reset()
