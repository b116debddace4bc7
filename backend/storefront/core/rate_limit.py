"""
Rate limiting for public storefront endpoints
Uses in-memory storage with sliding window algorithm
"""
import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from fastapi import Request

from storefront.core.config import RateLimitRule
from storefront.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int
    reset_at: float

    @property
    def reset_time(self) -> str:
        """Reset moment as ISO-8601 UTC"""
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat()


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    State is process-local and lost on restart, which is acceptable for abuse
    mitigation. One instance is created per application and injected where it
    is needed; for multiple instances, back it with a shared TTL cache.
    """

    def __init__(
        self,
        rules: Dict[str, RateLimitRule],
        cleanup_interval: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        if "default" not in rules:
            raise ValueError("Rate limit rules must define a 'default' class")
        self._rules = dict(rules)
        # {"endpoint:identifier": [timestamp, ...]}
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()
        self._clock = clock
        self._last_cleanup = clock()
        self._cleanup_interval = cleanup_interval

    def rule_for(self, endpoint_class: str) -> RateLimitRule:
        return self._rules.get(endpoint_class, self._rules["default"])

    def _cleanup_old_entries(self, now: float) -> None:
        """Remove entries older than the largest window we care about"""
        # Only cleanup periodically to avoid overhead
        if now - self._last_cleanup < self._cleanup_interval:
            return

        largest_window = max(rule.window_seconds for rule in self._rules.values())
        cutoff = now - largest_window

        for key in list(self._requests.keys()):
            self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]
            # Remove empty entries
            if not self._requests[key]:
                del self._requests[key]

        self._last_cleanup = now

    def check(self, identifier: str, endpoint_class: str = "default") -> RateLimitDecision:
        """
        Check whether a request is allowed and record it when it is.

        Args:
            identifier: Client identifier (usually the IP address)
            endpoint_class: checkout, booking, contact or default

        Returns:
            RateLimitDecision with remaining quota and reset moment
        """
        rule = self.rule_for(endpoint_class)
        key = f"{endpoint_class}:{identifier}"

        with self._lock:
            now = self._clock()
            self._cleanup_old_entries(now)

            window_start = now - rule.window_seconds
            in_window = [ts for ts in self._requests.get(key, []) if ts > window_start]

            if len(in_window) >= rule.max_requests:
                # The oldest request in the window expires first
                reset_at = min(in_window) + rule.window_seconds
                retry_after = int(reset_at - now) + 1
                self._requests[key] = in_window
                return RateLimitDecision(False, rule.max_requests, 0, retry_after, reset_at)

            in_window.append(now)
            self._requests[key] = in_window
            reset_at = min(in_window) + rule.window_seconds
            remaining = rule.max_requests - len(in_window)
            return RateLimitDecision(True, rule.max_requests, remaining, 0, reset_at)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()

    @property
    def tracked_keys(self) -> int:
        return len(self._requests)


def get_client_ip(request: Request) -> str:
    """Get the client IP, considering proxies"""
    # Check X-Forwarded-For header first (for proxied requests)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    # Fall back to the direct client IP
    if request.client:
        return request.client.host

    return "unknown"


def rate_limit(endpoint_class: str):
    """
    Dependency factory applying the app's rate limiter to an endpoint.

    Usage:
        @router.post("/bookings")
        def create_booking(..., _: None = Depends(rate_limit("booking"))):
            ...
    """
    def check_rate_limit(request: Request) -> None:
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return

        client_ip = get_client_ip(request)
        decision = limiter.check(client_ip, endpoint_class)
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {endpoint_class} from {client_ip}")
            raise RateLimitExceeded(
                endpoint_class,
                limit=decision.limit,
                retry_after=decision.retry_after,
                reset_time=decision.reset_time,
            )

    return check_rate_limit
