# copycheck/ratelimit.py
"""Per-caller token-bucket rate limiting.

Buckets live in process memory for the life of the server. This is abuse
protection, not a security boundary: a burst of concurrent requests may
occasionally let one extra call through.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request
from limits import parse
from slowapi.util import get_remote_address

from .config import get_cfg

logger = logging.getLogger(__name__)

STRATEGIES = ("refill", "reset")

@dataclass
class RateBucket:
    tokens: float
    refilled_at: float

class TokenBucketLimiter:
    """Token bucket keyed by caller identity.

    ``refill`` adds ``floor(elapsed / interval * limit)`` tokens per call and
    ``reset`` restores the full ``limit`` once a whole window has elapsed.
    """

    def __init__(
        self,
        limit: int = 20,
        interval: float = 60.0,
        strategy: str = "refill",
        clock: Callable[[], float] = time.monotonic,
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown rate limit strategy: {strategy}")
        self.limit = limit
        self.interval = interval
        self.strategy = strategy
        self._clock = clock
        self._buckets: Dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    def _refill(self, bucket: RateBucket, now: float):
        elapsed = now - bucket.refilled_at
        if self.strategy == "reset":
            if elapsed >= self.interval:
                bucket.tokens = self.limit
                bucket.refilled_at = now
            return
        added = int(elapsed * self.limit / self.interval)
        if added > 0:
            bucket.tokens = min(self.limit, bucket.tokens + added)
            # carry the fractional remainder forward
            bucket.refilled_at += added * self.interval / self.limit

    def allow(self, identity: str) -> bool:
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(identity)
            if bucket is None:
                bucket = RateBucket(tokens=self.limit, refilled_at=now)
                self._buckets[identity] = bucket
            else:
                self._refill(bucket, now)
            if bucket.tokens <= 0:
                return False
            bucket.tokens -= 1
            return True

    def reset(self):
        with self._lock:
            self._buckets.clear()

def from_config(cfg: Optional[dict] = None) -> TokenBucketLimiter:
    """Builds a limiter from the ``guardrails.rate_limit`` setting, e.g. ``"20/minute"``."""
    guard = (cfg or get_cfg())["guardrails"]
    item = parse(guard["rate_limit"])
    return TokenBucketLimiter(
        limit=item.amount,
        interval=float(item.get_expiry()),
        strategy=guard.get("rate_limit_strategy", "refill"),
    )

_limiter: Optional[TokenBucketLimiter] = None
_limiter_lock = threading.Lock()

def get_limiter() -> TokenBucketLimiter:
    """Lazily creates the process-wide limiter."""
    global _limiter
    with _limiter_lock:
        if _limiter is None:
            _limiter = from_config()
            logger.info("Rate limit: %d per %.0fs (%s)", _limiter.limit, _limiter.interval, _limiter.strategy)
        return _limiter

def client_identity(request: Request) -> str:
    """Caller network address, honouring proxy headers."""
    ip = request.headers.get("cf-connecting-ip")
    if ip:
        return ip.strip()
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)
