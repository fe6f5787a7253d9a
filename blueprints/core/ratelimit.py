from __future__ import annotations
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import Flask, request


def client_ip() -> str:
    # ProxyFix has already resolved X-Forwarded-For up to the trusted hop
    return request.remote_addr or "0.0.0.0"


@dataclass
class FixedWindowLimiter:
    """Per-key hit counter that resets every `window` seconds."""

    name: str
    prefix: str
    max_hits: int
    window: int
    code: str
    message: str
    # only count responses with status >= 400 (failed logins and the like)
    failures_only: bool = False
    _buckets: Dict[str, List[float]] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _swept_at: float = field(default=0.0, repr=False)

    def applies_to(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    def _sweep(self, now: float) -> None:
        # drop buckets whose window has ended, at most once per window
        if now - self._swept_at < self.window:
            return
        self._swept_at = now
        expired = [k for k, (started, _) in self._buckets.items() if now - started >= self.window]
        for key in expired:
            del self._buckets[key]

    def _bucket(self, key: str, now: float) -> List[float]:
        # [window_start, hits]
        self._sweep(now)
        bucket = self._buckets.get(key)
        if bucket is None or now - bucket[0] >= self.window:
            bucket = [now, 0]
            self._buckets[key] = bucket
        return bucket

    def exceeded(self, key: str, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        with self._lock:
            return self._bucket(key, now)[1] >= self.max_hits

    def hit(self, key: str, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            bucket = self._bucket(key, now)
            bucket[1] += 1
            return int(bucket[1])

    def retry_after(self, key: str, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            bucket = self._bucket(key, now)
            return max(1, int(bucket[0] + self.window - now))

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


def build_limiters(app: Flask) -> List[FixedWindowLimiter]:
    cfg = app.config
    return [
        FixedWindowLimiter(
            "api", "/api",
            cfg.get("RATELIMIT_API_MAX", 1000), cfg.get("RATELIMIT_API_WINDOW", 900),
            "RATE_LIMIT_EXCEEDED", "Too many requests from this IP, please try again later.",
        ),
        FixedWindowLimiter(
            "auth", "/api/auth",
            cfg.get("RATELIMIT_AUTH_MAX", 50), cfg.get("RATELIMIT_AUTH_WINDOW", 900),
            "AUTH_RATE_LIMIT_EXCEEDED", "Too many authentication attempts from this IP, please try again later.",
            failures_only=True,
        ),
        FixedWindowLimiter(
            "search", "/api/search",
            cfg.get("RATELIMIT_SEARCH_MAX", 100), cfg.get("RATELIMIT_SEARCH_WINDOW", 60),
            "SEARCH_RATE_LIMIT_EXCEEDED", "Too many search requests, please slow down.",
        ),
    ]


def limiters_for(app: Flask) -> List[FixedWindowLimiter]:
    limiters = app.extensions.get("rate_limiters")
    if limiters is None:
        limiters = app.extensions["rate_limiters"] = build_limiters(app)
    return limiters
