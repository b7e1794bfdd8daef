# services/api/core/observability.py
"""
Request tracing, logging setup and the in-process counters behind /metrics.
"""
from __future__ import annotations

import contextvars
import logging
import time
from collections import defaultdict
from typing import Any, Dict

request_id_var: contextvars.ContextVar = contextvars.ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


class RequestStats:
    """Counters keyed by "METHOD /route/{template}". Reset on restart."""

    def __init__(self):
        self.started_at = time.time()
        self.requests: Dict[str, int] = defaultdict(int)
        self.latency: Dict[str, float] = defaultdict(float)
        self.status_codes: Dict[int, int] = defaultdict(int)
        self.cache_hits = 0
        self.cache_misses = 0

    def record_request(self, endpoint: str, status_code: int, latency: float) -> None:
        self.requests[endpoint] += 1
        self.latency[endpoint] += latency
        self.status_codes[status_code] += 1

    def record_cache(self, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def snapshot(self, cache_size: int = 0) -> Dict[str, Any]:
        total = sum(self.requests.values())
        lookups = self.cache_hits + self.cache_misses
        return {
            "timestamp": time.time(),
            "uptime_seconds": round(time.time() - self.started_at, 2),
            "requests": {
                "by_endpoint": dict(self.requests),
                "by_status": dict(self.status_codes),
                "total": total,
            },
            "latency": {
                "by_endpoint_ms": {
                    ep: round(self.latency[ep] / n * 1000, 2) for ep, n in self.requests.items() if n
                },
                "average_ms": round(sum(self.latency.values()) / total * 1000, 2) if total else 0,
            },
            "cache": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "hit_rate_percent": round(self.cache_hits / lookups * 100, 2) if lookups else 0,
                "size": cache_size,
            },
        }


stats = RequestStats()
