"""Per-request analytics context and the concurrent read fan-out.

Each computation declares its independent reads up front and hands them to
``gather_reads``. All reads are started together, every one of them is
joined, and only then are derived values computed. A read that raises is
replaced by its declared default and reported in ``ReadResults.degraded``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from storeforge.analytics.period import utc_now
from storeforge.store.base import StoreGateway


logger = logging.getLogger(__name__)


@dataclass
class AnalyticsContext:
    """Everything one aggregation call needs; owned by the caller.

    The cache is scoped to this context object. Callers that want reuse
    across several computations in the same request pass the same context.
    """

    store_id: str
    gateway: StoreGateway
    now: datetime = field(default_factory=utc_now)
    max_workers: int = 6
    low_stock_threshold: int = 5
    lead_time_days: int = 14
    safety_factor: float = 1.5
    cache: dict[str, Any] = field(default_factory=dict)

    def cached(self, key: str, compute: Callable[[], Any]) -> Any:
        if key not in self.cache:
            self.cache[key] = compute()
        return self.cache[key]


@dataclass
class Read:
    """One independent read and the value to use if it fails."""

    fn: Callable[[], Any]
    default: Any = None


@dataclass
class ReadResults:
    values: dict[str, Any]
    degraded: list[str] = field(default_factory=list)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]


def gather_reads(reads: dict[str, Read], *, max_workers: int = 6) -> ReadResults:
    """Run all reads concurrently and join every one before returning."""
    if not reads:
        return ReadResults(values={})

    values: dict[str, Any] = {}
    degraded: list[str] = []
    workers = max(1, min(max_workers, len(reads)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sf-read") as pool:
        futures = {name: pool.submit(read.fn) for name, read in reads.items()}
        for name, future in futures.items():
            try:
                values[name] = future.result()
            except Exception as e:  # one failed read degrades only its own value
                logger.warning("Analytics read '%s' failed, using default: %s", name, e)
                values[name] = _fresh_default(reads[name].default)
                degraded.append(name)
    return ReadResults(values=values, degraded=degraded)


def _fresh_default(default: Any) -> Any:
    if isinstance(default, (list, dict, set)):
        return type(default)()
    return default
