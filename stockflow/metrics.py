"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change without touching call sites.

Metrics:
- stock_movements_total{change_type}         Accepted stock movements
- stock_movements_rejected_total{reason}     Movements refused before commit
- stock_movement_conflicts_total             Optimistic version clashes (each retry)
- stock_movement_latency_seconds             Wall time of an accepted movement
- inventory_threshold_updates_total          Low-stock threshold edits
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

logger = logging.getLogger("metrics")

_STOCK_MOVEMENTS = Counter(
    "stock_movements_total", "Stock movements committed", ["change_type"]
)
_STOCK_MOVEMENTS_REJECTED = Counter(
    "stock_movements_rejected_total", "Stock movements rejected before commit", ["reason"]
)
_STOCK_MOVEMENT_CONFLICTS = Counter(
    "stock_movement_conflicts_total", "Concurrent snapshot version conflicts"
)
_STOCK_MOVEMENT_LATENCY = Histogram(
    "stock_movement_latency_seconds",
    "Latency of an accepted stock movement including retries",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5),
)
_THRESHOLD_UPDATES = Counter(
    "inventory_threshold_updates_total", "Low-stock threshold updates"
)


def stock_movement_recorded(change_type: str):
    _STOCK_MOVEMENTS.labels(change_type=change_type).inc()


def stock_movement_rejected(reason: str):
    _STOCK_MOVEMENTS_REJECTED.labels(reason=reason).inc()
    logger.debug("metric stock_movements_rejected_total{reason=%s} += 1", reason)


def stock_movement_conflict():
    _STOCK_MOVEMENT_CONFLICTS.inc()


def threshold_updated():
    _THRESHOLD_UPDATES.inc()


@contextmanager
def time_stock_movement() -> Iterator[None]:
    """Observe movement latency; only successful blocks are recorded."""
    start = time.perf_counter()
    yield
    _STOCK_MOVEMENT_LATENCY.observe(time.perf_counter() - start)
