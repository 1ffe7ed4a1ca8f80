"""Prometheus metrics for the flat-file store.

Metric Types:
    Counters (always increase):
        - flatsocial_store_operations_total: Store operations by name and outcome
        - flatsocial_malformed_records_total: Lines skipped during scans, by file
        - flatsocial_ids_allocated_total: Identifiers handed out by the ledger
        - flatsocial_ledger_persist_failures_total: Failed ledger rewrites

    Histograms (track distributions):
        - flatsocial_store_operation_duration_seconds: Store operation latency

Usage:
    ```python
    from flatsocial.metrics import track_operation

    with track_operation("add_post"):
        ...
    ```

References:
    - Prometheus Python Client: https://github.com/prometheus/client_python
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from flatsocial.config import settings
from flatsocial.logging import logger

# Custom registry so only store metrics are exported
registry = CollectorRegistry()

# Full scans of small files: sub-millisecond up to a second
STORE_LATENCY_BUCKETS = (
    0.0005,  # 0.5ms
    0.001,   # 1ms
    0.005,   # 5ms
    0.01,    # 10ms
    0.05,    # 50ms
    0.1,     # 100ms
    0.5,     # 500ms
    1.0,     # 1s
)


# ========== COUNTER METRICS ==========

store_operations_total = Counter(
    "flatsocial_store_operations_total",
    "Total number of store operations",
    labelnames=["operation", "status"],
    registry=registry,
)
"""Counter for store operations.

Labels:
    operation: Store method name (e.g., "create_user", "fetch_timeline")
    status: "success", "conflict", "not_found", "invalid" or "error"
"""

malformed_records_total = Counter(
    "flatsocial_malformed_records_total",
    "Lines skipped while scanning a flat file",
    labelnames=["file"],
    registry=registry,
)

ids_allocated_total = Counter(
    "flatsocial_ids_allocated_total",
    "Identifiers allocated from the counter ledger",
    labelnames=["space"],
    registry=registry,
)

ledger_persist_failures_total = Counter(
    "flatsocial_ledger_persist_failures_total",
    "Counter ledger rewrites that failed",
    registry=registry,
)


# ========== HISTOGRAM METRICS ==========

store_operation_duration_seconds = Histogram(
    "flatsocial_store_operation_duration_seconds",
    "Store operation latency in seconds",
    labelnames=["operation"],
    buckets=STORE_LATENCY_BUCKETS,
    registry=registry,
)


# ========== HELPER FUNCTIONS ==========


def _status_for(exc: BaseException) -> str:
    return getattr(exc, "metric_status", "error")


@contextmanager
def track_operation(operation: str) -> Iterator[None]:
    """Count and time one store operation.

    The outcome label is derived from the exception raised inside the block,
    if any; the exception itself is re-raised unchanged.

    Args:
        operation: Store method name used as the ``operation`` label
    """
    if not settings.metrics_enabled:
        yield
        return

    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception as exc:
        status = _status_for(exc)
        raise
    finally:
        store_operation_duration_seconds.labels(operation=operation).observe(
            time.perf_counter() - start
        )
        store_operations_total.labels(operation=operation, status=status).inc()


def record_malformed(file_name: str) -> None:
    """Count one skipped line in ``file_name``."""
    if settings.metrics_enabled:
        malformed_records_total.labels(file=file_name).inc()


def generate_metrics_output() -> bytes:
    """Generate Prometheus metrics output in text exposition format."""
    return generate_latest(registry)


def initialize_metrics() -> None:
    """Log the metrics configuration once at startup."""
    logger.debug(
        "Prometheus metrics initialized",
        metrics_enabled=settings.metrics_enabled,
        registry_type="custom",
    )


__all__ = [
    "registry",
    "store_operations_total",
    "malformed_records_total",
    "ids_allocated_total",
    "ledger_persist_failures_total",
    "store_operation_duration_seconds",
    "track_operation",
    "record_malformed",
    "generate_metrics_output",
    "initialize_metrics",
    "STORE_LATENCY_BUCKETS",
]
