"""
Prometheus metrics for storage operations.

Provides counters and histograms for tracking:
- Operation counts and outcomes
- Operation latency
- Bytes written by put
- Entries skipped during list scans
"""

import time
from typing import Callable
from functools import wraps
from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
)

from objectfs.config.settings import get_settings

# Create a global registry
REGISTRY = CollectorRegistry()

# ========== Counters ==========

storage_operations_total = Counter(
    "storage_operations_total",
    "Total number of storage operations",
    ["operation", "status"],  # put/get/list/..., success/failure
    registry=REGISTRY,
)

storage_bytes_written_total = Counter(
    "storage_bytes_written_total",
    "Total number of bytes written by put",
    registry=REGISTRY,
)

storage_list_skipped_entries_total = Counter(
    "storage_list_skipped_entries_total",
    "Entries skipped during list scans because they could not be read",
    registry=REGISTRY,
)

# ========== Histograms ==========

storage_operation_duration_seconds = Histogram(
    "storage_operation_duration_seconds",
    "Time to complete a storage operation",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_storage_operation(operation: str):
    """
    Decorator to track storage operation count and latency.

    Skips recording when metrics are disabled in settings.

    Args:
        operation: Operation name (put/get/list/delete/...)
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not get_settings().metrics_enabled:
                return func(*args, **kwargs)

            start_time = time.time()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.time() - start_time
                storage_operation_duration_seconds.labels(
                    operation=operation).observe(duration)
                storage_operations_total.labels(
                    operation=operation, status=status).inc()

        return wrapper
    return decorator


def record_bytes_written(num_bytes: int) -> None:
    if get_settings().metrics_enabled:
        storage_bytes_written_total.inc(num_bytes)


def record_list_skip() -> None:
    if get_settings().metrics_enabled:
        storage_list_skipped_entries_total.inc()


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get content type for metrics response."""
    return CONTENT_TYPE_LATEST
