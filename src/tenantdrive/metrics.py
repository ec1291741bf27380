"""Prometheus metrics definitions for TenantDrive.

All custom metrics use the ``tenantdrive_`` prefix for namespace isolation.
Counters reset to zero on restart; Prometheus handles gaps via ``rate()``.

The module-level references stay ``None`` until ``init_metrics()`` runs, and
the ``record_*`` helpers are no-ops in that state, so library users that
never enable metrics register nothing in the global registry.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Workflow counter  (labels: operation, status)
# ---------------------------------------------------------------------------
operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Bulk operation counters
# ---------------------------------------------------------------------------
objects_copied_total: Counter | None = None
objects_deleted_total: Counter | None = None
listing_pages_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics (idempotent)."""
    global _initialized
    global operations_total, objects_copied_total, objects_deleted_total
    global listing_pages_total

    if _initialized:
        return

    operations_total = Counter(
        "tenantdrive_operations_total",
        "Total folder workflows by operation and outcome",
        ["operation", "status"],
    )

    objects_copied_total = Counter(
        "tenantdrive_objects_copied_total",
        "Total objects copied server-side by move and rename",
    )

    objects_deleted_total = Counter(
        "tenantdrive_objects_deleted_total",
        "Total objects removed by single and batch deletes",
    )

    listing_pages_total = Counter(
        "tenantdrive_listing_pages_total",
        "Total listing pages fetched from the object store",
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    if operations_total is not None:
        operations_total.labels(operation=operation, status=status).inc()


def record_copied(count: int = 1) -> None:
    if objects_copied_total is not None:
        objects_copied_total.inc(count)


def record_deleted(count: int = 1) -> None:
    if objects_deleted_total is not None:
        objects_deleted_total.inc(count)


def record_page() -> None:
    if listing_pages_total is not None:
        listing_pages_total.inc()
