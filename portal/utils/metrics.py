"""
Centralized Prometheus metrics.

All application metrics are defined here to prevent duplication
and ensure consistent labeling across modules.
"""

from prometheus_client import Counter, Histogram


# ── Content Lifecycle Metrics ─────────────────────────────────────────────────

content_created = Counter(
    "content_created_total",
    "Content items created",
    ["kind", "status"]
)

content_transitions = Counter(
    "content_transitions_total",
    "Approval status transitions (approve, reject, resubmit)",
    ["kind", "status"]
)

content_deleted = Counter(
    "content_deleted_total",
    "Content items deleted",
    ["kind"]
)


# ── Listing Metrics ───────────────────────────────────────────────────────────

content_list_latency = Histogram(
    "content_list_latency_seconds",
    "Content listing query latency",
    ["kind"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)
