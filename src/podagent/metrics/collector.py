"""Prometheus metrics definitions for podagent.

Tracks the two read paths against the cluster:
- Instance stats (pod list + state derivation)
- Termination watches (list + long-lived watch)
"""

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================
# A single pod list is usually fast (10ms ~ 5s)
_BUCKETS_FAST = (
    0.01, 0.025, 0.05, 0.1, 0.25,
    0.5, 1, 2.5, 5,
)  # 9 buckets

# Termination waits last as long as pod graceful shutdown (1s ~ 10min)
_BUCKETS_WAIT = (
    1, 2, 5, 10, 30,
    60, 120, 300, 600,
)  # 9 buckets

# =============================================================================
# Kubernetes API Metrics
# =============================================================================

AGENT_KUBE_ERRORS = Counter(
    "podagent_kube_errors_total",
    "Total Kubernetes API errors",
    ["operation", "error_type"],  # operation: list, watch, token_review
)

# =============================================================================
# Instance Stats Metrics
# =============================================================================

AGENT_STATS_DURATION = Histogram(
    "podagent_stats_duration_seconds",
    "Duration of instance stats aggregation",
    buckets=_BUCKETS_FAST,
)

AGENT_INSTANCES_SKIPPED = Counter(
    "podagent_instances_skipped_total",
    "Pods ignored during aggregation",
    ["reason"],  # invalid_index, out_of_range
)

# =============================================================================
# Termination Watch Metrics
# =============================================================================

AGENT_WATCHES_ACTIVE = Gauge(
    "podagent_termination_watches_active",
    "Number of termination watches currently waiting",
)

AGENT_WATCH_DURATION = Histogram(
    "podagent_termination_watch_duration_seconds",
    "Duration of termination watches",
    buckets=_BUCKETS_WAIT,
)

AGENT_WATCH_RESULTS = Counter(
    "podagent_termination_watch_results_total",
    "Termination watch outcomes",
    ["result"],  # terminated, cancelled, watch_error, list_error
)


# =============================================================================
# Metric Initialization
# =============================================================================

def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    for op in ["list", "watch", "token_review"]:
        AGENT_KUBE_ERRORS.labels(operation=op, error_type="api_error")
        AGENT_KUBE_ERRORS.labels(operation=op, error_type="connection")

    for reason in ["invalid_index", "out_of_range"]:
        AGENT_INSTANCES_SKIPPED.labels(reason=reason)

    for result in ["terminated", "cancelled", "watch_error", "list_error"]:
        AGENT_WATCH_RESULTS.labels(result=result)


_init_metrics()
