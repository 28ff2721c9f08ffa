"""Prometheus metrics for podagent."""

from podagent.metrics.collector import (
    AGENT_INSTANCES_SKIPPED,
    AGENT_KUBE_ERRORS,
    AGENT_STATS_DURATION,
    AGENT_WATCH_DURATION,
    AGENT_WATCH_RESULTS,
    AGENT_WATCHES_ACTIVE,
)

__all__ = [
    "AGENT_INSTANCES_SKIPPED",
    "AGENT_KUBE_ERRORS",
    "AGENT_STATS_DURATION",
    "AGENT_WATCH_DURATION",
    "AGENT_WATCH_RESULTS",
    "AGENT_WATCHES_ACTIVE",
]
