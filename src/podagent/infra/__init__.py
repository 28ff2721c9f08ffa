"""Agent infrastructure layer."""

from podagent.infra.kubernetes import (
    ContainerStatus,
    KubeClient,
    Pod,
    PodAPI,
    PodList,
    TokenReviewAPI,
    WatchEvent,
    WatchEventType,
)

__all__ = [
    "ContainerStatus",
    "KubeClient",
    "Pod",
    "PodAPI",
    "PodList",
    "TokenReviewAPI",
    "WatchEvent",
    "WatchEventType",
]
