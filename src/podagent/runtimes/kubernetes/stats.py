"""Per-instance stats aggregation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from podagent.logging_schema import LogEvent
from podagent.metrics import AGENT_INSTANCES_SKIPPED, AGENT_STATS_DURATION
from podagent.runtimes.kubernetes.listing import list_app_pods
from podagent.runtimes.kubernetes.state import InstanceState, derive_state

if TYPE_CHECKING:
    from podagent.infra import Pod, PodAPI
    from podagent.runtimes.kubernetes.labels import InstanceLabels

logger = logging.getLogger(__name__)


class InstanceStatsRecord(BaseModel):
    """State of one desired instance slot."""

    process_type: str
    index: int
    state: InstanceState

    model_config = {"frozen": True}


class InstanceAggregator:
    """Builds one stats record per desired instance of a process."""

    def __init__(self, labels: InstanceLabels, pods: PodAPI) -> None:
        self._labels = labels
        self._pods = pods

    async def fetch_stats(
        self,
        namespace: str,
        app_guid: str,
        process_type: str,
        desired_count: int,
    ) -> list[InstanceStatsRecord]:
        """Report the state of instances 0..desired_count-1.

        Always returns exactly desired_count records ordered by index. Slots
        with no pod are DOWN. Pods declaring an index outside the desired
        range, or no parsable index, are ignored. When two pods claim the
        same index the one listed last wins.

        Raises:
            ValueError: desired_count is negative.
            ListError: The pod list could not be read.
        """
        if desired_count < 0:
            raise ValueError(f"desired_count must be >= 0, got {desired_count}")

        with AGENT_STATS_DURATION.time():
            pod_list = await list_app_pods(self._pods, self._labels, namespace, app_guid)
            by_index = self._index_pods(pod_list.items, desired_count)

            records = [
                InstanceStatsRecord(
                    process_type=process_type,
                    index=index,
                    state=derive_state(by_index.get(index)),
                )
                for index in range(desired_count)
            ]

        logger.debug(
            "Fetched instance stats",
            extra={
                "event": LogEvent.STATS_FETCHED,
                "namespace": namespace,
                "app_guid": app_guid,
                "process_type": process_type,
                "desired": desired_count,
                "discovered": len(pod_list.items),
            },
        )
        return records

    def _index_pods(self, pods: list[Pod], desired_count: int) -> dict[int, Pod]:
        by_index: dict[int, Pod] = {}
        for pod in pods:
            index = self._labels.instance_index(pod)
            if index is None:
                self._skip(pod, "invalid_index")
                continue
            if index >= desired_count:
                self._skip(pod, "out_of_range")
                continue
            by_index[index] = pod
        return by_index

    @staticmethod
    def _skip(pod: Pod, reason: str) -> None:
        AGENT_INSTANCES_SKIPPED.labels(reason=reason).inc()
        logger.debug(
            "Ignoring pod",
            extra={
                "event": LogEvent.INSTANCE_SKIPPED,
                "pod": pod.name,
                "namespace": pod.namespace,
                "reason": reason,
            },
        )
