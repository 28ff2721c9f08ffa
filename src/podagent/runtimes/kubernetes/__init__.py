"""Kubernetes runtime for podagent."""

from podagent.config import AgentConfig, get_agent_config
from podagent.infra import KubeClient, PodAPI
from podagent.runtimes.kubernetes.labels import InstanceLabels
from podagent.runtimes.kubernetes.state import InstanceState, derive_state
from podagent.runtimes.kubernetes.stats import InstanceAggregator, InstanceStatsRecord
from podagent.runtimes.kubernetes.termination import TerminationWatcher


class KubernetesRuntime:
    """Kubernetes runtime combining instance stats and termination watches.

    Both share one KubeClient, which the runtime owns and closes.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: KubeClient | None = None,
    ) -> None:
        self._config = config or get_agent_config()
        self._client = client or KubeClient(self._config.kube)
        self._labels = InstanceLabels(self._config.instance)

        pods = PodAPI(self._client)
        self.stats = InstanceAggregator(self._labels, pods)
        self.termination = TerminationWatcher(self._labels, pods)

    @property
    def client(self) -> KubeClient:
        return self._client

    async def close(self) -> None:
        """Release the HTTP client."""
        await self._client.close()


__all__ = [
    "KubernetesRuntime",
    "InstanceAggregator",
    "InstanceLabels",
    "InstanceState",
    "InstanceStatsRecord",
    "TerminationWatcher",
    "derive_state",
]
