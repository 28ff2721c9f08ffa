"""Fixtures for podagent unit tests."""

import asyncio
from collections.abc import AsyncIterator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from podagent.config import InstanceConfig
from podagent.infra import (
    ContainerStatus,
    Pod,
    PodAPI,
    PodList,
    WatchEvent,
    WatchEventType,
)
from podagent.runtimes.kubernetes.labels import InstanceLabels

APP_GUID_LABEL = "workloads.cloudfoundry.org/app-guid"


class FakePodAPI:
    """In-memory PodAPI.

    list() returns a fixed snapshot. watch() yields whatever is pushed to
    `events`; push None to end the stream, or an exception to raise it.
    """

    def __init__(self, pods: list[Pod] | None = None, resource_version: str = "100") -> None:
        self.pods = list(pods or [])
        self.resource_version = resource_version
        self.list_error: Exception | None = None
        self.events: asyncio.Queue[WatchEvent | Exception | None] = asyncio.Queue()
        self.list_calls: list[tuple[str, str]] = []
        self.watch_calls: list[tuple[str, str, str]] = []
        self.watch_closed = False

    async def list(self, namespace: str, label_selector: str) -> PodList:
        self.list_calls.append((namespace, label_selector))
        if self.list_error is not None:
            raise self.list_error
        return PodList(items=list(self.pods), resource_version=self.resource_version)

    async def watch(
        self, namespace: str, label_selector: str, resource_version: str
    ) -> AsyncIterator[WatchEvent]:
        self.watch_calls.append((namespace, label_selector, resource_version))
        try:
            while True:
                item = await self.events.get()
                if item is None:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.watch_closed = True

    def push(self, event_type: WatchEventType, pod: Pod) -> None:
        self.events.put_nowait(WatchEvent(type=event_type, pod=pod))


@pytest.fixture
def instance_config() -> InstanceConfig:
    return InstanceConfig(
        app_guid_label=APP_GUID_LABEL,
        index_env_var="CF_INSTANCE_INDEX",
    )


@pytest.fixture
def labels(instance_config: InstanceConfig) -> InstanceLabels:
    return InstanceLabels(instance_config)


@pytest.fixture
def make_pod() -> Callable[..., Pod]:
    """Factory for pods of the-app-guid in namespace ns-1."""

    def _make(
        name: str,
        index: str | None = "0",
        *,
        app_guid: str = "the-app-guid",
        phase: str = "Running",
        statuses: list[ContainerStatus] | None = None,
    ) -> Pod:
        env = {"CF_INSTANCE_INDEX": index} if index is not None else {}
        return Pod(
            name=name,
            namespace="ns-1",
            uid=f"uid-{name}",
            labels={APP_GUID_LABEL: app_guid},
            phase=phase,
            env=env,
            container_statuses=statuses or [],
        )

    return _make


@pytest.fixture
def running_ready() -> list[ContainerStatus]:
    return [ContainerStatus(name="opi", running=True, ready=True)]


@pytest.fixture
def mock_pod_api() -> AsyncMock:
    """Mock PodAPI for testing."""
    api = AsyncMock(spec=PodAPI)
    api.list = AsyncMock(return_value=PodList(items=[], resource_version="1"))
    api.watch = MagicMock()
    return api


@pytest.fixture
def fake_pod_api() -> FakePodAPI:
    return FakePodAPI()


@pytest.fixture
def fake_pod_api_factory() -> type[FakePodAPI]:
    return FakePodAPI
