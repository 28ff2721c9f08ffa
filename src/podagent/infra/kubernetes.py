"""Kubernetes API client for podagent.

Provides async read access to pods (list and watch) and the TokenReview API.
Talks to the API server over plain REST using httpx.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel

from podagent.config import KubernetesConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================


class ContainerStatus(BaseModel):
    """Run state of one container reported in pod status."""

    name: str = ""
    ready: bool = False
    running: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, data: dict) -> ContainerStatus:
        state = data.get("state") or {}
        return cls(
            name=data.get("name", ""),
            ready=bool(data.get("ready", False)),
            running=state.get("running") is not None,
        )


class Pod(BaseModel):
    """The subset of a Kubernetes Pod that instance tracking needs."""

    name: str
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = {}
    phase: str = "Unknown"
    env: dict[str, str] = {}
    container_statuses: list[ContainerStatus] = []

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, data: dict) -> Pod:
        """Build from the API JSON representation."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}

        # Literal env values only; valueFrom references are not resolved
        env: dict[str, str] = {}
        for container in spec.get("containers") or []:
            for var in container.get("env") or []:
                if "value" in var and var.get("name") not in env:
                    env[var["name"]] = var["value"]

        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            uid=metadata.get("uid", ""),
            labels=metadata.get("labels") or {},
            phase=status.get("phase", "Unknown"),
            env=env,
            container_statuses=[
                ContainerStatus.from_api(cs)
                for cs in status.get("containerStatuses") or []
            ],
        )


class PodList(BaseModel):
    """Result of a pod list call, with the snapshot it was read at."""

    items: list[Pod]
    resource_version: str

    @classmethod
    def from_api(cls, data: dict) -> PodList:
        metadata = data.get("metadata") or {}
        return cls(
            items=[Pod.from_api(item) for item in data.get("items") or []],
            resource_version=metadata.get("resourceVersion", ""),
        )


class WatchEventType(str, Enum):
    """Watch event types emitted by the API server."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


class WatchEvent(BaseModel):
    """One line of a watch stream.

    pod is set for ADDED/MODIFIED/DELETED/BOOKMARK. status carries the
    Status object of an ERROR event.
    """

    type: WatchEventType
    pod: Pod | None = None
    status: dict[str, Any] = {}

    @classmethod
    def from_api(cls, data: dict) -> WatchEvent:
        event_type = WatchEventType(data["type"])
        obj = data.get("object") or {}
        if event_type == WatchEventType.ERROR:
            return cls(type=event_type, status=obj)
        return cls(type=event_type, pod=Pod.from_api(obj))


# =============================================================================
# Kubernetes Client
# =============================================================================


class ServiceAccountAuth(httpx.Auth):
    """Bearer auth that re-reads the token file on every request.

    Projected service account tokens are rotated by the kubelet, so the file
    content can change while the agent runs. A static token, when configured,
    takes precedence.
    """

    def __init__(self, token: str, token_file: str) -> None:
        self._token = token
        self._token_file = Path(token_file)

    def current_token(self) -> str:
        if self._token:
            return self._token
        try:
            return self._token_file.read_text().strip()
        except FileNotFoundError:
            return ""

    def auth_flow(self, request: httpx.Request):
        token = self.current_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


class KubeClient:
    """Async Kubernetes API client.

    Owns a single httpx.AsyncClient shared by every caller. Created and
    closed by the owning service.
    """

    def __init__(
        self,
        config: KubernetesConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> KubernetesConfig:
        return self._config

    def _verify(self) -> bool | str:
        if not self._config.verify_ssl:
            return False
        if Path(self._config.ca_file).exists():
            return self._config.ca_file
        return True

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.api_server,
            headers={"Accept": "application/json"},
            auth=ServiceAccountAuth(self._config.token, self._config.token_file),
            verify=self._verify(),
            timeout=self._config.api_timeout,
            transport=self._transport,
        )

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


# =============================================================================
# Pod API
# =============================================================================


class PodAPI:
    """Read-only Pod API operations."""

    def __init__(self, client: KubeClient) -> None:
        self._kube = client

    async def list(self, namespace: str, label_selector: str) -> PodList:
        """List pods matching a label selector in one namespace."""
        client = await self._kube.get()
        resp = await client.get(
            f"/api/v1/namespaces/{namespace}/pods",
            params={"labelSelector": label_selector},
        )
        resp.raise_for_status()
        return PodList.from_api(resp.json())

    async def watch(
        self,
        namespace: str,
        label_selector: str,
        resource_version: str,
    ) -> AsyncIterator[WatchEvent]:
        """Stream pod changes that happened after resource_version.

        The stream has no read timeout and ends only when the server closes
        it or the caller closes the generator.
        """
        client = await self._kube.get()
        params = {
            "labelSelector": label_selector,
            "watch": "true",
            "allowWatchBookmarks": "true",
        }
        if resource_version:
            params["resourceVersion"] = resource_version

        async with client.stream(
            "GET",
            f"/api/v1/namespaces/{namespace}/pods",
            params=params,
            timeout=httpx.Timeout(self._kube.config.api_timeout, read=None),
        ) as resp:
            resp.raise_for_status()
            async for line in resp.aiter_lines():
                if not line.strip():
                    continue
                yield WatchEvent.from_api(json.loads(line))


# =============================================================================
# TokenReview API
# =============================================================================


class TokenReviewAPI:
    """authentication.k8s.io TokenReview operations."""

    def __init__(self, client: KubeClient) -> None:
        self._kube = client

    async def review(self, token: str) -> dict:
        """Submit a TokenReview and return its status block."""
        client = await self._kube.get()
        resp = await client.post(
            "/apis/authentication.k8s.io/v1/tokenreviews",
            json={
                "apiVersion": "authentication.k8s.io/v1",
                "kind": "TokenReview",
                "spec": {"token": token},
            },
        )
        resp.raise_for_status()
        return resp.json().get("status") or {}
