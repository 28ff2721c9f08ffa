"""Wait for all instances of an application to disappear.

Uses list-then-watch: the initial list records the resourceVersion it was
read at and the watch resumes from exactly that point, so a deletion that
lands between the two calls is still delivered as an event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

import httpx

from podagent.api.errors import ListError, TerminationCancelledError, WatchError
from podagent.infra import WatchEventType
from podagent.logging_schema import LogEvent
from podagent.metrics import (
    AGENT_KUBE_ERRORS,
    AGENT_WATCH_DURATION,
    AGENT_WATCH_RESULTS,
    AGENT_WATCHES_ACTIVE,
)
from podagent.runtimes.kubernetes.listing import list_app_pods

if TYPE_CHECKING:
    from podagent.infra import Pod, PodAPI, WatchEvent
    from podagent.runtimes.kubernetes.labels import InstanceLabels

logger = logging.getLogger(__name__)


def _pod_key(pod: Pod) -> str:
    return pod.uid or f"{pod.namespace}/{pod.name}"


async def _read_next(events: AsyncIterator[WatchEvent]) -> WatchEvent | None:
    """Next watch event, or None once the server closes the stream."""
    try:
        return await anext(events)
    except StopAsyncIteration:
        return None


class TerminationWatcher:
    """Blocks until no pod of an application remains in the cluster.

    Every call owns its own tracked set and its own watch stream; nothing is
    shared between concurrent calls except the read-only HTTP client.
    """

    def __init__(self, labels: InstanceLabels, pods: PodAPI) -> None:
        self._labels = labels
        self._pods = pods

    async def await_termination(
        self,
        namespace: str,
        app_guid: str,
        *,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Wait until zero pods match the application in the namespace.

        Args:
            namespace: Namespace holding the application's pods.
            app_guid: Application GUID label value.
            cancel: Set by the caller to abandon the wait.
            timeout: Deadline in seconds; None waits indefinitely.

        Returns:
            True once no matching pod remains. Returns immediately, without
            opening a watch, when none exist at call time.

        Raises:
            TerminationCancelledError: cancel was set or the deadline passed
                before the pods were gone.
            ListError: The initial pod list failed.
            WatchError: The watch stream failed or ended early.
        """
        if cancel is None:
            cancel = asyncio.Event()
        if cancel.is_set():
            AGENT_WATCH_RESULTS.labels(result="cancelled").inc()
            raise TerminationCancelledError(
                f"Termination wait for app {app_guid} cancelled before it started"
            )

        result = "cancelled"
        started = time.monotonic()
        AGENT_WATCHES_ACTIVE.inc()
        try:
            async with asyncio.timeout(timeout):
                await self._wait_until_empty(namespace, app_guid, cancel)
            result = "terminated"
            return True
        except TimeoutError as e:
            logger.info(
                "Termination wait deadline exceeded",
                extra={
                    "event": LogEvent.WATCH_CANCELLED,
                    "namespace": namespace,
                    "app_guid": app_guid,
                    "timeout": timeout,
                },
            )
            raise TerminationCancelledError(
                f"Instances of app {app_guid} still present after {timeout}s"
            ) from e
        except ListError:
            result = "list_error"
            raise
        except WatchError:
            result = "watch_error"
            raise
        finally:
            AGENT_WATCHES_ACTIVE.dec()
            AGENT_WATCH_DURATION.observe(time.monotonic() - started)
            AGENT_WATCH_RESULTS.labels(result=result).inc()

    async def _wait_until_empty(
        self,
        namespace: str,
        app_guid: str,
        cancel: asyncio.Event,
    ) -> None:
        pod_list = await list_app_pods(self._pods, self._labels, namespace, app_guid)
        tracked = {_pod_key(pod) for pod in pod_list.items}
        if not tracked:
            logger.info(
                "No instances present",
                extra={
                    "event": LogEvent.TERMINATION_OBSERVED,
                    "namespace": namespace,
                    "app_guid": app_guid,
                },
            )
            return

        logger.info(
            "Watching for instance termination",
            extra={
                "event": LogEvent.WATCH_STARTED,
                "namespace": namespace,
                "app_guid": app_guid,
                "remaining": len(tracked),
                "resource_version": pod_list.resource_version,
            },
        )

        events = self._pods.watch(
            namespace,
            self._labels.app_selector(app_guid),
            pod_list.resource_version,
        )
        try:
            while tracked:
                event = await self._next_event(events, cancel, app_guid)
                self._apply(event, tracked, namespace, app_guid)
        finally:
            await events.aclose()

        logger.info(
            "All instances terminated",
            extra={
                "event": LogEvent.TERMINATION_OBSERVED,
                "namespace": namespace,
                "app_guid": app_guid,
            },
        )

    async def _next_event(
        self,
        events: AsyncIterator[WatchEvent],
        cancel: asyncio.Event,
        app_guid: str,
    ) -> WatchEvent:
        """Race the next watch event against the cancel signal."""
        next_event = asyncio.create_task(_read_next(events))
        cancelled = asyncio.create_task(cancel.wait())
        try:
            await asyncio.wait(
                {next_event, cancelled},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (next_event, cancelled):
                if not task.done():
                    task.cancel()
            # The generator must be idle before the caller can aclose() it
            await asyncio.gather(next_event, cancelled, return_exceptions=True)

        if cancel.is_set():
            logger.info(
                "Termination wait cancelled",
                extra={"event": LogEvent.WATCH_CANCELLED, "app_guid": app_guid},
            )
            raise TerminationCancelledError(
                f"Termination wait for app {app_guid} cancelled"
            )

        try:
            event = next_event.result()
        except httpx.HTTPStatusError as e:
            self._watch_failed("api_error", app_guid, e)
            raise WatchError(
                f"Watch for app {app_guid} rejected: "
                f"API server returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            self._watch_failed("connection", app_guid, e)
            raise WatchError(f"Watch for app {app_guid} failed: {e}") from e
        except (KeyError, ValueError) as e:
            self._watch_failed("api_error", app_guid, e)
            raise WatchError(f"Malformed watch event for app {app_guid}") from e

        if event is None:
            self._watch_failed("connection", app_guid, None)
            raise WatchError(
                f"Watch for app {app_guid} closed before instances terminated"
            )
        return event

    def _apply(
        self,
        event: WatchEvent,
        tracked: set[str],
        namespace: str,
        app_guid: str,
    ) -> None:
        if event.type == WatchEventType.ERROR:
            self._watch_failed("api_error", app_guid, None)
            raise WatchError(
                f"Watch for app {app_guid} failed: "
                f"{event.status.get('message', 'unknown error')} "
                f"(code {event.status.get('code', 'unknown')})"
            )

        if event.type == WatchEventType.BOOKMARK or event.pod is None:
            return

        key = _pod_key(event.pod)
        if event.type == WatchEventType.DELETED:
            if key in tracked:
                tracked.discard(key)
                logger.info(
                    "Instance deleted",
                    extra={
                        "event": LogEvent.INSTANCE_DELETED,
                        "namespace": namespace,
                        "app_guid": app_guid,
                        "pod": event.pod.name,
                        "remaining": len(tracked),
                    },
                )
            return

        # ADDED / MODIFIED: any live matching pod blocks termination
        if key not in tracked:
            tracked.add(key)
            logger.info(
                "Instance appeared while waiting",
                extra={
                    "event": LogEvent.INSTANCE_APPEARED,
                    "namespace": namespace,
                    "app_guid": app_guid,
                    "pod": event.pod.name,
                    "remaining": len(tracked),
                },
            )

    @staticmethod
    def _watch_failed(error_type: str, app_guid: str, error: Exception | None) -> None:
        AGENT_KUBE_ERRORS.labels(operation="watch", error_type=error_type).inc()
        logger.warning(
            "Instance watch failed",
            extra={
                "event": LogEvent.WATCH_FAILED,
                "app_guid": app_guid,
                "error": str(error) if error else None,
            },
        )
