"""Pod listing shared by stats aggregation and termination watches."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from podagent.api.errors import ListError
from podagent.logging_schema import LogEvent
from podagent.metrics import AGENT_KUBE_ERRORS

if TYPE_CHECKING:
    from podagent.infra import PodAPI, PodList
    from podagent.runtimes.kubernetes.labels import InstanceLabels

logger = logging.getLogger(__name__)


async def list_app_pods(
    pods: PodAPI,
    labels: InstanceLabels,
    namespace: str,
    app_guid: str,
) -> PodList:
    """List the pods of one application as a single snapshot.

    Raises:
        ListError: The API server rejected the call, could not be reached,
            or returned a body that is not a pod list.
    """
    try:
        return await pods.list(namespace, labels.app_selector(app_guid))
    except httpx.HTTPStatusError as e:
        AGENT_KUBE_ERRORS.labels(operation="list", error_type="api_error").inc()
        logger.warning(
            "Pod list rejected",
            extra={
                "event": LogEvent.LIST_FAILED,
                "namespace": namespace,
                "app_guid": app_guid,
                "status_code": e.response.status_code,
            },
        )
        raise ListError(
            f"Failed to list instances of app {app_guid}: "
            f"API server returned {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        AGENT_KUBE_ERRORS.labels(operation="list", error_type="connection").inc()
        logger.warning(
            "Pod list failed",
            extra={
                "event": LogEvent.LIST_FAILED,
                "namespace": namespace,
                "app_guid": app_guid,
                "error": str(e),
            },
        )
        raise ListError(f"Failed to list instances of app {app_guid}: {e}") from e
    except (KeyError, ValueError) as e:
        AGENT_KUBE_ERRORS.labels(operation="list", error_type="api_error").inc()
        raise ListError(f"Malformed pod list for app {app_guid}") from e
