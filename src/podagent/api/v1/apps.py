"""Application instance endpoints.

- Process stats: one record per desired instance
- Termination: blocks until every pod of the app is gone
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from podagent.api.dependencies import get_runtime
from podagent.runtimes import KubernetesRuntime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v3/apps", tags=["apps"])


# =============================================================================
# Schemas
# =============================================================================


class ProcessStatsResource(BaseModel):
    """State of one process instance."""

    type: str
    index: int
    state: str


class ProcessStatsResponse(BaseModel):
    """Process stats response."""

    resources: list[ProcessStatsResource]


class TerminationResponse(BaseModel):
    """Termination wait response."""

    app_guid: str
    terminated: bool


# =============================================================================
# Helpers
# =============================================================================


async def _cancel_on_disconnect(request: Request, cancel: asyncio.Event) -> None:
    """Set cancel once the client goes away."""
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            cancel.set()
            return


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "/{app_guid}/processes/{process_type}/stats",
    response_model=ProcessStatsResponse,
)
async def get_process_stats(
    app_guid: str,
    process_type: str,
    namespace: str = Query(..., min_length=1),
    instances: int = Query(..., ge=0),
    runtime: KubernetesRuntime = Depends(get_runtime),
) -> ProcessStatsResponse:
    """Report the state of each desired instance of a process."""
    records = await runtime.stats.fetch_stats(namespace, app_guid, process_type, instances)
    return ProcessStatsResponse(
        resources=[
            ProcessStatsResource(
                type=record.process_type,
                index=record.index,
                state=record.state.value,
            )
            for record in records
        ]
    )


@router.post("/{app_guid}/termination", response_model=TerminationResponse)
async def await_termination(
    request: Request,
    app_guid: str,
    namespace: str = Query(..., min_length=1),
    timeout: float | None = Query(default=None, gt=0),
    runtime: KubernetesRuntime = Depends(get_runtime),
) -> TerminationResponse:
    """Block until no instance of the app remains.

    A client disconnect cancels the wait.
    """
    cancel = asyncio.Event()
    disconnect = asyncio.create_task(_cancel_on_disconnect(request, cancel))
    try:
        terminated = await runtime.termination.await_termination(
            namespace, app_guid, cancel=cancel, timeout=timeout
        )
    finally:
        disconnect.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await disconnect
    return TerminationResponse(app_guid=app_guid, terminated=terminated)
