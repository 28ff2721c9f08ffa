"""Instance lifecycle state derivation."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podagent.infra import Pod


class InstanceState(StrEnum):
    """Lifecycle state reported for a desired instance slot."""

    RUNNING = "RUNNING"
    STARTING = "STARTING"
    DOWN = "DOWN"


def derive_state(pod: Pod | None) -> InstanceState:
    """Classify a slot from the pod occupying it.

    Precedence:
    1. No pod -> DOWN
    2. Pod without any container status yet -> DOWN
    3. Any container both running and ready -> RUNNING
    4. Anything else -> STARTING

    Failed or Unknown phases with container statuses fall into STARTING;
    crash loops are not told apart from normal startup.
    """
    if pod is None:
        return InstanceState.DOWN

    if not pod.container_statuses:
        return InstanceState.DOWN

    if any(cs.running and cs.ready for cs in pod.container_statuses):
        return InstanceState.RUNNING

    return InstanceState.STARTING
