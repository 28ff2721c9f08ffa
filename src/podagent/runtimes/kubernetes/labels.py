"""Labelling conventions for application instances."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podagent.config import InstanceConfig
    from podagent.infra import Pod


class InstanceLabels:
    """Centralized conventions mapping pods to application instances."""

    def __init__(self, config: InstanceConfig) -> None:
        self._app_guid_label = config.app_guid_label
        self._index_env_var = config.index_env_var

    @property
    def app_guid_label(self) -> str:
        return self._app_guid_label

    def app_selector(self, app_guid: str) -> str:
        return f"{self._app_guid_label}={app_guid}"

    def instance_index(self, pod: Pod) -> int | None:
        """Declared instance index, or None unless it is plain ASCII digits."""
        raw = (pod.env.get(self._index_env_var) or "").strip()
        if not (raw.isascii() and raw.isdigit()):
            return None
        return int(raw)
