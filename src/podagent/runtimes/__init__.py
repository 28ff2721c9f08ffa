"""Runtime implementations for podagent."""

from podagent.runtimes.kubernetes import KubernetesRuntime

__all__ = ["KubernetesRuntime"]
