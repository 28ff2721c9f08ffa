"""API v1 module."""

from podagent.api.v1.apps import router as apps_router
from podagent.api.v1.health import router as health_router
from podagent.api.v1.whoami import router as whoami_router

__all__ = [
    "apps_router",
    "health_router",
    "whoami_router",
]
