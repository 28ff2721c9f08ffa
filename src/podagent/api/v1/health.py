"""Health check and API root endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from podagent import __version__

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class RootResponse(BaseModel):
    """API root document."""

    name: str
    version: str
    links: dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.get("/", response_model=RootResponse)
async def root() -> RootResponse:
    return RootResponse(
        name="podagent",
        version=__version__,
        links={"v3": "/v3", "whoami": "/whoami"},
    )


@router.get("/v3", response_model=RootResponse)
async def v3_root() -> RootResponse:
    return RootResponse(
        name="podagent",
        version=__version__,
        links={
            "process_stats": "/v3/apps/{app_guid}/processes/{process_type}/stats",
            "termination": "/v3/apps/{app_guid}/termination",
        },
    )
