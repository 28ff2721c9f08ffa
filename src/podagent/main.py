"""podagent FastAPI application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from podagent import __version__
from podagent.api.dependencies import close_runtime, init_runtime
from podagent.api.errors import AgentError
from podagent.api.middleware import authentication_middleware
from podagent.api.v1 import apps_router, health_router, whoami_router
from podagent.config import get_agent_config
from podagent.logging import setup_logging
from podagent.logging_schema import LogEvent

# Import metrics to ensure they are registered
import podagent.metrics  # noqa: F401

_config = get_agent_config()
setup_logging(_config.logging)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "Starting podagent",
        extra={
            "event": LogEvent.APP_STARTED,
            "version": __version__,
            "api_server": _config.kube.api_server,
        },
    )
    await init_runtime()

    yield
    logger.info("Shutting down podagent", extra={"event": LogEvent.APP_STOPPED})
    await close_runtime()


app = FastAPI(
    title="podagent",
    description="Instance status and termination watch for Kubernetes workloads",
    version=__version__,
    lifespan=lifespan,
)

# Registered before CORS so CORS wraps it and preflight requests skip auth
app.middleware("http")(authentication_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AgentError)
async def agent_error_handler(request: Request, exc: AgentError) -> JSONResponse:
    """Handle AgentError exceptions."""
    logger.warning(
        "Agent error",
        extra={
            "event": LogEvent.AGENT_ERROR,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with logging."""
    logger.exception(
        "Unhandled exception",
        extra={
            "event": LogEvent.UNHANDLED_EXCEPTION,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(health_router)
app.include_router(whoami_router)
app.include_router(apps_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def main() -> None:
    """Run the agent server."""
    config = get_agent_config()
    uvicorn.run(
        "podagent.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
