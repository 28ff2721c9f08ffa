"""Authentication middleware."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from podagent.api import dependencies
from podagent.api.errors import (
    AgentError,
    InvalidAuthError,
    NotAuthenticatedError,
    UnknownAuthError,
)
from podagent.logging_schema import LogEvent

logger = logging.getLogger(__name__)

UNAUTHENTICATED_PATHS = frozenset({"/", "/v3", "/health", "/metrics"})


def _error_response(error: AgentError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response().model_dump(),
    )


async def authentication_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Authenticate every request outside UNAUTHENTICATED_PATHS.

    Stores the parsed AuthInfo and resolved Identity on request.state.
    Exception handlers do not see errors raised here, so failures are
    rendered directly.
    """
    if request.url.path in UNAUTHENTICATED_PATHS:
        return await call_next(request)

    try:
        auth_info = dependencies.get_auth_parser().parse(
            request.headers.get("Authorization")
        )
    except (NotAuthenticatedError, InvalidAuthError) as e:
        return _error_response(e)
    except Exception:
        logger.exception(
            "Failed to parse auth info",
            extra={"event": LogEvent.AUTH_FAILED, "path": request.url.path},
        )
        return _error_response(UnknownAuthError())

    request.state.auth_info = auth_info

    try:
        identity = await dependencies.get_identity_provider().get_identity(auth_info)
    except InvalidAuthError as e:
        return _error_response(e)
    except Exception:
        logger.exception(
            "Failed to get identity",
            extra={"event": LogEvent.AUTH_FAILED, "path": request.url.path},
        )
        return _error_response(UnknownAuthError())

    request.state.identity = identity
    return await call_next(request)
