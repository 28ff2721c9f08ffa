"""Caller identity resolution via Kubernetes TokenReview."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum

import httpx
from cachetools import TTLCache
from pydantic import BaseModel

from podagent.api.errors import InvalidAuthError, UnknownAuthError
from podagent.auth.info import AuthInfo
from podagent.config import AuthConfig
from podagent.infra import TokenReviewAPI
from podagent.logging_schema import LogEvent
from podagent.metrics import AGENT_KUBE_ERRORS

logger = logging.getLogger(__name__)

_SERVICE_ACCOUNT_PREFIX = "system:serviceaccount:"


class IdentityKind(StrEnum):
    USER = "User"
    SERVICE_ACCOUNT = "ServiceAccount"


class Identity(BaseModel):
    """Resolved caller."""

    name: str
    kind: IdentityKind

    model_config = {"frozen": True}

    @classmethod
    def from_username(cls, username: str) -> Identity:
        """Map a Kubernetes username to an Identity.

        Service accounts authenticate as system:serviceaccount:<ns>:<name>.
        """
        if username.startswith(_SERVICE_ACCOUNT_PREFIX):
            name = username[len(_SERVICE_ACCOUNT_PREFIX) :].rpartition(":")[2]
            return cls(name=name, kind=IdentityKind.SERVICE_ACCOUNT)
        return cls(name=username, kind=IdentityKind.USER)


class IdentityProvider(ABC):
    """Resolves AuthInfo into the identity it belongs to."""

    @abstractmethod
    async def get_identity(self, auth_info: AuthInfo) -> Identity:
        """Resolve the caller.

        Raises:
            InvalidAuthError: The cluster does not accept the credentials.
            UnknownAuthError: The cluster could not be asked.
        """
        ...


class TokenReviewIdentityProvider(IdentityProvider):
    """Asks the API server who a bearer token belongs to.

    Successful lookups are cached per token for identity_cache_ttl seconds.
    Rejections are not cached.
    """

    def __init__(self, api: TokenReviewAPI, config: AuthConfig) -> None:
        self._api = api
        self._cache: TTLCache[str, Identity] = TTLCache(
            maxsize=config.identity_cache_size, ttl=config.identity_cache_ttl
        )

    async def get_identity(self, auth_info: AuthInfo) -> Identity:
        cached = self._cache.get(auth_info.token)
        if cached is not None:
            return cached

        try:
            status = await self._api.review(auth_info.token)
        except httpx.HTTPStatusError as e:
            AGENT_KUBE_ERRORS.labels(operation="token_review", error_type="api_error").inc()
            raise UnknownAuthError(
                f"TokenReview rejected: API server returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            AGENT_KUBE_ERRORS.labels(operation="token_review", error_type="connection").inc()
            raise UnknownAuthError(f"TokenReview failed: {e}") from e

        if not status.get("authenticated"):
            logger.info(
                "Token not authenticated",
                extra={"event": LogEvent.AUTH_FAILED, "reason": status.get("error", "")},
            )
            raise InvalidAuthError()

        username = (status.get("user") or {}).get("username", "")
        if not username:
            raise InvalidAuthError("Token review returned no username")

        identity = Identity.from_username(username)
        self._cache[auth_info.token] = identity
        logger.debug(
            "Resolved identity",
            extra={
                "event": LogEvent.IDENTITY_RESOLVED,
                "identity": identity.name,
                "kind": identity.kind.value,
            },
        )
        return identity
