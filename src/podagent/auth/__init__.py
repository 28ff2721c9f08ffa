"""Request authentication and identity resolution."""

from podagent.auth.identity import (
    Identity,
    IdentityKind,
    IdentityProvider,
    TokenReviewIdentityProvider,
)
from podagent.auth.info import AuthInfo, AuthInfoParser, BearerAuthInfoParser

__all__ = [
    "AuthInfo",
    "AuthInfoParser",
    "BearerAuthInfoParser",
    "Identity",
    "IdentityKind",
    "IdentityProvider",
    "TokenReviewIdentityProvider",
]
