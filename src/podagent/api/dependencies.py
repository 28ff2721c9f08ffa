"""API dependencies for dependency injection."""

from podagent.auth import (
    AuthInfoParser,
    BearerAuthInfoParser,
    IdentityProvider,
    TokenReviewIdentityProvider,
)
from podagent.config import get_agent_config
from podagent.infra import TokenReviewAPI
from podagent.runtimes import KubernetesRuntime

# Singletons scoped to the application lifespan
_runtime: KubernetesRuntime | None = None
_identity_provider: IdentityProvider | None = None
_auth_parser: AuthInfoParser = BearerAuthInfoParser()


async def init_runtime() -> None:
    """Initialize runtime and identity provider.

    Must be called during app startup. Both share one Kubernetes client.
    """
    global _runtime, _identity_provider
    config = get_agent_config()
    _runtime = KubernetesRuntime(config)
    _identity_provider = TokenReviewIdentityProvider(
        TokenReviewAPI(_runtime.client), config.auth
    )


async def close_runtime() -> None:
    """Close runtime and release resources."""
    global _runtime, _identity_provider
    if _runtime:
        await _runtime.close()
        _runtime = None
    _identity_provider = None


def get_runtime() -> KubernetesRuntime:
    """Get runtime singleton.

    Raises:
        RuntimeError: If called before init_runtime().
    """
    if _runtime is None:
        raise RuntimeError("Runtime not initialized. Call init_runtime() first.")
    return _runtime


def get_auth_parser() -> AuthInfoParser:
    return _auth_parser


def get_identity_provider() -> IdentityProvider:
    """Get identity provider singleton.

    Raises:
        RuntimeError: If called before init_runtime().
    """
    if _identity_provider is None:
        raise RuntimeError("Identity provider not initialized. Call init_runtime() first.")
    return _identity_provider


def reset_runtime() -> None:
    """Reset singletons (for testing)."""
    global _runtime, _identity_provider
    _runtime = None
    _identity_provider = None
