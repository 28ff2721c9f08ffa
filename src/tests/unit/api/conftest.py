"""Fixtures for HTTP API tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from podagent.api import dependencies
from podagent.api.dependencies import get_runtime, reset_runtime
from podagent.auth import Identity, IdentityKind, IdentityProvider
from podagent.main import app


@pytest.fixture
def mock_runtime() -> MagicMock:
    """Create mock runtime."""
    runtime = MagicMock()
    runtime.stats = MagicMock()
    runtime.stats.fetch_stats = AsyncMock(return_value=[])
    runtime.termination = MagicMock()
    runtime.termination.await_termination = AsyncMock(return_value=True)
    return runtime


@pytest.fixture
def mock_identity_provider() -> AsyncMock:
    provider = AsyncMock(spec=IdentityProvider)
    provider.get_identity = AsyncMock(
        return_value=Identity(name="alice", kind=IdentityKind.USER)
    )
    return provider


@pytest.fixture
def client(mock_runtime: MagicMock, mock_identity_provider: AsyncMock) -> TestClient:
    """Create test client with mocked runtime and identity provider."""
    app.dependency_overrides[get_runtime] = lambda: mock_runtime

    with (
        patch.object(
            dependencies, "get_identity_provider", return_value=mock_identity_provider
        ),
        TestClient(app) as client,
    ):
        yield client

    app.dependency_overrides.clear()
    reset_runtime()
