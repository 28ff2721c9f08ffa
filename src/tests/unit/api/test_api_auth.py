"""Unit tests for authentication middleware, whoami and public endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from podagent import __version__
from podagent.api.errors import InvalidAuthError, UnknownAuthError
from podagent.auth import AuthInfo, Identity, IdentityKind

AUTH_HEADERS = {"Authorization": "Bearer valid-token"}


class TestPublicEndpoints:
    """Endpoints reachable without credentials."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}

    @pytest.mark.parametrize("path", ["/", "/v3"])
    def test_root_documents(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        assert response.json()["name"] == "podagent"
        assert response.json()["links"]

    def test_metrics(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "podagent_termination_watches_active" in response.text


class TestWhoAmI:
    def test_user(self, client: TestClient, mock_identity_provider: AsyncMock) -> None:
        response = client.get("/whoami", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"name": "alice", "kind": "User"}
        mock_identity_provider.get_identity.assert_called_once_with(
            AuthInfo(token="valid-token")
        )

    def test_service_account(
        self, client: TestClient, mock_identity_provider: AsyncMock
    ) -> None:
        mock_identity_provider.get_identity.return_value = Identity(
            name="korifi-api", kind=IdentityKind.SERVICE_ACCOUNT
        )

        response = client.get("/whoami", headers=AUTH_HEADERS)

        assert response.json() == {"name": "korifi-api", "kind": "ServiceAccount"}


class TestAuthenticationMiddleware:
    def test_missing_header(
        self, client: TestClient, mock_identity_provider: AsyncMock
    ) -> None:
        response = client.get("/whoami")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"
        mock_identity_provider.get_identity.assert_not_called()

    def test_unsupported_scheme(self, client: TestClient) -> None:
        response = client.get("/whoami", headers={"Authorization": "Basic Zm9vOmJhcg=="})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_AUTH"

    def test_rejected_token(
        self, client: TestClient, mock_identity_provider: AsyncMock
    ) -> None:
        mock_identity_provider.get_identity.side_effect = InvalidAuthError()

        response = client.get("/whoami", headers=AUTH_HEADERS)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_AUTH"

    def test_identity_lookup_failure(
        self, client: TestClient, mock_identity_provider: AsyncMock
    ) -> None:
        mock_identity_provider.get_identity.side_effect = UnknownAuthError(
            "TokenReview failed: connection refused"
        )

        response = client.get("/whoami", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "UNKNOWN_ERROR"

    def test_unexpected_failure(
        self, client: TestClient, mock_identity_provider: AsyncMock
    ) -> None:
        mock_identity_provider.get_identity.side_effect = RuntimeError("boom")

        response = client.get("/whoami", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "UNKNOWN_ERROR"
