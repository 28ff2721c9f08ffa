"""Unit tests for application instance endpoints."""

import asyncio
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from podagent.api.errors import ListError, TerminationCancelledError, WatchError
from podagent.api.v1.apps import _cancel_on_disconnect
from podagent.runtimes.kubernetes import InstanceState, InstanceStatsRecord

AUTH_HEADERS = {"Authorization": "Bearer valid-token"}
STATS_URL = "/v3/apps/the-app-guid/processes/web/stats"
TERMINATION_URL = "/v3/apps/the-app-guid/termination"


class TestProcessStatsAPI:
    """Tests for the process stats endpoint."""

    def test_returns_one_resource_per_instance(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        mock_runtime.stats.fetch_stats.return_value = [
            InstanceStatsRecord(process_type="web", index=0, state=InstanceState.RUNNING),
            InstanceStatsRecord(process_type="web", index=1, state=InstanceState.DOWN),
        ]

        response = client.get(
            STATS_URL,
            params={"namespace": "ns-1", "instances": 2},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {
            "resources": [
                {"type": "web", "index": 0, "state": "RUNNING"},
                {"type": "web", "index": 1, "state": "DOWN"},
            ]
        }
        mock_runtime.stats.fetch_stats.assert_called_once_with(
            "ns-1", "the-app-guid", "web", 2
        )

    def test_zero_instances(self, client: TestClient, mock_runtime: MagicMock) -> None:
        response = client.get(
            STATS_URL,
            params={"namespace": "ns-1", "instances": 0},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"resources": []}

    def test_negative_instances_rejected(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        response = client.get(
            STATS_URL,
            params={"namespace": "ns-1", "instances": -1},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422
        mock_runtime.stats.fetch_stats.assert_not_called()

    def test_namespace_required(self, client: TestClient) -> None:
        response = client.get(STATS_URL, params={"instances": 1}, headers=AUTH_HEADERS)

        assert response.status_code == 422

    def test_list_error_maps_to_502(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        mock_runtime.stats.fetch_stats.side_effect = ListError(
            "Failed to list pods: API server returned 403"
        )

        response = client.get(
            STATS_URL,
            params={"namespace": "ns-1", "instances": 1},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "LIST_FAILED"

    def test_requires_authentication(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        response = client.get(STATS_URL, params={"namespace": "ns-1", "instances": 1})

        assert response.status_code == 401
        mock_runtime.stats.fetch_stats.assert_not_called()


class TestTerminationAPI:
    """Tests for the termination endpoint."""

    def test_terminated(self, client: TestClient, mock_runtime: MagicMock) -> None:
        response = client.post(
            TERMINATION_URL,
            params={"namespace": "ns-1", "timeout": 5},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"app_guid": "the-app-guid", "terminated": True}

        call = mock_runtime.termination.await_termination.call_args
        assert call.args == ("ns-1", "the-app-guid")
        assert call.kwargs["timeout"] == 5
        assert isinstance(call.kwargs["cancel"], asyncio.Event)

    def test_timeout_is_optional(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        response = client.post(
            TERMINATION_URL, params={"namespace": "ns-1"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 200
        assert mock_runtime.termination.await_termination.call_args.kwargs["timeout"] is None

    def test_non_positive_timeout_rejected(self, client: TestClient) -> None:
        response = client.post(
            TERMINATION_URL,
            params={"namespace": "ns-1", "timeout": 0},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422

    def test_cancelled_maps_to_408(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        mock_runtime.termination.await_termination.side_effect = (
            TerminationCancelledError("Instances of app the-app-guid still present after 5s")
        )

        response = client.post(
            TERMINATION_URL,
            params={"namespace": "ns-1", "timeout": 5},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 408
        assert response.json()["error"]["code"] == "TERMINATION_CANCELLED"

    def test_watch_error_maps_to_502(
        self, client: TestClient, mock_runtime: MagicMock
    ) -> None:
        mock_runtime.termination.await_termination.side_effect = WatchError()

        response = client.post(
            TERMINATION_URL, params={"namespace": "ns-1"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "WATCH_FAILED"


class TestCancelOnDisconnect:
    async def test_sets_cancel_on_disconnect(self) -> None:
        messages = iter(
            [
                {"type": "http.request", "body": b"", "more_body": False},
                {"type": "http.disconnect"},
            ]
        )

        async def receive() -> dict:
            return next(messages)

        request = MagicMock()
        request.receive = receive
        cancel = asyncio.Event()

        await asyncio.wait_for(_cancel_on_disconnect(request, cancel), timeout=1)

        assert cancel.is_set()
