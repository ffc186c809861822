"""Unit tests for rpulse.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

import typing as typ
from unittest import mock

import falcon
import falcon.asgi
import falcon.testing
import pytest
from sqlalchemy.exc import OperationalError

from rpulse.api.app import AppDependencies, create_app
from rpulse.api.health.resources import BANNER
from rpulse.store.memory import InMemoryDemandStore
from tests.helpers.engine import build_memory_engine

if typ.TYPE_CHECKING:
    from rpulse.common.time import Clock


def _session_factory(*, fail: bool) -> mock.MagicMock:
    session = mock.AsyncMock()
    session.__aenter__.return_value = session
    if fail:
        session.execute.side_effect = OperationalError(
            "SELECT 1", {}, Exception("down")
        )
    return mock.MagicMock(return_value=session)


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client(fixed_clock: Clock) -> falcon.testing.TestClient:
    """Build a test client with engine components."""
    deps = AppDependencies(
        session_factory=_session_factory(fail=False),
        engine=build_memory_engine(InMemoryDemandStore(clock=fixed_clock), fixed_clock),
    )
    return falcon.testing.TestClient(create_app(deps))


class TestCreateAppHealthOnly:
    """Tests for create_app() without engine components."""

    def test_returns_falcon_app(self) -> None:
        """create_app() returns a Falcon ASGI App."""
        assert isinstance(create_app(), falcon.asgi.App), "expected Falcon ASGI App"

    def test_root_serves_banner(self, health_client: falcon.testing.TestClient) -> None:
        """The root path answers with the plain-text banner."""
        result = health_client.simulate_get("/")
        assert result.status == falcon.HTTP_200
        assert result.text == BANNER
        assert result.headers["content-type"].startswith("text/plain")

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_ready_without_database(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without a session factory the service is always ready."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"

    @pytest.mark.parametrize("path", ["/webhook", "/running-count"])
    def test_engine_routes_not_registered(
        self, health_client: falcon.testing.TestClient, path: str
    ) -> None:
        """Without engine components the data endpoints do not exist."""
        assert health_client.simulate_get(path).status == falcon.HTTP_404


class TestCreateAppWithDeps:
    """Tests for create_app() with engine components."""

    def test_ready_runs_database_check(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """A working database keeps the service ready."""
        result = full_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200
        assert result.json == {"status": "ready"}

    def test_ready_reports_database_outage(self) -> None:
        """A failing SELECT 1 answers 503."""
        client = falcon.testing.TestClient(
            create_app(AppDependencies(session_factory=_session_factory(fail=True)))
        )
        result = client.simulate_get("/ready")
        assert result.status == falcon.HTTP_503
        assert result.json == {"status": "unavailable"}

    def test_ready_reports_refused_connection(self) -> None:
        """Driver connect failures also answer 503."""
        session = mock.AsyncMock()
        session.__aenter__.side_effect = ConnectionRefusedError(
            111, "Connect call failed"
        )
        client = falcon.testing.TestClient(
            create_app(
                AppDependencies(session_factory=mock.MagicMock(return_value=session))
            )
        )
        result = client.simulate_get("/ready")
        assert result.status == falcon.HTTP_503, "refused connect should be 503"
        assert result.json == {"status": "unavailable"}

    def test_webhook_route_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The webhook only accepts POST."""
        assert full_client.simulate_get("/webhook").status == falcon.HTTP_405

    def test_running_count_route_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The dashboard endpoint answers with an empty snapshot."""
        result = full_client.simulate_get("/running-count")
        assert result.status == falcon.HTTP_200
        assert result.json["period"] == "all"
