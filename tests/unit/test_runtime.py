"""Unit tests for the rpulse runtime entrypoint."""

from __future__ import annotations

import typing as typ
from unittest import mock

import falcon
import falcon.testing
import pytest

from rpulse import runtime

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start each test without rpulse configuration."""
    for name in ("RPULSE_DATABASE_URL", "RPULSE_PORT", "RPULSE_WEBHOOK_SECRET"):
        monkeypatch.delenv(name, raising=False)


def test_create_app_without_database_is_health_only() -> None:
    """No database URL means no data endpoints."""
    client = falcon.testing.TestClient(runtime.create_app())

    assert client.simulate_get("/health").status == falcon.HTTP_200
    assert client.simulate_post("/webhook").status == falcon.HTTP_404


def test_create_app_with_database_wires_engine(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """A database URL builds the engine from the configured session factory."""
    monkeypatch.setenv("RPULSE_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/r.db")
    monkeypatch.setenv("RPULSE_WEBHOOK_SECRET", "s3cret")

    with mock.patch("rpulse.api.factory.build_engine") as build_engine:
        client = falcon.testing.TestClient(runtime.create_app())

    build_engine.assert_called_once()
    config = build_engine.call_args.args[1]
    assert config.webhook_secret == "s3cret"
    assert client.simulate_get("/webhook").status == falcon.HTTP_405


def test_invalid_config_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configuration errors terminate with status 1."""
    monkeypatch.setenv("RPULSE_PORT", "99999")

    with pytest.raises(SystemExit) as excinfo:
        runtime.load_config()

    assert excinfo.value.code == 1


def test_main_serves_factory_with_granian(monkeypatch: pytest.MonkeyPatch) -> None:
    """main() configures logging and starts Granian with the app factory."""
    monkeypatch.setenv("RPULSE_PORT", "9001")

    with (
        mock.patch("granian.Granian") as granian,
        mock.patch.object(runtime, "configure_logging", return_value=("INFO", False)),
    ):
        runtime.main()

    kwargs = granian.call_args.kwargs
    assert granian.call_args.args == ("rpulse.runtime:create_app",)
    assert kwargs["port"] == 9001
    assert kwargs["factory"] is True
    granian.return_value.serve.assert_called_once_with()
