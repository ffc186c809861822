"""Unit tests for rpulse.logging helpers."""

from __future__ import annotations

import pytest

from rpulse.logging import (
    LogLevel,
    configure_logging,
    format_log_message,
    log_at,
    log_debug,
    log_error,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)
from tests.helpers.recording_logger import RecordingLogger


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("warning", ("WARNING", False)),
        (" debug ", ("DEBUG", False)),
        ("WARN", ("WARN", False)),
        (None, ("INFO", True)),
        ("", ("INFO", True)),
        ("verbose", ("INFO", True)),
    ],
)
def test_normalize_log_level(raw: str | None, expected: tuple[str, bool]) -> None:
    """Known levels are upper-cased; anything else falls back to INFO."""
    assert normalize_log_level(raw) == expected


def test_format_log_message() -> None:
    """Templates without arguments are returned untouched."""
    assert format_log_message("100% done") == "100% done"
    assert format_log_message("job %d took %s", 7, "5m") == "job 7 took 5m"


@pytest.mark.parametrize(
    ("helper", "level"),
    [
        (log_debug, "DEBUG"),
        (log_info, "INFO"),
        (log_warning, "WARNING"),
        (log_error, "ERROR"),
    ],
)
def test_level_helpers(helper: object, level: str) -> None:
    """Each helper formats the message and emits its level."""
    logger = RecordingLogger()
    exc = RuntimeError("boom")

    helper(logger, "job %d", 42, exc_info=exc)  # type: ignore[operator]

    (record,) = logger.records
    assert (record.level, record.message, record.exc_info) == (level, "job 42", exc)


def test_log_at_accepts_enum_levels() -> None:
    """LogLevel members are passed through as their names."""
    logger = RecordingLogger()
    log_at(logger, LogLevel.CRITICAL, "down")
    assert logger.records[0].level == "CRITICAL"


def test_log_exception_attaches_exception() -> None:
    """log_exception logs at ERROR with exc_info set."""
    logger = RecordingLogger()
    exc = ValueError("bad")

    log_exception(logger, "failed", exc)

    assert logger.records[0].exc_info is exc
    assert logger.messages("ERROR") == ["failed"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", ("DEBUG", False)), ("nope", ("INFO", True))],
)
def test_configure_logging(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: tuple[str, bool]
) -> None:
    """configure_logging passes the normalised level to basicConfig."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("rpulse.logging.basicConfig", fake_basic_config)

    assert configure_logging(raw) == expected
    assert captured == {"level": expected[0], "force": False}
