"""Runtime configuration for the rpulse service.

Usage
-----
Create a configuration with defaults:

>>> config = RuntimeConfig()
>>> config.port
8080

Or load it from environment variables:

>>> import os
>>> os.environ["RPULSE_UPSERT_MAX_ATTEMPTS"] = "5"
>>> RuntimeConfig.from_env().upsert_max_attempts
5

"""

from __future__ import annotations

import dataclasses as dc
import os

_MIN_PORT = 1
_MAX_PORT = 65535


def _read_optional(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "").strip()
    return raw or None


def _parse_int(env_var: str, default: int, *, minimum: int) -> int:
    """Read an integer env var no smaller than ``minimum``."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < minimum:
        msg = f"{env_var} must be at least {minimum}, got: {value}"
        raise ValueError(msg)
    return value


@dc.dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Settings for the HTTP service and its storage.

    Attributes
    ----------
    host
        Bind address. Default ``0.0.0.0``.
    port
        Listen port in the range 1-65535. Default 8080.
    log_level
        Raw log level; normalised by :func:`rpulse.logging.configure_logging`.
    database_url
        SQLAlchemy async database URL. When ``None`` the service starts with
        health endpoints only.
    webhook_secret
        Shared secret for ``X-Hub-Signature-256`` verification. When
        ``None``, deliveries are accepted unverified.
    upsert_max_attempts
        Total attempts for a job upsert hitting transient connection errors.
    upsert_retry_delay_ms
        Fixed delay between upsert attempts.

    """

    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    port: int = 8080
    log_level: str = "INFO"
    database_url: str | None = None
    webhook_secret: str | None = None
    upsert_max_attempts: int = 3
    upsert_retry_delay_ms: int = 100

    @classmethod
    def from_env(cls) -> RuntimeConfig:
        """Create configuration from ``RPULSE_*`` environment variables.

        Raises
        ------
        ValueError
            If an integer setting is malformed or out of range. The message
            names the offending variable.

        """
        defaults = cls()
        port = _parse_int("RPULSE_PORT", defaults.port, minimum=_MIN_PORT)
        if port > _MAX_PORT:
            msg = f"RPULSE_PORT must be at most {_MAX_PORT}, got: {port}"
            raise ValueError(msg)
        return cls(
            host=_read_optional("RPULSE_HOST") or defaults.host,
            port=port,
            log_level=os.environ.get("RPULSE_LOG_LEVEL", defaults.log_level),
            database_url=_read_optional("RPULSE_DATABASE_URL"),
            webhook_secret=_read_optional("RPULSE_WEBHOOK_SECRET"),
            upsert_max_attempts=_parse_int(
                "RPULSE_UPSERT_MAX_ATTEMPTS", defaults.upsert_max_attempts, minimum=1
            ),
            upsert_retry_delay_ms=_parse_int(
                "RPULSE_UPSERT_RETRY_DELAY_MS",
                defaults.upsert_retry_delay_ms,
                minimum=0,
            ),
        )


__all__ = ["RuntimeConfig"]
