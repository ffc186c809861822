"""rpulse runtime entrypoint.

``rpulse.runtime:create_app`` is the Granian application factory. When
``RPULSE_DATABASE_URL`` is set it wires the SQL stores, the ingestion
pipeline and the demand service into the app; otherwise the service starts
with the banner and health endpoints only. The schema is expected to exist
already; see :func:`rpulse.store.storage.init_storage` for development
setups.

Configuration is read from ``RPULSE_*`` environment variables (see
:class:`rpulse.config.RuntimeConfig`).

Run the service directly with ``python -m rpulse.runtime``.
"""

from __future__ import annotations

import typing as typ

from rpulse.config import RuntimeConfig
from rpulse.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "load_config", "main"]

logger = get_logger(__name__)


def load_config() -> RuntimeConfig:
    """Read the runtime configuration, exiting on invalid values.

    Raises
    ------
    SystemExit
        With status 1 when an ``RPULSE_*`` variable is malformed.

    """
    try:
        return RuntimeConfig.from_env()
    except ValueError as exc:
        # Validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from environment configuration.

    Returns
    -------
    falcon.asgi.App
        Full application when a database URL is configured, health-only
        otherwise.

    """
    from rpulse.api.app import AppDependencies
    from rpulse.api.app import create_app as _create_api_app

    config = load_config()
    if config.database_url is None:
        log_info(logger, "RPULSE_DATABASE_URL not set; starting health-only app")
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from rpulse.api.factory import build_engine

    engine = create_async_engine(config.database_url, pool_pre_ping=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    deps = AppDependencies(
        session_factory=session_factory,
        engine=build_engine(session_factory, config),
        webhook_secret=config.webhook_secret,
    )
    return _create_api_app(deps)


def main() -> None:
    """Start the rpulse server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = load_config()

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid RPULSE_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting rpulse on %s:%d (log_level=%s)",
        config.host,
        config.port,
        normalized_level,
    )

    server = Granian(
        "rpulse.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
