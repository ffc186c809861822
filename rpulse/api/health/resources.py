"""Banner, liveness and readiness resources.

Usage
-----
Register the probes on the Falcon app::

    from rpulse.api.health.resources import (
        HealthResource,
        ReadyResource,
        RootResource,
    )

    app.add_route("/", RootResource())
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(session_factory))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon
from sqlalchemy import text

from rpulse.logging import get_logger, log_warning
from rpulse.store.errors import BACKEND_ERRORS

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

__all__ = ["BANNER", "HealthResource", "ReadyResource", "RootResource"]

BANNER = "RPulse - GitHub Actions Runner Monitoring"

logger = get_logger(__name__)


class RootResource:
    """Plain-text service banner."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET / requests."""
        resp.content_type = falcon.MEDIA_TEXT
        resp.text = BANNER
        resp.status = HTTPStatus.OK


class HealthResource:
    """Liveness probe that always answers ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe.

    Without a session factory the service runs health-only and is always
    ready. With one, readiness requires a successful ``SELECT 1``; failures
    answer HTTP 503 so the orchestrator stops routing traffic.

    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] | None = None
    ) -> None:
        """Store the optional session factory used for the database check."""
        self._session_factory = session_factory

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._session_factory is not None:
            try:
                async with self._session_factory() as session:
                    await session.execute(text("SELECT 1"))
            except BACKEND_ERRORS as exc:
                log_warning(logger, "Readiness check failed: %s", exc)
                resp.media = {"status": "unavailable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
