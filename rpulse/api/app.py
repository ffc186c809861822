"""Application factory for the rpulse Falcon ASGI application.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the webhook and dashboard endpoints::

    from rpulse.api.app import AppDependencies, create_app
    from rpulse.api.factory import build_engine

    deps = AppDependencies(
        session_factory=session_factory,
        engine=build_engine(session_factory),
        webhook_secret=secret,
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from rpulse.api.errors import register_error_handlers
from rpulse.api.health.resources import HealthResource, ReadyResource, RootResource

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from rpulse.api.factory import EngineComponents

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    session_factory
        Async session factory; enables the database readiness check.
    engine
        Pipeline and snapshot service; enables ``/webhook`` and
        ``/running-count``.
    webhook_secret
        Shared secret for webhook signature verification.

    """

    session_factory: async_sessionmaker[AsyncSession] | None = None
    engine: EngineComponents | None = None
    webhook_secret: str | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/``, ``/health`` and ``/ready`` are always registered. ``/webhook``
    and ``/running-count`` need engine components.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, only the banner
        and health endpoints are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App()

    app.add_route("/", RootResource())
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(deps.session_factory))

    if deps.engine is not None:
        from rpulse.api.demand.resources import RunningCountResource
        from rpulse.api.jobs.resources import WebhookResource

        app.add_route(
            "/webhook",
            WebhookResource(deps.engine.pipeline, webhook_secret=deps.webhook_secret),
        )
        app.add_route(
            "/running-count", RunningCountResource(deps.engine.snapshot_service)
        )

    register_error_handlers(app)
    return app
