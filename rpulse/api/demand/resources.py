"""``GET /running-count``: current and historical runner demand."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from rpulse.history.periods import ALL_PERIODS_ALIAS

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from rpulse.demand.service import DemandSnapshotService

__all__ = ["RunningCountResource"]


class RunningCountResource:
    """Serve demand snapshots for the dashboard."""

    def __init__(self, snapshot_service: DemandSnapshotService) -> None:
        """Bind the snapshot service."""
        self._snapshot_service = snapshot_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Handle GET /running-count requests.

        The optional ``period`` query parameter selects the history window
        (``all``, ``hour``, ``day``, ``week`` or ``month``; default ``all``).
        Unknown periods and failed reads are mapped to 400 and 500 by the
        registered error handlers.

        """
        period = req.get_param("period", default=ALL_PERIODS_ALIAS)
        snapshot = await self._snapshot_service.get_snapshot(period)
        resp.media = snapshot.to_payload()
        resp.status = HTTPStatus.OK
