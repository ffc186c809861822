"""API exceptions and the Falcon handlers that translate domain errors.

Usage
-----
Register the handlers on the Falcon app::

    from rpulse.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from rpulse.demand.errors import AggregationFailedError
from rpulse.history.errors import InvalidPeriodError
from rpulse.ingestion.errors import IngestionFailedError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "InvalidPayloadError",
    "InvalidSignatureError",
    "handle_aggregation_failed",
    "handle_ingestion_failed",
    "handle_invalid_payload",
    "handle_invalid_period",
    "handle_invalid_signature",
    "register_error_handlers",
]


class InvalidSignatureError(Exception):
    """Raised when a webhook delivery fails HMAC verification."""

    def __init__(self, reason: str) -> None:
        """Record why verification failed."""
        self.reason = reason
        super().__init__(f"invalid webhook signature: {reason}")

    @classmethod
    def missing(cls) -> InvalidSignatureError:
        """Return an error for a delivery without a signature header."""
        return cls("signature header missing")

    @classmethod
    def malformed(cls) -> InvalidSignatureError:
        """Return an error for a header that is not a hex digest."""
        return cls("signature header malformed")

    @classmethod
    def mismatch(cls) -> InvalidSignatureError:
        """Return an error for a digest that does not match the body."""
        return cls("signature does not match payload")


class InvalidPayloadError(Exception):
    """Raised when a webhook body cannot be decoded into a job event."""

    def __init__(self, reason: str) -> None:
        """Record the decoding failure."""
        self.reason = reason
        super().__init__(reason)

    @classmethod
    def missing_form_field(cls) -> InvalidPayloadError:
        """Return an error for a form body without a ``payload`` field."""
        return cls("form body has no payload field")

    @classmethod
    def undecodable_form(cls) -> InvalidPayloadError:
        """Return an error for a form body that is not valid UTF-8."""
        return cls("form body is not valid UTF-8")


def _error_media(title: str, description: str) -> dict[str, str]:
    return {"title": title, "description": description}


async def handle_invalid_period(
    _req: Request,
    resp: Response,
    ex: InvalidPeriodError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidPeriodError`` to HTTP 400."""
    resp.status = falcon.HTTP_400
    resp.media = _error_media(
        "Invalid period",
        f"period must be one of all, hour, day, week, month; got {ex.period!r}",
    )


async def handle_invalid_payload(
    _req: Request,
    resp: Response,
    ex: InvalidPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidPayloadError`` to HTTP 400."""
    resp.status = falcon.HTTP_400
    resp.media = _error_media("Invalid payload", ex.reason)


async def handle_invalid_signature(
    _req: Request,
    resp: Response,
    ex: InvalidSignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidSignatureError`` to HTTP 401."""
    resp.status = falcon.HTTP_401
    resp.media = _error_media("Invalid signature", ex.reason)


async def handle_ingestion_failed(
    _req: Request,
    resp: Response,
    _ex: IngestionFailedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``IngestionFailedError`` to HTTP 500 without storage details."""
    resp.status = falcon.HTTP_500
    resp.media = _error_media("Ingestion failed", "Failed to process event")


async def handle_aggregation_failed(
    _req: Request,
    resp: Response,
    _ex: AggregationFailedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``AggregationFailedError`` to HTTP 500 with no partial metrics."""
    resp.status = falcon.HTTP_500
    resp.media = _error_media("Aggregation failed", "Failed to retrieve data")


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Attach every rpulse error handler to ``app``."""
    app.add_error_handler(InvalidPeriodError, handle_invalid_period)
    app.add_error_handler(InvalidPayloadError, handle_invalid_payload)
    app.add_error_handler(InvalidSignatureError, handle_invalid_signature)
    app.add_error_handler(IngestionFailedError, handle_ingestion_failed)
    app.add_error_handler(AggregationFailedError, handle_aggregation_failed)
