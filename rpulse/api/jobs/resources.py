"""``POST /webhook``: receive ``workflow_job`` deliveries.

The resource authenticates the raw body, unwraps form-encoded deliveries,
decodes the event and hands it to the ingestion pipeline. Storage failures
surface as ``IngestionFailedError`` and are mapped to HTTP 500 by the app's
error handlers.
"""

from __future__ import annotations

import typing as typ
import urllib.parse
from http import HTTPStatus

import falcon
import msgspec

from rpulse.api.errors import InvalidPayloadError
from rpulse.api.signature import SIGNATURE_HEADER, verify_signature
from rpulse.jobs.models import decode_workflow_job_event
from rpulse.logging import get_logger, log_debug, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from rpulse.ingestion.pipeline import IngestionPipeline

__all__ = ["EVENT_HEADER", "WORKFLOW_JOB_EVENT", "WebhookResource"]

EVENT_HEADER = "X-GitHub-Event"
WORKFLOW_JOB_EVENT = "workflow_job"
_FORM_FIELD = "payload"

logger = get_logger(__name__)


def extract_event_body(body: bytes, content_type: str | None) -> bytes:
    """Return the JSON document carried by a delivery body.

    GitHub sends either ``application/json`` or a form-encoded body whose
    ``payload`` field holds the JSON document.

    Raises
    ------
    InvalidPayloadError
        If a form body is not valid UTF-8 or has no ``payload`` field.

    """
    is_form = (content_type or "").startswith(falcon.MEDIA_URLENCODED)
    if not is_form and not body.startswith(f"{_FORM_FIELD}=".encode()):
        return body
    try:
        fields = urllib.parse.parse_qs(body.decode("utf-8"), errors="strict")
    except UnicodeDecodeError as exc:
        raise InvalidPayloadError.undecodable_form() from exc
    values = fields.get(_FORM_FIELD)
    if not values:
        raise InvalidPayloadError.missing_form_field()
    return values[0].encode("utf-8")


class WebhookResource:
    """Authenticate, decode and ingest webhook deliveries."""

    def __init__(
        self, pipeline: IngestionPipeline, *, webhook_secret: str | None = None
    ) -> None:
        """Bind the pipeline and the shared secret.

        Parameters
        ----------
        pipeline
            Pipeline that processes decoded events.
        webhook_secret
            Secret for ``X-Hub-Signature-256`` checks. ``None`` disables
            verification.

        """
        self._pipeline = pipeline
        self._webhook_secret = webhook_secret
        if webhook_secret is None:
            log_warning(
                logger,
                "Webhook secret not configured; signature verification disabled",
            )

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhook requests."""
        body = await req.stream.read()
        if self._webhook_secret is not None:
            verify_signature(
                self._webhook_secret, body, req.get_header(SIGNATURE_HEADER)
            )

        event_name = req.get_header(EVENT_HEADER)
        if event_name is not None and event_name != WORKFLOW_JOB_EVENT:
            log_debug(logger, "Ignoring %s delivery", event_name)
            resp.media = {"status": "ignored"}
            resp.status = HTTPStatus.ACCEPTED
            return

        document = extract_event_body(body, req.content_type)
        try:
            event = decode_workflow_job_event(document)
        except msgspec.DecodeError as exc:
            raise InvalidPayloadError(str(exc)) from exc

        await self._pipeline.ingest(event)
        resp.media = {"status": "success"}
        resp.status = HTTPStatus.OK
