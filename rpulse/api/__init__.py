"""rpulse HTTP API layer.

Falcon ASGI application exposing the webhook intake, the demand snapshot
endpoint and health probes.

Usage
-----
Create the application::

    from rpulse.api import create_app

    app = create_app()              # banner and health endpoints only
    app = create_app(dependencies)  # with webhook and running-count
"""

from rpulse.api.app import create_app

__all__ = ["create_app"]
