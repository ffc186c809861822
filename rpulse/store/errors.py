"""Error types shared by the rpulse storage layer."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

# asyncpg connect failures (refused, timed out) reach callers as plain OSError
BACKEND_ERRORS: tuple[type[Exception], ...] = (SQLAlchemyError, OSError)


class PersistenceError(Exception):
    """Raised when a storage backend fails to complete an operation.

    The originating SQLAlchemy or connection error, when there is one, is
    chained as ``__cause__``.
    """

    def __init__(self, operation: str, detail: str | None = None) -> None:
        """Record the failing operation name for diagnostics."""
        self.operation = operation
        message = f"storage operation {operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @classmethod
    def for_operation(
        cls, operation: str, detail: str | None = None
    ) -> PersistenceError:
        """Return an error for a single failed backend call."""
        return cls(operation, detail)

    @classmethod
    def retries_exhausted(cls, operation: str, attempts: int) -> PersistenceError:
        """Return an error raised after every retry attempt failed."""
        return cls(operation, f"gave up after {attempts} attempts")


class TimezoneAwareRequiredError(ValueError):
    """Raised when datetime inputs lack timezone information."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        super().__init__(f"{context} must be timezone aware")

    @classmethod
    def for_column(cls) -> TimezoneAwareRequiredError:
        """Return an error indicating a bound column value was naive."""
        return cls("stored datetime values")
