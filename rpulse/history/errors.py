"""Errors raised by the history package."""

from __future__ import annotations


class InvalidPeriodError(ValueError):
    """Raised when a period string is not one of hour, day, week or month."""

    def __init__(self, period: str) -> None:
        """Keep the rejected value for error reporting."""
        self.period = period
        super().__init__(f"invalid period {period!r}")

    @classmethod
    def for_value(cls, period: object) -> InvalidPeriodError:
        """Return an error for any rejected period value."""
        return cls(str(period))
