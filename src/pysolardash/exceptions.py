"""Exceptions raised by the dashboard pipeline.

Every exception inherits from :class:`SolarDashError` so callers can use a
single ``except SolarDashError`` around a poll cycle. Cancellation is kept
apart from genuine failures so a superseded poll can be dropped silently
while network and upstream problems are still reported.

Normalization and aggregation never raise: once the three raw payloads are
decoded, only transport or abort conditions can fail a pipeline run.
"""

from __future__ import annotations


class SolarDashError(Exception):
    """Base exception for all pipeline errors."""

    pass


class SolarDashConnectionError(SolarDashError):
    """Non-success HTTP status or transport failure on a request."""

    def __init__(self, message: str, *, status: int | None = None, url: str | None = None) -> None:
        """Initialize with optional HTTP details.

        Args:
            message: Human readable description
            status: HTTP status code when the server answered, else None
            url: Request URL that failed
        """
        self.status = status
        self.url = url
        super().__init__(message)


class SolarDashAPIError(SolarDashError):
    """Upstream answered successfully but the body carries an error field."""

    pass


class SolarDashCancelledError(SolarDashError):
    """Request aborted by the caller's cancel token."""

    pass


class SolarDashTimeoutError(SolarDashCancelledError):
    """Request aborted because its timeout expired.

    Subclasses :class:`SolarDashCancelledError` because an expired timeout
    aborts the request exactly like an external cancellation does.
    """

    def __init__(self, url: str, timeout: float) -> None:
        """Initialize with the request details.

        Args:
            url: Request URL that timed out
            timeout: Timeout in seconds that expired
        """
        self.url = url
        self.timeout = timeout
        super().__init__(f"Request to {url} timed out after {timeout:.1f}s")


__all__ = [
    "SolarDashAPIError",
    "SolarDashCancelledError",
    "SolarDashConnectionError",
    "SolarDashError",
    "SolarDashTimeoutError",
]
