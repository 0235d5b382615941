"""Solar monitoring API client.

This module provides the async client that fetches the three payloads behind
one dashboard refresh and turns them into a
:class:`~pysolardash.models.DashboardModel`.

Key Features:
- Async/await support with aiohttp
- Support for injected aiohttp.ClientSession
- Concurrent requests joined fail-fast (first failure cancels the rest)
- Per-request timeout and a shared cancel token (``asyncio.Event``)
- Cancellation reported separately from network and upstream errors

There is no retry, backoff or response cache: a failed request
fails the refresh and the caller decides when to poll again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import date, datetime
from typing import Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import aiohttp

from .aggregate import build_dashboard_model
from .config import RuntimeConfig
from .exceptions import (
    SolarDashAPIError,
    SolarDashCancelledError,
    SolarDashConnectionError,
    SolarDashTimeoutError,
)
from .models import DashboardModel, TimeUnit
from .timestamps import history_window

_LOGGER = logging.getLogger(__name__)

# Origin used to resolve URLs when no base URL is configured
DEFAULT_ORIGIN = "http://localhost"

_ENERGY_QUERY_KEYS = ("startDate", "endDate", "timeUnit")


def build_url(base_url: str, path: str) -> str:
    """Join a base URL and an endpoint path with exactly one slash.

    Args:
        base_url: API origin, possibly empty or with a trailing slash
        path: Endpoint path, with or without a leading slash

    Returns:
        Joined URL, or ``path`` unchanged when ``base_url`` is empty
    """
    if not base_url:
        return path
    normalized_base = base_url[:-1] if base_url.endswith("/") else base_url
    normalized_path = path if path.startswith("/") else f"/{path}"
    return f"{normalized_base}{normalized_path}"


def _absolute(url: str) -> str:
    if urlsplit(url).scheme:
        return url
    return urljoin(DEFAULT_ORIGIN, url)


def build_overview_url(config: RuntimeConfig) -> str:
    """Build the overview endpoint URL (no query parameters)."""
    return _absolute(build_url(config.base_url, config.endpoints.overview))


def build_energy_url(
    config: RuntimeConfig,
    start_date: str,
    end_date: str,
    time_unit: TimeUnit | str,
) -> str:
    """Build an energy endpoint URL for a date range and granularity.

    Existing query parameters on the configured path are kept;
    ``startDate``, ``endDate`` and ``timeUnit`` replace any previous value.

    Args:
        config: Resolved runtime configuration
        start_date: First day, ``YYYY-MM-DD``
        end_date: Last day, ``YYYY-MM-DD``
        time_unit: Series granularity

    Returns:
        Absolute URL string
    """
    parts = urlsplit(_absolute(build_url(config.base_url, config.endpoints.energy)))
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in _ENERGY_QUERY_KEYS
    ]
    query.extend(
        [
            ("startDate", start_date),
            ("endDate", end_date),
            ("timeUnit", TimeUnit(time_unit).value),
        ]
    )
    return urlunsplit(parts._replace(query=urlencode(query)))


def _has_error_marker(value: Any) -> bool:
    """Whether a body's ``error`` field signals an upstream failure."""
    if value is None or value is False:
        return False
    if isinstance(value, str | int | float):
        return bool(value)
    return True


def _consume(task: asyncio.Future[Any]) -> None:
    """Mark a finished task's outcome as retrieved."""
    if task.done() and not task.cancelled():
        task.exception()


async def gather_fail_fast(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently, failing as soon as one of them fails.

    Unlike ``asyncio.gather`` the remaining tasks are cancelled (and awaited)
    before the first exception propagates.

    Returns:
        Results in argument order

    Raises:
        Exception: The first failure observed
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    failed = next(
        (task for task in tasks if task in done and not task.cancelled() and task.exception()),
        None,
    )
    if failed is not None:
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            _consume(task)
        raise failed.exception()  # type: ignore[misc]

    return [task.result() for task in tasks]


class SolarDashClient:
    """Solar monitoring API client.

    The client holds only the HTTP session. Endpoint locations, timeouts and
    the history window come from the :class:`RuntimeConfig` passed to each
    call, so a configuration change applies on the next refresh.

    Example:
        ```python
        config = load_runtime_config()
        async with SolarDashClient() as client:
            cancel = asyncio.Event()
            model = await client.fetch_dashboard(config, cancel)
            print(f"Now: {model.overview.current_power_kw} kW")
        ```
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the client.

        Args:
            session: Optional aiohttp ClientSession for session injection
            verify_ssl: Whether to verify SSL certificates (owned session only)
        """
        self.verify_ssl = verify_ssl
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

    async def __aenter__(self) -> SolarDashClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this client,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    async def _request(self, url: str, timeout: float) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            SolarDashConnectionError: Non-2xx status, transport failure or
                undecodable body
            SolarDashAPIError: Body carries an ``error`` field
            SolarDashTimeoutError: aiohttp reported a timeout
        """
        session = await self._get_session()
        headers = {"Accept": "application/json"}

        _LOGGER.debug("GET %s", url)
        try:
            async with session.get(url, headers=headers) as response:
                response.raise_for_status()
                body: Any = await response.json(content_type=None)
        except aiohttp.ClientResponseError as err:
            raise SolarDashConnectionError(
                f"HTTP {err.status}: {err.message}", status=err.status, url=url
            ) from err
        except asyncio.TimeoutError as err:
            raise SolarDashTimeoutError(url, timeout) from err
        except aiohttp.ClientError as err:
            raise SolarDashConnectionError(f"Connection error: {err}", url=url) from err
        except ValueError as err:
            raise SolarDashConnectionError(f"Invalid JSON response: {err}", url=url) from err

        if isinstance(body, dict) and _has_error_marker(body.get("error")):
            raise SolarDashAPIError(f"API error from {url}: {body['error']}")

        return body

    async def _guarded_request(
        self,
        url: str,
        *,
        timeout: float,
        cancel_event: asyncio.Event | None,
    ) -> Any:
        """Run a request bounded by a timeout and the shared cancel token.

        Raises:
            SolarDashCancelledError: The cancel token was set
            SolarDashTimeoutError: ``timeout`` expired first
        """
        if cancel_event is not None and cancel_event.is_set():
            raise SolarDashCancelledError(f"Request to {url} cancelled")

        request = asyncio.ensure_future(self._request(url, timeout))
        waiters: set[asyncio.Future[Any]] = {request}
        abort: asyncio.Future[Any] | None = None
        if cancel_event is not None:
            abort = asyncio.ensure_future(cancel_event.wait())
            waiters.add(abort)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            unfinished = [waiter for waiter in waiters if not waiter.done()]
            for waiter in unfinished:
                waiter.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        if abort is not None and abort in done:
            _consume(request)
            _LOGGER.debug("Request to %s cancelled", url)
            raise SolarDashCancelledError(f"Request to {url} cancelled")

        if request in done:
            return request.result()

        _LOGGER.debug("Request to %s timed out after %.1fs", url, timeout)
        raise SolarDashTimeoutError(url, timeout)

    # Endpoints

    async def get_overview(
        self,
        config: RuntimeConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        """Fetch the overview snapshot.

        Returns:
            Decoded JSON body
        """
        return await self._guarded_request(
            build_overview_url(config),
            timeout=config.request_timeout,
            cancel_event=cancel_event,
        )

    async def get_energy(
        self,
        config: RuntimeConfig,
        start_date: str,
        end_date: str,
        time_unit: TimeUnit | str,
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        """Fetch an energy series.

        Args:
            config: Resolved runtime configuration
            start_date: First day, ``YYYY-MM-DD``
            end_date: Last day, ``YYYY-MM-DD``
            time_unit: ``QUARTER_OF_AN_HOUR`` or ``DAY``
            cancel_event: Shared cancel token

        Returns:
            Decoded JSON body
        """
        return await self._guarded_request(
            build_energy_url(config, start_date, end_date, time_unit),
            timeout=config.request_timeout,
            cancel_event=cancel_event,
        )

    async def fetch_raw(
        self,
        config: RuntimeConfig,
        cancel_event: asyncio.Event | None = None,
        today: date | None = None,
    ) -> tuple[Any, Any, Any]:
        """Fetch overview, intraday and daily payloads concurrently.

        Args:
            config: Resolved runtime configuration
            cancel_event: Shared cancel token for all three requests
            today: Local date to query (default: today)

        Returns:
            Tuple of (overview, intraday, daily) decoded bodies

        Raises:
            SolarDashError: First failure among the three requests
        """
        if cancel_event is not None and cancel_event.is_set():
            raise SolarDashCancelledError("Dashboard refresh cancelled")

        day = today or datetime.now().date()
        start_date, end_date = history_window(day, config.history_days)
        _LOGGER.debug(
            "Fetching dashboard data for %s (history from %s)", end_date, start_date
        )

        overview, intraday, daily = await gather_fail_fast(
            self.get_overview(config, cancel_event),
            self.get_energy(
                config, end_date, end_date, TimeUnit.QUARTER_OF_AN_HOUR, cancel_event
            ),
            self.get_energy(config, start_date, end_date, TimeUnit.DAY, cancel_event),
        )
        return overview, intraday, daily

    async def fetch_dashboard(
        self,
        config: RuntimeConfig,
        cancel_event: asyncio.Event | None = None,
        today: date | None = None,
    ) -> DashboardModel:
        """Fetch and aggregate one dashboard refresh.

        Args:
            config: Resolved runtime configuration
            cancel_event: Shared cancel token for all requests
            today: Local date to query (default: today)

        Returns:
            New DashboardModel

        Raises:
            SolarDashCancelledError: Cancelled or timed out
            SolarDashConnectionError: HTTP or transport failure
            SolarDashAPIError: Upstream reported an error
        """
        overview, intraday, daily = await self.fetch_raw(config, cancel_event, today)
        return build_dashboard_model(overview, intraday, daily, config.emissions_kg_per_kwh)


__all__ = [
    "DEFAULT_ORIGIN",
    "SolarDashClient",
    "build_energy_url",
    "build_overview_url",
    "build_url",
    "gather_fail_fast",
]
