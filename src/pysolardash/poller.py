"""Poll coordinator for a live dashboard.

:class:`DashboardPoller` owns the only piece of state shared between poll
cycles: the cancel token of the refresh currently in flight. Starting a
refresh sets the previous token, so a slow poll is superseded instead of
racing the new one.

Status handling mirrors what the dashboard shows:

- cancelled or timed-out refresh: dropped silently, status untouched
- any other failure: status ``UNAVAILABLE``, error logged, the last good
  model stays available
- success: status ``LIVE`` and the ``on_update`` callback receives the model
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from pysolardash.client import SolarDashClient
from pysolardash.config import RuntimeConfig, load_runtime_config
from pysolardash.exceptions import SolarDashCancelledError, SolarDashError
from pysolardash.mock import MockDataSource
from pysolardash.models import DashboardModel
from pysolardash.sources import fetch_dashboard_data

_LOGGER = logging.getLogger(__name__)


class PollStatus(str, Enum):
    """Data status shown next to the dashboard."""

    IDLE = "idle"
    LOADING = "loading"
    LIVE = "live"
    UNAVAILABLE = "unavailable"


class DashboardPoller:
    """Periodically refresh the dashboard model.

    Example:
        ```python
        async with SolarDashClient() as client:
            poller = DashboardPoller(client=client, on_update=render)
            poller.start()
            ...
            await poller.stop()
        ```
    """

    def __init__(
        self,
        *,
        client: SolarDashClient | None = None,
        mock: MockDataSource | None = None,
        config_loader: Callable[[], RuntimeConfig] = load_runtime_config,
        on_update: Callable[[DashboardModel], None] | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            client: Live API client (default: a temporary one per refresh)
            mock: Mock source used when the configuration asks for mock data
            config_loader: Called once per refresh to resolve the configuration
            on_update: Receives every new model
        """
        self._client = client
        self._mock = mock
        self._config_loader = config_loader
        self._on_update = on_update

        self.status = PollStatus.IDLE
        self.last_model: DashboardModel | None = None
        self.last_error: SolarDashError | None = None

        self._active: asyncio.Event | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._refresh_tasks: set[asyncio.Task[DashboardModel | None]] = set()

    @property
    def is_running(self) -> bool:
        """Whether the polling loop is active."""
        return self._loop_task is not None and not self._loop_task.done()

    def cancel_active(self) -> None:
        """Cancel the refresh in flight, if any."""
        if self._active is not None:
            self._active.set()
            self._active = None

    async def refresh(self) -> DashboardModel | None:
        """Run one refresh, superseding any refresh in flight.

        Returns:
            The new model, or None when the refresh was cancelled or failed
        """
        self.cancel_active()
        cancel_event = asyncio.Event()
        self._active = cancel_event
        self.status = PollStatus.LOADING

        config = self._config_loader()
        try:
            model = await fetch_dashboard_data(
                config, cancel_event, client=self._client, mock=self._mock
            )
        except SolarDashCancelledError as err:
            _LOGGER.debug("Dashboard refresh dropped: %s", err)
            return None
        except SolarDashError as err:
            self.last_error = err
            self.status = PollStatus.UNAVAILABLE
            _LOGGER.error("Could not load dashboard data: %s", err)
            return None
        finally:
            if self._active is cancel_event:
                self._active = None

        self.last_model = model
        self.last_error = None
        self.status = PollStatus.LIVE
        if self._on_update is not None:
            self._on_update(model)
        return model

    def _spawn_refresh(self) -> None:
        task = asyncio.create_task(self.refresh())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def run(self) -> None:
        """Refresh now, then once per poll interval until cancelled.

        The interval is re-read from the configuration every cycle.
        """
        while True:
            self._spawn_refresh()
            interval = self._config_loader().poll_interval
            _LOGGER.debug("Next dashboard refresh in %.0fs", interval)
            await asyncio.sleep(interval)

    def start(self) -> None:
        """Start the polling loop in the background."""
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the polling loop and cancel any refresh in flight."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            await asyncio.gather(self._loop_task, return_exceptions=True)
            self._loop_task = None

        self.cancel_active()
        if self._refresh_tasks:
            await asyncio.gather(*self._refresh_tasks, return_exceptions=True)


__all__ = [
    "DashboardPoller",
    "PollStatus",
]
