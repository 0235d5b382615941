"""Selection between the live API and the mock data source.

Both sources implement :class:`DashboardSource`, so callers depend only on
the returned :class:`~pysolardash.models.DashboardModel`.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from pysolardash.client import SolarDashClient
from pysolardash.config import RuntimeConfig
from pysolardash.mock import MockDataSource
from pysolardash.models import DashboardModel


class DashboardSource(Protocol):
    """Anything that can produce a dashboard model for a configuration."""

    async def fetch_dashboard(
        self,
        config: RuntimeConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> DashboardModel: ...


async def fetch_dashboard_data(
    config: RuntimeConfig,
    cancel_event: asyncio.Event | None = None,
    *,
    client: SolarDashClient | None = None,
    mock: MockDataSource | None = None,
) -> DashboardModel:
    """Run one pipeline invocation against the configured source.

    Args:
        config: Resolved runtime configuration
        cancel_event: Shared cancel token
        client: Live client to reuse (default: a temporary one)
        mock: Mock source to use when ``config.use_mock_data`` is set

    Returns:
        New DashboardModel
    """
    source: DashboardSource
    if config.use_mock_data:
        source = mock or MockDataSource()
    elif client is not None:
        source = client
    else:
        async with SolarDashClient() as owned_client:
            return await owned_client.fetch_dashboard(config, cancel_event)

    return await source.fetch_dashboard(config, cancel_event)


__all__ = [
    "DashboardSource",
    "fetch_dashboard_data",
]
