"""Data pipeline behind a near-real-time solar production dashboard.

Usage:
    One refresh from the configured source:
        from pysolardash import fetch_dashboard_data, load_runtime_config

        model = await fetch_dashboard_data(load_runtime_config())
        print(model.overview.today_energy_kwh)

    Live API with a shared session and a cancel token:
        from pysolardash import SolarDashClient, resolve_runtime_config

        config = resolve_runtime_config({"baseUrl": "https://monitor.example.com",
                                         "useMockData": False})
        async with SolarDashClient() as client:
            cancel = asyncio.Event()
            model = await client.fetch_dashboard(config, cancel)

    Periodic polling:
        from pysolardash import DashboardPoller

        poller = DashboardPoller(on_update=render)
        poller.start()
"""

from __future__ import annotations

from .aggregate import build_dashboard_model
from .client import SolarDashClient
from .config import (
    DEFAULT_CONFIG,
    EndpointPaths,
    RuntimeConfig,
    load_runtime_config,
    resolve_runtime_config,
)
from .exceptions import (
    SolarDashAPIError,
    SolarDashCancelledError,
    SolarDashConnectionError,
    SolarDashError,
    SolarDashTimeoutError,
)
from .mock import MockDataSource
from .models import (
    DashboardModel,
    EnergyDay,
    OverviewMetrics,
    PowerPoint,
    TimeUnit,
)
from .poller import DashboardPoller, PollStatus
from .sources import fetch_dashboard_data

__version__ = "0.1.0"
__all__ = [
    "SolarDashClient",
    "MockDataSource",
    "DashboardPoller",
    "PollStatus",
    "fetch_dashboard_data",
    "build_dashboard_model",
    # Configuration
    "DEFAULT_CONFIG",
    "EndpointPaths",
    "RuntimeConfig",
    "load_runtime_config",
    "resolve_runtime_config",
    # Models
    "DashboardModel",
    "EnergyDay",
    "OverviewMetrics",
    "PowerPoint",
    "TimeUnit",
    # Exceptions
    "SolarDashError",
    "SolarDashAPIError",
    "SolarDashCancelledError",
    "SolarDashConnectionError",
    "SolarDashTimeoutError",
]
