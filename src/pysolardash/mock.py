"""Synthetic data source for running the dashboard without an API.

Produces the same :class:`~pysolardash.models.DashboardModel` as the live
path:

- a 24 point hourly power curve for today, a bell curve peaking at noon with
  random "weather" attenuation
- a 30 day energy history with a seasonal swing and random noise

Randomness and the clock are injectable for deterministic tests.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections.abc import Callable
from datetime import datetime, timedelta

from pysolardash.config import RuntimeConfig
from pysolardash.exceptions import SolarDashCancelledError
from pysolardash.models import (
    DashboardModel,
    EnergyDay,
    EnergyHistory,
    OverviewMetrics,
    PowerPoint,
    PowerSeries,
)
from pysolardash.timestamps import format_ymd
from pysolardash.units import round_to

_LOGGER = logging.getLogger(__name__)

HOURS_PER_DAY = 24
MOCK_HISTORY_DAYS = 30

# Power curve: PEAK_POWER_KW * exp(-(hour - 12)^2 / BELL_WIDTH) * noise
PEAK_POWER_KW = 45.0
PEAK_HOUR = 12
BELL_WIDTH = 20.0
NOISE_MIN = 0.75
NOISE_SPAN = 0.35

# Daily energy: base + (sin(2*pi*i/30) + 1) * SWING_HALF + uniform[0, NOISE_MAX)
SEASONAL_BASE_KWH = 220.0
SEASONAL_SWING_HALF_KWH = 40.0
DAILY_NOISE_MAX_KWH = 60.0

MOCK_EMISSIONS_KG_PER_KWH = 0.36

# Artificial latency so consumers see a loading state
DEFAULT_MOCK_DELAY = 0.25


class MockDataSource:
    """Dashboard data source backed by generated data.

    Example:
        ```python
        source = MockDataSource(rng=random.Random(42))
        model = await source.fetch_dashboard()
        print(model.overview.peak_power_kw)
        ```
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = datetime.now,
        delay: float = DEFAULT_MOCK_DELAY,
    ) -> None:
        """Initialize the mock source.

        Args:
            rng: Random generator (default: a fresh unseeded one)
            now: Clock returning the local time
            delay: Artificial latency of :meth:`fetch_dashboard` in seconds
        """
        self._rng = rng or random.Random()
        self._now = now
        self.delay = delay

    def generate_power_series(self, now: datetime) -> list[PowerPoint]:
        """Generate hourly power samples for the day of ``now``."""
        points: list[PowerPoint] = []
        for hour in range(HOURS_PER_DAY):
            point_time = now.replace(hour=hour, minute=0, second=0, microsecond=0)
            normalized = math.exp(-((hour - PEAK_HOUR) ** 2) / BELL_WIDTH)
            weather_noise = NOISE_MIN + self._rng.random() * NOISE_SPAN
            power_kw = round_to(max(0.0, PEAK_POWER_KW * normalized * weather_noise), 2)
            points.append(PowerPoint(timestamp=point_time.isoformat(), power_kw=power_kw))
        return points

    def generate_energy_history(self, now: datetime) -> list[EnergyDay]:
        """Generate daily energy totals for the 30 days ending on ``now``."""
        today = now.date()
        days: list[EnergyDay] = []
        for days_ago in range(MOCK_HISTORY_DAYS - 1, -1, -1):
            swing = (
                math.sin(days_ago / MOCK_HISTORY_DAYS * math.pi * 2) + 1
            ) * SEASONAL_SWING_HALF_KWH
            weather_noise = self._rng.random() * DAILY_NOISE_MAX_KWH
            days.append(
                EnergyDay(
                    date=format_ymd(today - timedelta(days=days_ago)),
                    energy_kwh=round_to(SEASONAL_BASE_KWH + swing + weather_noise, 1),
                )
            )
        return days

    def build(self) -> DashboardModel:
        """Generate a dashboard model synchronously."""
        now = self._now()
        power_points = self.generate_power_series(now)
        energy_days = self.generate_energy_history(now)

        current_power_kw = (
            power_points[now.hour].power_kw if 0 <= now.hour < len(power_points) else 0.0
        )
        today_energy_kwh = round_to(sum(point.power_kw for point in power_points), 1)
        peak_power_kw = max(point.power_kw for point in power_points)

        return DashboardModel(
            overview=OverviewMetrics(
                current_power_kw=current_power_kw,
                today_energy_kwh=today_energy_kwh,
                peak_power_kw=peak_power_kw,
                co2_avoided_kg=round_to(today_energy_kwh * MOCK_EMISSIONS_KG_PER_KWH, 1),
                last_update_time=None,
            ),
            power=PowerSeries(points=tuple(power_points)),
            energy=EnergyHistory(days=tuple(energy_days)),
        )

    async def fetch_dashboard(
        self,
        config: RuntimeConfig | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DashboardModel:
        """Return a generated model after the artificial delay.

        Args:
            config: Accepted for parity with the live client; unused
            cancel_event: Cancel token; setting it aborts the delay

        Raises:
            SolarDashCancelledError: If the token is set before the delay ends
        """
        if cancel_event is None:
            await asyncio.sleep(self.delay)
        else:
            if cancel_event.is_set():
                raise SolarDashCancelledError("Mock data request cancelled")
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=self.delay)
            except asyncio.TimeoutError:
                pass
            else:
                raise SolarDashCancelledError("Mock data request cancelled")

        _LOGGER.debug("Serving generated dashboard data")
        return self.build()


__all__ = [
    "MOCK_EMISSIONS_KG_PER_KWH",
    "MockDataSource",
]
