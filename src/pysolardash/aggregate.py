"""Aggregation of normalized series into the dashboard model.

Fallback policy when the intraday (quarter-hour) series is empty, which the
upstream API does early in the morning or when granular data is unavailable:

- ``today_energy_kwh`` falls back to the overview's ``lastDayData`` energy
- ``peak_power_kw`` falls back to the overview's current power

The second fallback reports instantaneous power as "today's peak". It is a
best-effort approximation, not a measured peak.

Everything here is pure and total.
"""

from __future__ import annotations

import logging
from typing import Any

from pysolardash.models import (
    DashboardModel,
    EnergyDay,
    EnergyHistory,
    OverviewMetrics,
    PowerPoint,
    PowerSeries,
)
from pysolardash.normalize import (
    NormalizedSeries,
    normalize_energy_series,
    normalize_overview,
)
from pysolardash.units import (
    energy_to_wh,
    energy_wh_to_average_kw_for_quarter,
    round_to,
    wh_to_kwh,
)

_LOGGER = logging.getLogger(__name__)

# Length of a YYYY-MM-DD prefix
_DATE_LENGTH = 10


def map_intraday_to_power_points(series: NormalizedSeries) -> list[PowerPoint]:
    """Convert quarter-hour energy points to average power points.

    Gaps (``None`` values) are plotted as 0 kW.
    """
    points: list[PowerPoint] = []
    for point in series.points:
        energy_wh = 0.0 if point.value is None else energy_to_wh(point.value, series.unit)
        points.append(
            PowerPoint(
                timestamp=point.timestamp,
                power_kw=round_to(energy_wh_to_average_kw_for_quarter(energy_wh), 2),
            )
        )
    return points


def map_daily_to_energy_days(series: NormalizedSeries) -> list[EnergyDay]:
    """Convert daily energy points to date-only kWh entries."""
    days: list[EnergyDay] = []
    for point in series.points:
        energy_wh = 0.0 if point.value is None else energy_to_wh(point.value, series.unit)
        days.append(
            EnergyDay(
                date=point.timestamp[:_DATE_LENGTH],
                energy_kwh=round_to(wh_to_kwh(energy_wh), 1),
            )
        )
    return days


def sum_energy_kwh(series: NormalizedSeries) -> float:
    """Total energy of a series in kWh, skipping gaps."""
    total_wh = sum(
        energy_to_wh(point.value, series.unit)
        for point in series.points
        if point.value is not None
    )
    return wh_to_kwh(total_wh)


def build_dashboard_model(
    raw_overview: Any,
    raw_intraday: Any,
    raw_daily: Any,
    emissions_kg_per_kwh: float,
) -> DashboardModel:
    """Build the dashboard model from the three decoded endpoint payloads.

    Args:
        raw_overview: Overview endpoint body
        raw_intraday: Energy endpoint body for today, ``QUARTER_OF_AN_HOUR``
        raw_daily: Energy endpoint body for the history window, ``DAY``
        emissions_kg_per_kwh: Grid emission factor for CO2 avoided

    Returns:
        New DashboardModel
    """
    overview = normalize_overview(raw_overview)
    intraday = normalize_energy_series(raw_intraday)
    daily = normalize_energy_series(raw_daily)

    power_points = map_intraday_to_power_points(intraday)
    energy_days = map_daily_to_energy_days(daily)

    if power_points:
        today_energy_kwh = round_to(sum_energy_kwh(intraday), 1)
        peak_power_kw = max(point.power_kw for point in power_points)
    else:
        _LOGGER.debug(
            "Intraday series empty, using overview values (last day %.3f kWh, current %.3f kW)",
            overview.last_day_energy_kwh,
            overview.current_power_kw,
        )
        today_energy_kwh = round_to(overview.last_day_energy_kwh, 1)
        peak_power_kw = overview.current_power_kw

    return DashboardModel(
        overview=OverviewMetrics(
            current_power_kw=round_to(overview.current_power_kw, 2),
            today_energy_kwh=today_energy_kwh,
            peak_power_kw=round_to(peak_power_kw, 2),
            co2_avoided_kg=round_to(today_energy_kwh * emissions_kg_per_kwh, 1),
            last_update_time=overview.last_update_time,
        ),
        power=PowerSeries(points=tuple(power_points)),
        energy=EnergyHistory(days=tuple(energy_days)),
    )


__all__ = [
    "build_dashboard_model",
    "map_daily_to_energy_days",
    "map_intraday_to_power_points",
    "sum_energy_kwh",
]
