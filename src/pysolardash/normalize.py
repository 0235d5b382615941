"""Normalization of raw endpoint payloads.

Turns decoded JSON into typed, unit-aware intermediate structures:

- :func:`normalize_energy_series` - energy endpoint payload to a
  :class:`NormalizedSeries` of timestamped points
- :func:`normalize_overview` - overview payload to a
  :class:`NormalizedOverview` in kW / kWh

A point value of ``None`` means "no reading for this interval" and is kept
distinct from ``0.0`` ("zero output"). Only aggregation decides to treat a
gap as zero.

Both functions are total: any decoded JSON value is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pysolardash.models import DEFAULT_ENERGY_UNIT, RawOverview, RawSeries
from pysolardash.timestamps import normalize_timestamp
from pysolardash.units import to_number, w_to_kw, wh_to_kwh

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedPoint:
    """One series point with a guaranteed ISO-like timestamp."""

    timestamp: str
    value: float | None


@dataclass(frozen=True)
class NormalizedSeries:
    """Energy series in its reported unit, entry order preserved."""

    unit: str = DEFAULT_ENERGY_UNIT
    points: tuple[NormalizedPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NormalizedOverview:
    """Overview snapshot converted to dashboard units.

    Attributes:
        current_power_kw: Instantaneous production (kW)
        last_day_energy_kwh: ``lastDayData`` energy (kWh); the upstream API
            reports the most recent complete day here
        last_update_time: Raw upstream timestamp string, or None
    """

    current_power_kw: float = 0.0
    last_day_energy_kwh: float = 0.0
    last_update_time: str | None = None


def normalize_energy_series(raw: Any) -> NormalizedSeries:
    """Normalize an energy endpoint payload.

    Accepts ``{"energy": {"unit", "values"}}`` or ``{"unit", "values"}``.
    Entries whose date is not a string are dropped; null values stay None
    and other values are coerced to a finite float (0 when non-numeric).

    Args:
        raw: Decoded JSON body

    Returns:
        NormalizedSeries (empty when the payload has no usable entries)
    """
    series = RawSeries.model_validate(raw)

    points: list[NormalizedPoint] = []
    dropped = 0
    for entry in series.values:
        timestamp = normalize_timestamp(entry.date)
        if timestamp is None:
            dropped += 1
            continue
        value = None if entry.value is None else to_number(entry.value)
        points.append(NormalizedPoint(timestamp=timestamp, value=value))

    if dropped:
        _LOGGER.debug("Dropped %d series entries without a usable date", dropped)

    return NormalizedSeries(unit=series.unit, points=tuple(points))


def _current_power_w(current_power: Any) -> float:
    if isinstance(current_power, Mapping):
        power = current_power.get("power")
        if power is not None:
            return to_number(power)
    return to_number(current_power)


def normalize_overview(raw: Any) -> NormalizedOverview:
    """Normalize an overview endpoint payload.

    Accepts ``{"overview": {...}}`` or the inner object directly.

    Args:
        raw: Decoded JSON body

    Returns:
        NormalizedOverview with power in kW and energy in kWh
    """
    overview = RawOverview.model_validate(raw)

    last_day = overview.last_day_data
    last_day_wh = to_number(last_day.get("energy")) if isinstance(last_day, Mapping) else 0.0

    last_update = overview.last_update_time
    if last_update is not None and not isinstance(last_update, str):
        _LOGGER.warning("Ignoring non-string lastUpdateTime: %r", last_update)
        last_update = None

    return NormalizedOverview(
        current_power_kw=w_to_kw(_current_power_w(overview.current_power)),
        last_day_energy_kwh=wh_to_kwh(last_day_wh),
        last_update_time=last_update,
    )


__all__ = [
    "NormalizedOverview",
    "NormalizedPoint",
    "NormalizedSeries",
    "normalize_energy_series",
    "normalize_overview",
]
