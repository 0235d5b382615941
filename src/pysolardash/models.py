"""Pydantic models for monitoring API payloads and the dashboard model.

Raw payload models decode the two endpoint responses tolerantly. The API
wraps its payload inconsistently (``{"energy": {...}}`` vs the bare inner
object, ``{"overview": {...}}`` vs the bare overview), so both nesting levels
are resolved here in a ``mode="before"`` validator and nothing downstream
looks at the wrapper. Entry fields are typed ``Any``: coercion happens in
:mod:`pysolardash.normalize`, which keeps validation of a raw payload total.

Canonical models are frozen and reject non-finite floats. Attributes are
snake_case; ``model_dump(by_alias=True)`` produces the camelCase contract
consumed by rendering:

    {
        "overview": {"currentPowerKw", "todayEnergyKwh", "peakPowerKw",
                     "co2AvoidedKg", "lastUpdateTime"},
        "power": {"points": [{"timestamp", "powerKw"}]},
        "energy": {"days": [{"date", "energyKwh"}]},
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_ENERGY_UNIT = "Wh"


class TimeUnit(str, Enum):
    """Granularity accepted by the energy endpoint's ``timeUnit`` parameter."""

    QUARTER_OF_AN_HOUR = "QUARTER_OF_AN_HOUR"
    DAY = "DAY"


def _unwrap(data: Any, key: str) -> Any:
    """Return ``data[key]`` when present and not None, else ``data``."""
    if isinstance(data, Mapping):
        inner = data.get(key)
        if inner is not None:
            return inner
    return data


# ============================================================================
# Raw payloads
# ============================================================================


class RawSeriesEntry(BaseModel):
    """One ``{date, value}`` entry of an energy series, undecoded."""

    model_config = ConfigDict(extra="ignore")

    date: Any = None
    value: Any = None


class RawSeries(BaseModel):
    """Energy endpoint payload: a unit and an ordered list of entries.

    Example:
        >>> RawSeries.model_validate(
        ...     {"energy": {"unit": "Wh", "values": [{"date": "2024-05-01", "value": 5}]}}
        ... ).values[0].value
        5
    """

    model_config = ConfigDict(extra="ignore")

    unit: str = DEFAULT_ENERGY_UNIT
    values: list[RawSeriesEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _resolve_shape(cls, data: Any) -> dict[str, Any]:
        energy = _unwrap(data, "energy")
        if not isinstance(energy, Mapping):
            return {}

        unit = energy.get("unit")
        raw_values = energy.get("values")
        values = raw_values if isinstance(raw_values, list) else []

        return {
            "unit": DEFAULT_ENERGY_UNIT if unit is None else str(unit),
            "values": [
                {"date": item.get("date"), "value": item.get("value")}
                if isinstance(item, Mapping)
                else {}
                for item in values
            ],
        }


class RawOverview(BaseModel):
    """Overview endpoint payload, undecoded.

    ``currentPower`` is either ``{"power": W}`` or a bare number of W.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    current_power: Any = Field(default=None, alias="currentPower")
    last_day_data: Any = Field(default=None, alias="lastDayData")
    last_update_time: Any = Field(default=None, alias="lastUpdateTime")

    @model_validator(mode="before")
    @classmethod
    def _resolve_shape(cls, data: Any) -> dict[str, Any]:
        overview = _unwrap(data, "overview")
        if not isinstance(overview, Mapping):
            return {}
        return {
            "currentPower": overview.get("currentPower"),
            "lastDayData": overview.get("lastDayData"),
            "lastUpdateTime": overview.get("lastUpdateTime"),
        }


# ============================================================================
# Canonical dashboard model
# ============================================================================


class _CanonicalModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )


class PowerPoint(_CanonicalModel):
    """Average power over one interval of the intraday curve."""

    timestamp: str
    power_kw: float


class EnergyDay(_CanonicalModel):
    """Energy produced on one day of the history window."""

    date: str
    energy_kwh: float


class OverviewMetrics(_CanonicalModel):
    """Headline figures of the dashboard."""

    current_power_kw: float
    today_energy_kwh: float
    peak_power_kw: float
    co2_avoided_kg: float
    last_update_time: str | None = None


class PowerSeries(_CanonicalModel):
    """Intraday power curve, chronological."""

    points: tuple[PowerPoint, ...] = ()


class EnergyHistory(_CanonicalModel):
    """Daily energy history, oldest first."""

    days: tuple[EnergyDay, ...] = ()


class DashboardModel(_CanonicalModel):
    """Canonical output of one poll cycle.

    Both the live API path and the mock data source produce this model, so
    consumers never need to know where the data came from.
    """

    overview: OverviewMetrics
    power: PowerSeries = Field(default_factory=PowerSeries)
    energy: EnergyHistory = Field(default_factory=EnergyHistory)

    def to_payload(self) -> dict[str, Any]:
        """Dump to the JSON-compatible camelCase contract."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "DEFAULT_ENERGY_UNIT",
    "DashboardModel",
    "EnergyDay",
    "EnergyHistory",
    "OverviewMetrics",
    "PowerPoint",
    "PowerSeries",
    "RawOverview",
    "RawSeries",
    "RawSeriesEntry",
    "TimeUnit",
]
