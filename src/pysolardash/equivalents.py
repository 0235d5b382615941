"""Everyday equivalents of the headline figures.

Rough conversions shown next to the metrics: kettles boiled and laptops
charged with today's energy, average homes powered by the current output.
"""

from __future__ import annotations

from dataclasses import dataclass

from pysolardash.models import OverviewMetrics
from pysolardash.units import round_to

KETTLE_BOIL_KWH = 0.11
MACBOOK_CHARGE_KWH = 0.07
AVG_HOME_POWER_KW = 1.25


def to_kettles(energy_kwh: float) -> float:
    """Number of kettle boils ``energy_kwh`` covers."""
    return energy_kwh / KETTLE_BOIL_KWH


def to_macbooks(energy_kwh: float) -> float:
    """Number of full laptop charges ``energy_kwh`` covers."""
    return energy_kwh / MACBOOK_CHARGE_KWH


def to_homes(power_kw: float) -> float:
    """Number of average homes ``power_kw`` could supply right now."""
    return power_kw / AVG_HOME_POWER_KW


@dataclass(frozen=True)
class Equivalents:
    """Equivalents derived from one overview, unrounded."""

    kettles: float
    macbooks: float
    homes: float

    @classmethod
    def from_overview(cls, overview: OverviewMetrics) -> Equivalents:
        return cls(
            kettles=to_kettles(overview.today_energy_kwh),
            macbooks=to_macbooks(overview.today_energy_kwh),
            homes=to_homes(overview.current_power_kw),
        )

    def to_dict(self) -> dict[str, int]:
        """Whole-number counts, as displayed."""
        return {
            "kettles": int(round_to(self.kettles, 0)),
            "macbooks": int(round_to(self.macbooks, 0)),
            "homes": int(round_to(self.homes, 0)),
        }


__all__ = [
    "AVG_HOME_POWER_KW",
    "Equivalents",
    "KETTLE_BOIL_KWH",
    "MACBOOK_CHARGE_KWH",
    "to_homes",
    "to_kettles",
    "to_macbooks",
]
