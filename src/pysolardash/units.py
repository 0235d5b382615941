"""Unit conversion helpers.

The monitoring API reports energy in either Wh or kWh (the ``unit`` field of
an energy series) and power in W. The dashboard model is expressed in kW and
kWh. All helpers are pure and total: invalid input resolves to a fallback
value instead of raising.

Quarter-hour energy to average power:
    A 15 minute reading of ``E`` Wh is an average of ``E / 0.25h = 4E`` W,
    i.e. ``4E / 1000 = E / 250`` kW.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

WH_PER_KWH = 1000.0
W_PER_KW = 1000.0

# Wh in one 15 minute interval -> average kW over that interval
QUARTER_HOUR_WH_PER_KW = 250.0

_INTEGRAL_FLOAT_LIMIT = 2.0**52


def to_number(value: Any, fallback: float = 0.0) -> float:
    """Coerce a decoded JSON value to a finite float.

    Numbers and numeric strings are converted, ``None`` and blank strings
    count as 0, anything else (or a non-finite result) yields ``fallback``.

    Args:
        value: Raw value from a decoded payload
        fallback: Value returned when coercion fails

    Returns:
        Finite float
    """
    if value is None:
        return 0.0

    if isinstance(value, bool):
        parsed = float(value)
    elif isinstance(value, int | float):
        parsed = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            parsed = float(text)
        except ValueError:
            return fallback
    else:
        return fallback

    return parsed if math.isfinite(parsed) else fallback


def energy_to_wh(value: Any, unit: str | None) -> float:
    """Convert an energy reading to Wh.

    ``unit`` is compared case-insensitively. Only kWh is scaled; a missing
    or unrecognized unit is treated as Wh already.
    """
    normalized_unit = str(unit if unit is not None else "Wh").upper()
    numeric_value = to_number(value)

    if normalized_unit == "KWH":
        return numeric_value * WH_PER_KWH
    return numeric_value


def wh_to_kwh(energy_wh: float) -> float:
    """Convert Wh to kWh."""
    return energy_wh / WH_PER_KWH


def w_to_kw(power_w: float) -> float:
    """Convert W to kW."""
    return power_w / W_PER_KW


def energy_wh_to_average_kw_for_quarter(energy_wh: float) -> float:
    """Convert a quarter-hour energy reading (Wh) to average power (kW)."""
    return energy_wh / QUARTER_HOUR_WH_PER_KW


def round_to(value: float, digits: int) -> float:
    """Round half up to ``digits`` decimals, mapping non-finite input to 0.

    Rounds the exact binary value of ``value`` (so ``1.005`` stays ``1.0``
    at two digits, as fixed-point formatting would print it) rather than
    using banker's rounding.

    Args:
        value: Value to round
        digits: Number of decimal places

    Returns:
        Rounded finite float
    """
    if not isinstance(value, int | float) or not math.isfinite(value):
        return 0.0
    # Floats this large carry no fractional digits
    if abs(value) >= _INTEGRAL_FLOAT_LIMIT:
        return float(value)

    quantum = Decimal(1).scaleb(-digits)
    rounded = float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
    # Avoid -0.0 leaking into the model
    return rounded + 0.0


__all__ = [
    "QUARTER_HOUR_WH_PER_KW",
    "WH_PER_KWH",
    "W_PER_KW",
    "energy_to_wh",
    "energy_wh_to_average_kw_for_quarter",
    "round_to",
    "to_number",
    "w_to_kw",
    "wh_to_kwh",
]
