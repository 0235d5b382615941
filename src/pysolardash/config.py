"""Runtime configuration for the dashboard pipeline.

The host overrides compiled-in defaults through a process-wide JSON document
(the ``SOLAR_DASHBOARD_CONFIG`` environment variable). It is read on every
call to :func:`load_runtime_config`, so edits are picked up on the next poll
cycle. The pipeline itself never reads the environment: it receives a
resolved :class:`RuntimeConfig`.

Example:
    # Host side, once per poll cycle
    config = load_runtime_config()

    # Explicit overrides, camelCase (host page shape) or snake_case
    config = resolve_runtime_config(
        {"baseUrl": "https://monitor.example.com", "useMockData": False,
         "endpoints": {"energy": "/api/site/42/energy"}}
    )

    # Serialize / restore
    restored = RuntimeConfig.from_dict(config.to_dict())
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SOLAR_DASHBOARD_CONFIG"

DEFAULT_OVERVIEW_PATH = "/solar/overview"
DEFAULT_ENERGY_PATH = "/solar/energy"


@dataclass(frozen=True)
class EndpointPaths:
    """Endpoint paths appended to ``base_url``."""

    overview: str = DEFAULT_OVERVIEW_PATH
    energy: str = DEFAULT_ENERGY_PATH


@dataclass(frozen=True)
class RuntimeConfig:
    """Resolved configuration for one pipeline invocation.

    Attributes:
        base_url: Monitoring API origin; empty means relative paths
        use_mock_data: Serve synthesized data instead of calling the API
        poll_interval_ms: Delay between poll cycles (ms, > 0)
        request_timeout_ms: Per-request timeout (ms, > 0)
        emissions_kg_per_kwh: Grid emission factor used for CO2 avoided
        history_days: Length of the daily history window (days, > 0)
        endpoints: Overview and energy endpoint paths
    """

    base_url: str = ""
    use_mock_data: bool = True
    poll_interval_ms: int = 15 * 60 * 1000
    request_timeout_ms: int = 10_000
    emissions_kg_per_kwh: float = 0.36
    history_days: int = 30
    endpoints: EndpointPaths = field(default_factory=EndpointPaths)

    @property
    def request_timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self.request_timeout_ms / 1000

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase override shape.

        Returns:
            Dictionary accepted back by :meth:`from_dict` and by
            :func:`resolve_runtime_config`
        """
        return {
            "baseUrl": self.base_url,
            "useMockData": self.use_mock_data,
            "pollIntervalMs": self.poll_interval_ms,
            "requestTimeoutMs": self.request_timeout_ms,
            "emissionsKgPerKwh": self.emissions_kg_per_kwh,
            "historyDays": self.history_days,
            "endpoints": {
                "overview": self.endpoints.overview,
                "energy": self.endpoints.energy,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RuntimeConfig:
        """Create a configuration from a (possibly partial) mapping.

        Missing or malformed fields take their default value.
        """
        return resolve_runtime_config(data)


DEFAULT_CONFIG = RuntimeConfig()

# field name -> accepted override keys
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "base_url": ("baseUrl", "base_url"),
    "use_mock_data": ("useMockData", "use_mock_data"),
    "poll_interval_ms": ("pollIntervalMs", "poll_interval_ms"),
    "request_timeout_ms": ("requestTimeoutMs", "request_timeout_ms"),
    "emissions_kg_per_kwh": ("emissionsKgPerKwh", "emissions_kg_per_kwh"),
    "history_days": ("historyDays", "history_days"),
}


def _lookup(overrides: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[bool, Any]:
    for key in keys:
        if key in overrides and overrides[key] is not None:
            return True, overrides[key]
    return False, None


def _coerce_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _coerce_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _coerce_positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not math.isfinite(value) or value <= 0 or int(value) != value:
        return None
    return int(value)


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value) if math.isfinite(value) else None


_COERCERS = {
    "base_url": _coerce_str,
    "use_mock_data": _coerce_bool,
    "poll_interval_ms": _coerce_positive_int,
    "request_timeout_ms": _coerce_positive_int,
    "emissions_kg_per_kwh": _coerce_float,
    "history_days": _coerce_positive_int,
}


def _resolve_endpoints(raw: Any) -> EndpointPaths:
    defaults = DEFAULT_CONFIG.endpoints
    if not isinstance(raw, Mapping):
        if raw is not None:
            _LOGGER.debug("Ignoring non-mapping endpoints override: %r", raw)
        return defaults

    resolved: dict[str, str] = {}
    for name in ("overview", "energy"):
        value = raw.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            resolved[name] = value
        else:
            _LOGGER.debug("Ignoring invalid endpoints.%s override: %r", name, value)

    return EndpointPaths(
        overview=resolved.get("overview", defaults.overview),
        energy=resolved.get("energy", defaults.energy),
    )


def resolve_runtime_config(overrides: Mapping[str, Any] | None = None) -> RuntimeConfig:
    """Merge an override mapping over the defaults.

    Top-level fields are merged shallowly and ``endpoints`` is merged per
    path. A malformed value never fails resolution: the field keeps its
    default.

    Args:
        overrides: Host override object, camelCase or snake_case keys

    Returns:
        Fresh RuntimeConfig
    """
    if overrides is None:
        return DEFAULT_CONFIG
    if not isinstance(overrides, Mapping):
        _LOGGER.debug("Ignoring non-mapping runtime config override: %r", overrides)
        return DEFAULT_CONFIG

    values: dict[str, Any] = {}
    for name, keys in _FIELD_KEYS.items():
        found, raw = _lookup(overrides, keys)
        if not found:
            continue
        coerced = _COERCERS[name](raw)
        if coerced is None:
            _LOGGER.debug("Ignoring invalid %s override: %r", name, raw)
            continue
        values[name] = coerced

    values["endpoints"] = _resolve_endpoints(overrides.get("endpoints"))
    return RuntimeConfig(**values)


def load_runtime_config(environ: Mapping[str, str] | None = None) -> RuntimeConfig:
    """Resolve the configuration from the process-wide override document.

    Reads ``SOLAR_DASHBOARD_CONFIG`` (a JSON object) at call time; nothing
    is cached.

    Args:
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Fresh RuntimeConfig
    """
    env = os.environ if environ is None else environ
    raw = env.get(CONFIG_ENV_VAR)
    if not raw:
        return DEFAULT_CONFIG

    try:
        overrides = json.loads(raw)
    except ValueError as err:
        _LOGGER.warning("Invalid JSON in %s, using defaults: %s", CONFIG_ENV_VAR, err)
        return DEFAULT_CONFIG

    return resolve_runtime_config(overrides)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "EndpointPaths",
    "RuntimeConfig",
    "load_runtime_config",
    "resolve_runtime_config",
]
