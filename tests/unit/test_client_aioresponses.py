"""Unit tests for SolarDashClient using aioresponses for HTTP mocking."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from aioresponses import aioresponses
from conftest import BASE_URL, DAILY_URL, INTRADAY_URL, OVERVIEW_URL, TODAY

from pysolardash import SolarDashClient
from pysolardash.client import (
    build_energy_url,
    build_overview_url,
    build_url,
    gather_fail_fast,
)
from pysolardash.config import RuntimeConfig, resolve_runtime_config
from pysolardash.exceptions import (
    SolarDashAPIError,
    SolarDashCancelledError,
    SolarDashConnectionError,
    SolarDashTimeoutError,
)
from pysolardash.models import TimeUnit


def _mock_all(
    mocked_api: aioresponses,
    overview: dict[str, Any],
    intraday: dict[str, Any],
    daily: dict[str, Any],
) -> None:
    mocked_api.get(OVERVIEW_URL, payload=overview)
    mocked_api.get(INTRADAY_URL, payload=intraday)
    mocked_api.get(DAILY_URL, payload=daily)


class TestUrlBuilding:
    """Test URL construction."""

    @pytest.mark.parametrize(
        ("base", "path", "expected"),
        [
            ("https://x.test", "/solar/overview", "https://x.test/solar/overview"),
            ("https://x.test/", "/solar/overview", "https://x.test/solar/overview"),
            ("https://x.test", "solar/overview", "https://x.test/solar/overview"),
            ("https://x.test/api", "energy", "https://x.test/api/energy"),
            ("", "/solar/overview", "/solar/overview"),
        ],
    )
    def test_build_url(self, base: str, path: str, expected: str) -> None:
        assert build_url(base, path) == expected

    def test_overview_url_has_no_query(self, live_config: RuntimeConfig) -> None:
        assert build_overview_url(live_config) == OVERVIEW_URL

    def test_relative_urls_resolve_against_localhost(self) -> None:
        assert build_overview_url(RuntimeConfig()) == "http://localhost/solar/overview"

    def test_energy_url(self, live_config: RuntimeConfig) -> None:
        url = build_energy_url(live_config, "2024-04-02", "2024-05-01", TimeUnit.DAY)
        assert url == DAILY_URL

    def test_energy_url_keeps_existing_query(self) -> None:
        config = resolve_runtime_config(
            {
                "baseUrl": BASE_URL,
                "endpoints": {"energy": "/site/energy?api_key=abc&timeUnit=WEEK"},
            }
        )
        url = build_energy_url(config, "2024-05-01", "2024-05-01", "QUARTER_OF_AN_HOUR")

        assert url == (
            f"{BASE_URL}/site/energy?api_key=abc&startDate=2024-05-01"
            "&endDate=2024-05-01&timeUnit=QUARTER_OF_AN_HOUR"
        )


class TestFetchDashboard:
    """Test the full live pipeline."""

    @pytest.mark.asyncio
    async def test_fetch_dashboard(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        overview_response: dict[str, Any],
        intraday_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        _mock_all(mocked_api, overview_response, intraday_response, daily_response)

        async with SolarDashClient() as client:
            model = await client.fetch_dashboard(live_config, today=TODAY)

        assert model.overview.current_power_kw == 1.2
        assert model.overview.today_energy_kwh == 1.8
        assert model.overview.peak_power_kw == 4.0
        assert model.overview.co2_avoided_kg == 0.6
        assert model.overview.last_update_time == "2024-05-01 13:45:12"
        assert len(model.power.points) == 6
        assert [day.date for day in model.energy.days] == [
            "2024-04-29",
            "2024-04-30",
            "2024-05-01",
        ]

    @pytest.mark.asyncio
    async def test_requests_accept_json(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        overview_response: dict[str, Any],
        intraday_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        _mock_all(mocked_api, overview_response, intraday_response, daily_response)

        async with SolarDashClient() as client:
            await client.fetch_dashboard(live_config, today=TODAY)

        calls = [call for calls in mocked_api.requests.values() for call in calls]
        assert len(calls) == 3
        for call in calls:
            assert call.kwargs["headers"]["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_empty_intraday_uses_overview_fallback(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        overview_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        _mock_all(
            mocked_api,
            overview_response,
            {"energy": {"unit": "Wh", "values": []}},
            daily_response,
        )

        async with SolarDashClient() as client:
            model = await client.fetch_dashboard(live_config, today=TODAY)

        assert model.overview.today_energy_kwh == 15.0
        assert model.overview.peak_power_kw == 1.2

    @pytest.mark.asyncio
    async def test_history_days_sets_window(
        self,
        mocked_api: aioresponses,
        overview_response: dict[str, Any],
        intraday_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        config = resolve_runtime_config({"baseUrl": BASE_URL, "historyDays": 7})
        mocked_api.get(OVERVIEW_URL, payload=overview_response)
        mocked_api.get(INTRADAY_URL, payload=intraday_response)
        mocked_api.get(
            f"{BASE_URL}/solar/energy?startDate=2024-04-25&endDate=2024-05-01&timeUnit=DAY",
            payload=daily_response,
        )

        async with SolarDashClient() as client:
            model = await client.fetch_dashboard(config, today=TODAY)

        assert len(model.energy.days) == 3


class TestErrorHandling:
    """Test error taxonomy of the live pipeline."""

    @pytest.mark.asyncio
    async def test_http_error_status(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        overview_response: dict[str, Any],
        intraday_response: dict[str, Any],
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload=overview_response)
        mocked_api.get(INTRADAY_URL, payload=intraday_response)
        mocked_api.get(DAILY_URL, status=500)

        async with SolarDashClient() as client:
            with pytest.raises(SolarDashConnectionError) as exc_info:
                await client.fetch_dashboard(live_config, today=TODAY)

        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_upstream_error_field(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        intraday_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload={"error": "Invalid site id"})
        mocked_api.get(INTRADAY_URL, payload=intraday_response)
        mocked_api.get(DAILY_URL, payload=daily_response)

        async with SolarDashClient() as client:
            with pytest.raises(SolarDashAPIError, match="Invalid site id"):
                await client.fetch_dashboard(live_config, today=TODAY)

    @pytest.mark.asyncio
    async def test_empty_error_field_is_not_an_error(
        self, mocked_api: aioresponses, live_config: RuntimeConfig
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload={"error": None, "overview": {"currentPower": 800}})

        async with SolarDashClient() as client:
            body = await client.get_overview(live_config)

        assert body["overview"]["currentPower"] == 800

    @pytest.mark.asyncio
    async def test_connection_error(
        self,
        mocked_api: aioresponses,
        live_config: RuntimeConfig,
        overview_response: dict[str, Any],
        daily_response: dict[str, Any],
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload=overview_response)
        mocked_api.get(INTRADAY_URL, exception=aiohttp.ClientConnectionError("refused"))
        mocked_api.get(DAILY_URL, payload=daily_response)

        async with SolarDashClient() as client:
            with pytest.raises(SolarDashConnectionError, match="Connection error"):
                await client.fetch_dashboard(live_config, today=TODAY)

    @pytest.mark.asyncio
    async def test_invalid_json(self, mocked_api: aioresponses, live_config: RuntimeConfig) -> None:
        mocked_api.get(OVERVIEW_URL, body="<html>maintenance</html>")

        async with SolarDashClient() as client:
            with pytest.raises(SolarDashConnectionError, match="Invalid JSON"):
                await client.get_overview(live_config)


class TestCancellation:
    """Test timeout and cancel token handling."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(
        self, mocked_api: aioresponses, live_config: RuntimeConfig
    ) -> None:
        """A token set up front fails with cancellation and sends nothing."""
        cancel = asyncio.Event()
        cancel.set()

        async with SolarDashClient() as client:
            with pytest.raises(SolarDashCancelledError) as exc_info:
                await client.fetch_dashboard(live_config, cancel, today=TODAY)

        assert not isinstance(exc_info.value, SolarDashConnectionError)
        assert not mocked_api.requests

    @pytest.mark.asyncio
    async def test_cancel_aborts_in_flight_requests(self, live_config: RuntimeConfig) -> None:
        started = 0
        aborted = 0

        async def slow_request(url: str, timeout: float) -> dict[str, Any]:
            nonlocal started, aborted
            started += 1
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                aborted += 1
                raise
            return {}

        cancel = asyncio.Event()
        client = SolarDashClient()
        with patch.object(client, "_request", AsyncMock(side_effect=slow_request)):
            task = asyncio.create_task(client.fetch_dashboard(live_config, cancel, today=TODAY))
            await asyncio.sleep(0.01)
            cancel.set()

            with pytest.raises(SolarDashCancelledError):
                await asyncio.wait_for(task, timeout=5)

        assert started == 3
        assert aborted == 3
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_is_a_cancellation(self) -> None:
        config = resolve_runtime_config(
            {"baseUrl": BASE_URL, "useMockData": False, "requestTimeoutMs": 20}
        )

        async def slow_request(url: str, timeout: float) -> dict[str, Any]:
            await asyncio.sleep(60)
            return {}

        client = SolarDashClient()
        with patch.object(client, "_request", AsyncMock(side_effect=slow_request)):
            with pytest.raises(SolarDashTimeoutError) as exc_info:
                await client.get_overview(config)

        assert isinstance(exc_info.value, SolarDashCancelledError)
        assert exc_info.value.timeout == pytest.approx(0.02)
        await client.close()

    @pytest.mark.asyncio
    async def test_fast_request_beats_timeout(self, live_config: RuntimeConfig) -> None:
        cancel = asyncio.Event()
        client = SolarDashClient()
        with patch.object(client, "_request", AsyncMock(return_value={"ok": True})):
            body = await client.get_overview(live_config, cancel)

        assert body == {"ok": True}
        await client.close()


class TestGatherFailFast:
    """Test the fail-fast concurrent join."""

    @pytest.mark.asyncio
    async def test_results_in_order(self) -> None:
        async def value(result: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return result

        assert await gather_fail_fast(value(1, 0.02), value(2, 0), value(3, 0.01)) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_first_failure_cancels_siblings(self) -> None:
        sibling_cancelled = asyncio.Event()

        async def slow() -> None:
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                sibling_cancelled.set()
                raise

        async def failing() -> None:
            await asyncio.sleep(0)
            raise SolarDashConnectionError("boom")

        with pytest.raises(SolarDashConnectionError, match="boom"):
            await asyncio.wait_for(gather_fail_fast(slow(), failing()), timeout=5)

        assert sibling_cancelled.is_set()


class TestSessionManagement:
    """Test session ownership."""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(
        self, mocked_api: aioresponses, live_config: RuntimeConfig
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload={"overview": {}})

        async with aiohttp.ClientSession() as session:
            client = SolarDashClient(session=session)
            assert client._owns_session is False

            await client.get_overview(live_config)
            await client.close()

            assert client._session is session
            assert not session.closed

    @pytest.mark.asyncio
    async def test_owned_session_closed(
        self, mocked_api: aioresponses, live_config: RuntimeConfig
    ) -> None:
        mocked_api.get(OVERVIEW_URL, payload={"overview": {}})

        async with SolarDashClient() as client:
            await client.get_overview(live_config)
            session = client._session

        assert session is not None
        assert session.closed
