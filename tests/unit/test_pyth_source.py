"""Unit tests for the Pyth price source — response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from synthdollar.config import PythConfig
from synthdollar.oracles.pyth import PythPriceSource


@pytest.fixture()
def source() -> PythPriceSource:
    return PythPriceSource(
        PythConfig(
            hermes_url="https://hermes.example.com/v2/updates/price/latest",
            feeds={"ETH": "0xAAA111", "BTC": "bbb222"},
        )
    )


def _make_pyth_response(items: list[dict]) -> dict:
    return {"parsed": items}


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestPythRefresh:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data=_make_pyth_response(
                [
                    {
                        "id": "aaa111",
                        "price": {"price": "200000000000", "expo": -8, "publish_time": 1700000000},
                    },
                    {
                        "id": "bbb222",
                        "price": {"price": "100000000000", "expo": -8, "publish_time": 1700000005},
                    },
                ]
            )
        )

        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                received = await source.refresh()

        assert set(received) == {"aaa111", "bbb222"}
        eth = source.latest_reading("0xAAA111")
        assert eth is not None
        assert eth.price == 2000 * 10**8
        assert eth.decimals == 8
        assert eth.observed_at == 1700000000.0

    @pytest.mark.asyncio
    async def test_query_uses_normalized_ids(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(data=_make_pyth_response([]))

        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                await source.refresh(["0xAAA111"])

        url = mock_session.get.call_args[0][0]
        assert url.endswith("?ids[]=aaa111")

    @pytest.mark.asyncio
    async def test_http_error_keeps_cache(self, source: PythPriceSource) -> None:
        ok_session = _mock_session(
            data=_make_pyth_response(
                [{"id": "aaa111", "price": {"price": "1", "expo": -8, "publish_time": 1}}]
            )
        )
        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=ok_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                await source.refresh()

        with patch(
            "synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=_mock_session(status=500)
        ):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                received = await source.refresh()

        assert received == {}
        assert source.latest_reading("aaa111") is not None

    @pytest.mark.asyncio
    async def test_handles_network_error(self, source: PythPriceSource) -> None:
        mock_session = AsyncMock()
        mock_session.get = MagicMock(side_effect=ConnectionError("timeout"))
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                received = await source.refresh()

        assert received == {}
        assert source.latest_reading("aaa111") is None

    @pytest.mark.asyncio
    async def test_empty_feeds_returns_empty(self) -> None:
        source = PythPriceSource(PythConfig(hermes_url="https://x.com", feeds={}))
        assert await source.refresh() == {}

    @pytest.mark.asyncio
    async def test_malformed_payload_keeps_cache(self, source: PythPriceSource) -> None:
        mock_session = _mock_session()
        mock_session.get.return_value.json = AsyncMock(return_value=[{"id": "aaa111"}])

        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                received = await source.refresh()

        assert received == {}
        assert source.latest_reading("aaa111") is None

    @pytest.mark.asyncio
    async def test_missing_price_block_is_handled(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data=_make_pyth_response([{"id": "aaa111", "price": None}])
        )

        with patch("synthdollar.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("synthdollar.oracles.pyth.aiohttp.TCPConnector"):
                received = await source.refresh()

        assert received == {}
