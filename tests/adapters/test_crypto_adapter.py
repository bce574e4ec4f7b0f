from unittest.mock import AsyncMock

import pytest
import respx
from httpx import Response

from market_feed.adapters.crypto import CRYPTO_ASSETS, CryptoAdapter, resolve_asset
from market_feed.config import (
    BINANCE_TICKER_URL,
    COINCAP_ASSETS_URL,
    COINGECKO_SIMPLE_PRICE_URL,
    FX_RATES_URL,
)
from market_feed.errors import PermanentProviderError, UnsupportedAssetError

FX_PAYLOAD = {"rates": {"KRW": 1300, "JPY": 110}}


@pytest.fixture
def adapter(fetcher, synthesizer):
    return CryptoAdapter(fetcher, synthesizer)


def test_supported_symbols():
    assert set(CRYPTO_ASSETS) == {"BTC", "ETH", "XRP"}
    assert resolve_asset("eth").coincap_id == "ethereum"


@pytest.mark.asyncio
@pytest.mark.parametrize("symbol", ["xyz", "DOGE", "", "btcusdt"])
async def test_unsupported_symbol_fails_before_any_network_call(synthesizer, symbol):
    fetcher = AsyncMock()
    adapter = CryptoAdapter(fetcher, synthesizer)

    with pytest.raises(UnsupportedAssetError):
        await adapter.fetch(symbol, "1day")

    fetcher.fetch_json.assert_not_awaited()


@pytest.mark.asyncio
@respx.mock
async def test_binance_quote_is_converted_to_krw(adapter):
    binance = respx.get(url__startswith=BINANCE_TICKER_URL).mock(
        return_value=Response(200, json={"symbol": "BTCUSDT", "lastPrice": "50000.00", "priceChangePercent": "2.5"})
    )
    respx.get(FX_RATES_URL).mock(return_value=Response(200, json=FX_PAYLOAD))

    series = await adapter.fetch("btc", "1day")

    assert binance.calls.last.request.url.params["symbol"] == "BTCUSDT"
    assert series.current == pytest.approx(50_000 * 1300)
    assert series.change24h == 2.5
    assert series.history[-1].value == series.current


@pytest.mark.asyncio
@respx.mock
async def test_geo_blocked_binance_falls_back_to_coincap_at_once(adapter, sleeper):
    binance = respx.get(url__startswith=BINANCE_TICKER_URL).mock(return_value=Response(451))
    coincap = respx.get(f"{COINCAP_ASSETS_URL}/ethereum").mock(
        return_value=Response(200, json={"data": {"id": "ethereum", "priceUsd": "3000.5", "changePercent24Hr": "-1.25"}})
    )
    respx.get(FX_RATES_URL).mock(return_value=Response(200, json=FX_PAYLOAD))

    series = await adapter.fetch("ETH", "1week")

    assert binance.call_count == 1
    assert coincap.call_count == 1
    sleeper.assert_not_awaited()
    assert series.current == pytest.approx(3000.5 * 1300)
    assert series.change24h == -1.25
    assert len(series.history) == 28


@pytest.mark.asyncio
@respx.mock
async def test_binance_without_price_falls_back_to_coincap(adapter):
    respx.get(url__startswith=BINANCE_TICKER_URL).mock(return_value=Response(200, json={"code": 0}))
    respx.get(f"{COINCAP_ASSETS_URL}/ripple").mock(
        return_value=Response(200, json={"data": {"priceUsd": "0.6", "changePercent24Hr": None}})
    )
    respx.get(FX_RATES_URL).mock(return_value=Response(200, json=FX_PAYLOAD))

    series = await adapter.fetch("XRP", "1day")

    assert series.current == pytest.approx(0.6 * 1300)
    assert series.change24h == 0


@pytest.mark.asyncio
@respx.mock
async def test_coingecko_krw_quote_needs_no_fx_rate(adapter):
    respx.get(url__startswith=BINANCE_TICKER_URL).mock(return_value=Response(451))
    respx.get(f"{COINCAP_ASSETS_URL}/bitcoin").mock(return_value=Response(200, json={"data": None}))
    respx.get(url__startswith=COINGECKO_SIMPLE_PRICE_URL).mock(
        return_value=Response(200, json={"bitcoin": {"krw": 91_000_000, "krw_24h_change": 0.75}})
    )
    # No FX route: respx rejects any request that is not mocked

    series = await adapter.fetch("BTC", "1day")

    assert series.current == 91_000_000
    assert series.change24h == 0.75


@pytest.mark.asyncio
@respx.mock
async def test_last_source_error_propagates_when_all_fail(adapter):
    respx.get(url__startswith=BINANCE_TICKER_URL).mock(return_value=Response(451))
    respx.get(f"{COINCAP_ASSETS_URL}/bitcoin").mock(return_value=Response(404))
    respx.get(url__startswith=COINGECKO_SIMPLE_PRICE_URL).mock(return_value=Response(200, json={}))

    with pytest.raises(PermanentProviderError) as exc_info:
        await adapter.fetch("BTC", "1day")

    assert exc_info.value.source == "coingecko"


@pytest.mark.asyncio
@respx.mock
async def test_usd_quote_converted_with_default_rate_when_fx_payload_is_unusable(adapter):
    respx.get(url__startswith=BINANCE_TICKER_URL).mock(
        return_value=Response(200, json={"lastPrice": "100.0", "priceChangePercent": "1.0"})
    )
    respx.get(FX_RATES_URL).mock(return_value=Response(200, json={"result": "error"}))

    series = await adapter.fetch("BTC", "1day")

    assert series.current == pytest.approx(100.0 * 1320)
