from typing import Dict, NamedTuple
import logging

from market_feed.config import (
    BINANCE_TICKER_URL,
    COINCAP_ASSETS_URL,
    COINGECKO_SIMPLE_PRICE_URL,
)
from market_feed.contracts import BinanceTicker, CoinCapAssetPayload, CoinGeckoPricePayload
from market_feed.errors import PermanentProviderError, UnsupportedAssetError
from market_feed.fetcher import JsonFetcher
from market_feed.models import HistoricalSeries, Quote
from market_feed.synthesizer import SeriesSynthesizer
from .base import first_available, parse_payload, to_float
from .exchange_rate import fetch_usd_krw

logger = logging.getLogger(__name__)


class CryptoAsset(NamedTuple):
    """Identifiers of one coin on each upstream we query."""
    symbol: str
    binance_symbol: str
    coincap_id: str
    coingecko_id: str


CRYPTO_ASSETS: Dict[str, CryptoAsset] = {
    "BTC": CryptoAsset("BTC", "BTCUSDT", "bitcoin", "bitcoin"),
    "ETH": CryptoAsset("ETH", "ETHUSDT", "ethereum", "ethereum"),
    "XRP": CryptoAsset("XRP", "XRPUSDT", "ripple", "ripple"),
}


def resolve_asset(symbol: str) -> CryptoAsset:
    """Case-insensitive symbol lookup. Raises UnsupportedAssetError for unknown coins."""
    asset = CRYPTO_ASSETS.get(symbol.upper())
    if asset is None:
        raise UnsupportedAssetError(symbol)
    return asset


class BinanceSource:
    """Binance 24h ticker, quoted in USDT. Geo-blocked (451) in some regions."""
    name = "binance"

    async def fetch_quote(self, fetcher: JsonFetcher, asset: CryptoAsset) -> Quote:
        # Asked once: a geo-block (451) will not clear on retry
        raw = await fetcher.fetch_json(
            BINANCE_TICKER_URL, params={"symbol": asset.binance_symbol}, max_retries=1
        )
        ticker = parse_payload(BinanceTicker, raw, self.name)
        price = to_float(ticker.lastPrice)
        if not price:
            raise PermanentProviderError(f"No lastPrice for {asset.binance_symbol}", source=self.name, payload=raw)
        return Quote(
            value=price,
            change24h=to_float(ticker.priceChangePercent) or 0.0,
            currency="USD",
            source=self.name,
        )


class CoinCapSource:
    name = "coincap"

    async def fetch_quote(self, fetcher: JsonFetcher, asset: CryptoAsset) -> Quote:
        raw = await fetcher.fetch_json(f"{COINCAP_ASSETS_URL}/{asset.coincap_id}")
        payload = parse_payload(CoinCapAssetPayload, raw, self.name)
        price = to_float(payload.data.priceUsd) if payload.data else None
        if not price:
            raise PermanentProviderError(f"No priceUsd for {asset.coincap_id}", source=self.name, payload=raw)
        return Quote(
            value=price,
            change24h=to_float(payload.data.changePercent24Hr) or 0.0,
            currency="USD",
            source=self.name,
        )


class CoinGeckoSource:
    name = "coingecko"

    async def fetch_quote(self, fetcher: JsonFetcher, asset: CryptoAsset) -> Quote:
        raw = await fetcher.fetch_json(
            COINGECKO_SIMPLE_PRICE_URL,
            params={"ids": asset.coingecko_id, "vs_currencies": "krw", "include_24hr_change": "true"},
        )
        price = parse_payload(CoinGeckoPricePayload, raw, self.name).get(asset.coingecko_id)
        if price is None or not price.krw:
            raise PermanentProviderError(f"No KRW price for {asset.coingecko_id}", source=self.name, payload=raw)
        return Quote(
            value=price.krw,
            change24h=price.krw_24h_change or 0.0,
            currency="KRW",
            source=self.name,
        )


class CryptoAdapter:
    """
    Prices a coin in KRW from the first source in the chain that answers.
    USD quotes are converted with the live USD/KRW rate, fetched only when
    such a quote wins.
    """

    def __init__(self, fetcher: JsonFetcher, synthesizer: SeriesSynthesizer, sources=None):
        self._fetcher = fetcher
        self._synthesizer = synthesizer
        self._sources = sources or [BinanceSource(), CoinCapSource(), CoinGeckoSource()]

    async def fetch(self, symbol: str, period: str) -> HistoricalSeries:
        asset = resolve_asset(symbol)
        quote = await first_available(self._sources, self._fetcher, asset)

        current = quote.value
        if quote.currency == "USD":
            current *= await fetch_usd_krw(self._fetcher)

        logger.info(f"{asset.symbol} priced by {quote.source}: {current:.2f} KRW")
        return HistoricalSeries(
            current=current,
            change24h=quote.change24h or 0.0,
            history=self._synthesizer.generate(current, period),
        )
