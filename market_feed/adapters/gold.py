import logging

from market_feed.config import (
    COINGECKO_SIMPLE_PRICE_URL,
    GOLD_USD_PER_OUNCE,
    GOLD_UNIT_GRAMS,
    GRAMS_PER_TROY_OUNCE,
)
from market_feed.contracts import CoinGeckoPricePayload
from market_feed.errors import PermanentProviderError
from market_feed.fetcher import JsonFetcher
from market_feed.models import HistoricalSeries, Quote
from market_feed.synthesizer import SeriesSynthesizer
from .base import first_available, parse_payload
from .exchange_rate import fetch_usd_krw

logger = logging.getLogger(__name__)

# Gold-backed token tracking one troy ounce
GOLD_PROXY_ID = "pax-gold"
# Converts a per-ounce price into a per-3.75g price
OUNCE_TO_UNIT = GOLD_UNIT_GRAMS / GRAMS_PER_TROY_OUNCE


class CoinGeckoGoldSource:
    """Gold priced through the PAX Gold token, already quoted in KRW."""
    name = "coingecko-gold"

    async def fetch_quote(self, fetcher: JsonFetcher, asset: str) -> Quote:
        raw = await fetcher.fetch_json(
            COINGECKO_SIMPLE_PRICE_URL,
            params={"ids": GOLD_PROXY_ID, "vs_currencies": "krw", "include_24hr_change": "true"},
        )
        price = parse_payload(CoinGeckoPricePayload, raw, self.name).get(GOLD_PROXY_ID)
        if price is None or not price.krw:
            raise PermanentProviderError(f"No KRW price for {GOLD_PROXY_ID}", source=self.name, payload=raw)

        return Quote(
            value=price.krw * OUNCE_TO_UNIT,
            change24h=price.krw_24h_change or 0.0,
            source=self.name,
        )


class FxDerivedGoldSource:
    """
    Estimates gold from a fixed USD/oz price and the live USD/KRW rate.
    The 24h change is unknown here and reported as 0.
    """
    name = "fx-derived-gold"

    async def fetch_quote(self, fetcher: JsonFetcher, asset: str) -> Quote:
        usd_krw = await fetch_usd_krw(fetcher)
        return Quote(
            value=GOLD_USD_PER_OUNCE * usd_krw * OUNCE_TO_UNIT,
            change24h=0.0,
            source=self.name,
        )


class GoldAdapter:
    def __init__(self, fetcher: JsonFetcher, synthesizer: SeriesSynthesizer, sources=None):
        self._fetcher = fetcher
        self._synthesizer = synthesizer
        self._sources = sources or [CoinGeckoGoldSource(), FxDerivedGoldSource()]

    async def fetch(self, period: str) -> HistoricalSeries:
        quote = await first_available(self._sources, self._fetcher, "gold")
        return HistoricalSeries(
            current=quote.value,
            change24h=quote.change24h or 0.0,
            history=self._synthesizer.generate(quote.value, period),
        )
