import logging

from market_feed.config import EQUITY_INDEX_CHART_URL
from market_feed.contracts import YahooChartPayload
from market_feed.errors import PermanentProviderError
from market_feed.fetcher import JsonFetcher
from market_feed.models import HistoricalSeries, Quote
from market_feed.synthesizer import SeriesSynthesizer
from .base import parse_payload

logger = logging.getLogger(__name__)


class YahooChartSource:
    name = "yahoo-chart"

    def __init__(self, url: str = EQUITY_INDEX_CHART_URL):
        self.url = url

    async def fetch_quote(self, fetcher: JsonFetcher, asset: str) -> Quote:
        raw = await fetcher.fetch_json(self.url)
        meta = parse_payload(YahooChartPayload, raw, self.name).chart.result[0].meta
        if not meta.chartPreviousClose:
            raise PermanentProviderError("chartPreviousClose is zero", source=self.name, payload=raw)
        change = (meta.regularMarketPrice - meta.chartPreviousClose) / meta.chartPreviousClose * 100
        return Quote(value=meta.regularMarketPrice, change24h=change, currency="USD", source=self.name)


class EquityIndexAdapter:
    """
    S&P 500 level from the index chart.

    Unlike the other adapters this one never raises: any failure is logged
    and turned into HistoricalSeries.empty() so a combined dashboard response
    stays usable while the index source is down.
    """

    def __init__(self, fetcher: JsonFetcher, synthesizer: SeriesSynthesizer, source=None):
        self._fetcher = fetcher
        self._synthesizer = synthesizer
        self._source = source or YahooChartSource()

    async def fetch(self, period: str) -> HistoricalSeries:
        try:
            quote = await self._source.fetch_quote(self._fetcher, "^GSPC")
            return HistoricalSeries(
                current=quote.value,
                change24h=quote.change24h,
                history=self._synthesizer.generate(quote.value, period),
            )
        except Exception as e:
            logger.error(f"S&P 500 lookup failed, returning an empty series: {e}")
            return HistoricalSeries.empty()
