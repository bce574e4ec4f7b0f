import asyncio
import functools
from typing import Optional

from .adapters.crypto import CryptoAdapter
from .adapters.equity_index import EquityIndexAdapter
from .adapters.exchange_rate import ExchangeRateAdapter
from .adapters.gold import GoldAdapter
from .cache import MemoCache
from .config import CACHE_TTL_MS
from .fetcher import JsonFetcher
from .logger import feed_logger
from .models import CryptoPrices, DashboardSnapshot, ExchangeRates, HistoricalSeries
from .synthesizer import DEFAULT_PERIOD, SeriesSynthesizer


class MarketDataService:
    """
    Entry point for request handlers. Every operation is memoized in the
    injected MemoCache under `<kind>-<identifier>-<period>` for `ttl_ms`.
    """

    def __init__(
        self,
        fetcher: Optional[JsonFetcher] = None,
        cache: Optional[MemoCache] = None,
        synthesizer: Optional[SeriesSynthesizer] = None,
        ttl_ms: int = CACHE_TTL_MS,
    ):
        self.fetcher = fetcher or JsonFetcher()
        self.cache = cache if cache is not None else MemoCache()
        self.synthesizer = synthesizer or SeriesSynthesizer()
        self.ttl_ms = ttl_ms

        self.exchange_rates = ExchangeRateAdapter(self.fetcher, self.synthesizer)
        self.gold = GoldAdapter(self.fetcher, self.synthesizer)
        self.crypto = CryptoAdapter(self.fetcher, self.synthesizer)
        self.equity_index = EquityIndexAdapter(self.fetcher, self.synthesizer)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.fetcher.aclose()

    async def get_exchange_rate(self, pair: str, period: str = DEFAULT_PERIOD) -> HistoricalSeries:
        return await self.cache.get_or_fetch(
            f"exchange-{pair}-{period}", self.ttl_ms, lambda: self.exchange_rates.fetch(pair, period)
        )

    async def get_gold_price(self, period: str = DEFAULT_PERIOD) -> HistoricalSeries:
        return await self.cache.get_or_fetch(
            f"gold-{period}", self.ttl_ms, lambda: self.gold.fetch(period)
        )

    async def get_crypto_price(self, symbol: str, period: str = DEFAULT_PERIOD) -> HistoricalSeries:
        return await self.cache.get_or_fetch(
            f"crypto-{symbol.upper()}-{period}", self.ttl_ms, lambda: self.crypto.fetch(symbol, period)
        )

    async def get_sp500(self, period: str = DEFAULT_PERIOD) -> HistoricalSeries:
        return await self.cache.get_or_fetch(
            f"sp500-{period}", self.ttl_ms, lambda: self.equity_index.fetch(period)
        )

    async def get_dashboard(
        self,
        exchange_period: str = DEFAULT_PERIOD,
        gold_period: str = DEFAULT_PERIOD,
        crypto_period: str = DEFAULT_PERIOD,
        sp500_period: str = DEFAULT_PERIOD,
    ) -> DashboardSnapshot:
        """
        Fetches every dashboard asset concurrently.

        NOTE: a failure of any single asset (other than the S&P 500, which
        degrades to an empty series) fails the whole snapshot, even when the
        other assets were fetched successfully. The remaining fetches keep
        running after the first failure; their own errors are logged, not raised.
        """
        tasks = [asyncio.ensure_future(coro) for coro in (
            self.get_exchange_rate("USD/KRW", exchange_period),
            self.get_exchange_rate("JPY/KRW", exchange_period),
            self.get_gold_price(gold_period),
            self.get_crypto_price("BTC", crypto_period),
            self.get_crypto_price("ETH", crypto_period),
            self.get_crypto_price("XRP", crypto_period),
            self.get_sp500(sp500_period),
        )]
        try:
            usd_krw, jpy_krw, gold, btc, eth, xrp, sp500 = await asyncio.gather(*tasks)
        except Exception as e:
            feed_logger.error(f"Dashboard snapshot failed: {e}")
            for task in tasks:
                task.add_done_callback(functools.partial(_log_sibling_failure, raised=e))
            raise

        return DashboardSnapshot(
            exchange_rates=ExchangeRates(usd_krw=usd_krw, jpy_krw=jpy_krw),
            gold=gold,
            crypto=CryptoPrices(btc=btc, eth=eth, xrp=xrp),
            sp500=sp500,
        )


def _log_sibling_failure(task: "asyncio.Future", raised: BaseException):
    """Retrieves the exception of a fetch that outlived a failed snapshot."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None and error is not raised:
        feed_logger.warning(f"Dashboard fetch also failed: {error}")


def build_default_service() -> MarketDataService:
    return MarketDataService(
        fetcher=JsonFetcher(),
        cache=MemoCache(),
        synthesizer=SeriesSynthesizer(),
    )
