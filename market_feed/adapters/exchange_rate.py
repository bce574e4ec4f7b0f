from typing import Dict
import logging

from market_feed.config import FX_RATES_URL, DEFAULT_USD_KRW
from market_feed.contracts import FxRatesPayload
from market_feed.errors import PermanentProviderError
from market_feed.fetcher import JsonFetcher
from market_feed.models import HistoricalSeries
from market_feed.synthesizer import SeriesSynthesizer, change_from_history
from .base import parse_payload

logger = logging.getLogger(__name__)

SUPPORTED_PAIRS = ("USD/KRW", "JPY/KRW")


async def fetch_usd_rates(fetcher: JsonFetcher) -> Dict[str, float]:
    """Latest USD-based rates keyed by upper-case currency code."""
    raw = await fetcher.fetch_json(FX_RATES_URL)
    payload = parse_payload(FxRatesPayload, raw, "fx-rates")
    return {code.upper(): rate for code, rate in payload.rates.items()}


async def fetch_usd_krw(fetcher: JsonFetcher) -> float:
    """
    USD/KRW for unit conversion. A payload that is unusable (e.g. no `rates`
    block) counts as having no KRW rate; transport failures still propagate.
    """
    try:
        rates = await fetch_usd_rates(fetcher)
    except PermanentProviderError:
        rates = {}
    rate = rates.get("KRW")
    if not rate:
        logger.warning(f"FX payload has no KRW rate, assuming {DEFAULT_USD_KRW}.")
        return DEFAULT_USD_KRW
    return rate


def cross_rate(rates: Dict[str, float], pair: str) -> float:
    """
    Price of one unit of the base currency in the quote currency, going
    through the USD leg: BASE/QUOTE = (USD->QUOTE) / (USD->BASE).
    """
    base, quote = pair.upper().split("/")
    usd_rates = {"USD": 1.0, **rates}
    try:
        base_rate = usd_rates[base]
        quote_rate = usd_rates[quote]
    except KeyError as e:
        raise PermanentProviderError(
            f"FX payload has no rate for {e.args[0]}", source="fx-rates"
        ) from e
    if not base_rate:
        raise PermanentProviderError(f"FX payload has a zero rate for {base}", source="fx-rates")
    return quote_rate / base_rate


class ExchangeRateAdapter:
    """Single-source FX adapter; errors propagate to the caller untouched."""

    def __init__(self, fetcher: JsonFetcher, synthesizer: SeriesSynthesizer):
        self._fetcher = fetcher
        self._synthesizer = synthesizer

    async def fetch(self, pair: str, period: str) -> HistoricalSeries:
        rates = await fetch_usd_rates(self._fetcher)

        if pair in SUPPORTED_PAIRS:
            current = cross_rate(rates, pair)
        else:
            logger.warning(f"No rate mapping for pair {pair!r}, reporting 0.")
            current = 0.0

        # The source reports no change of its own, so derive it from the series
        history = self._synthesizer.generate(current, period)
        return HistoricalSeries(
            current=current,
            change24h=change_from_history(history),
            history=history,
        )
