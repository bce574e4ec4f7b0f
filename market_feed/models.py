from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, List, Optional

# --- Series Models ---

class PricePoint(BaseModel):
    """A single point of a price series."""
    timestamp: int  # epoch milliseconds
    value: float


class HistoricalSeries(BaseModel):
    """
    The unified result of every market-data operation: the latest value, its
    percent change over 24 hours and a backward-looking series ending at it.
    """
    current: float
    change24h: float
    history: List[PricePoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def history_ends_at_current(self):
        if self.history and self.history[-1].value != self.current:
            raise ValueError("The most recent history point must equal the current value")
        return self

    @classmethod
    def empty(cls) -> "HistoricalSeries":
        """The zero-valued result handed out instead of an error (degraded result)."""
        return cls(current=0, change24h=0, history=[])


# --- Internal Models ---

class Quote(BaseModel):
    """
    What a single upstream source yields once its payload is normalized.
    `change24h` is None when the source reports no percentage of its own.
    """
    value: float
    change24h: Optional[float] = None
    currency: str = "KRW"
    source: str


class CacheEntry(BaseModel):
    """A memoized value and the epoch-ms instant after which it is stale."""
    model_config = ConfigDict(frozen=True)

    value: Any
    expires_at: int


# --- Aggregator Models ---

class ExchangeRates(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    usd_krw: HistoricalSeries = Field(..., serialization_alias="usdKrw")
    jpy_krw: HistoricalSeries = Field(..., serialization_alias="jpyKrw")


class CryptoPrices(BaseModel):
    btc: HistoricalSeries
    eth: HistoricalSeries
    xrp: HistoricalSeries


class DashboardSnapshot(BaseModel):
    """Everything the dashboard renders, fetched in one go."""
    model_config = ConfigDict(populate_by_name=True)

    exchange_rates: ExchangeRates = Field(..., serialization_alias="exchangeRates")
    gold: HistoricalSeries
    crypto: CryptoPrices
    sp500: HistoricalSeries
