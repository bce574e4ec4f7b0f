from .fx import FxRatesPayload
from .crypto import (
    BinanceTicker,
    CoinCapAsset,
    CoinCapAssetPayload,
    CoinGeckoPrice,
    CoinGeckoPricePayload,
)
from .equity import ChartMeta, ChartResult, Chart, YahooChartPayload
