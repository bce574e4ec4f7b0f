import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Upstream endpoints
FX_RATES_URL = os.getenv("FX_RATES_URL", "https://open.er-api.com/v6/latest/USD")
COINGECKO_SIMPLE_PRICE_URL = os.getenv("COINGECKO_SIMPLE_PRICE_URL", "https://api.coingecko.com/api/v3/simple/price")
BINANCE_TICKER_URL = os.getenv("BINANCE_TICKER_URL", "https://api.binance.com/api/v3/ticker/24hr")
COINCAP_ASSETS_URL = os.getenv("COINCAP_ASSETS_URL", "https://api.coincap.io/v2/assets")
EQUITY_INDEX_CHART_URL = os.getenv(
    "EQUITY_INDEX_CHART_URL",
    "https://query1.finance.yahoo.com/v8/finance/chart/%5EGSPC?interval=1d&range=1d",
)

# Fetcher Parameters
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", 10))  # seconds, per attempt
FETCH_MAX_RETRIES = int(os.getenv("FETCH_MAX_RETRIES", 3))
FETCH_BACKOFF_FACTOR = float(os.getenv("FETCH_BACKOFF_FACTOR", 1.0))  # delay = factor * 2 ** attempt
USER_AGENT = os.getenv("USER_AGENT", "Mozilla/5.0 (compatible; FinanceDashboard/1.0)")

# Cache Parameters
CACHE_TTL_MS = int(os.getenv("CACHE_TTL_MS", 10 * 60 * 1000))  # 10 minutes

# Market constants
DEFAULT_USD_KRW = float(os.getenv("DEFAULT_USD_KRW", 1320))  # used when the FX payload has no KRW rate
GOLD_USD_PER_OUNCE = float(os.getenv("GOLD_USD_PER_OUNCE", 2000))
GRAMS_PER_TROY_OUNCE = 31.1035
GOLD_UNIT_GRAMS = 3.75  # one "don"

# Logging
LOG_FILE = os.getenv("LOG_FILE", "market_feed.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
