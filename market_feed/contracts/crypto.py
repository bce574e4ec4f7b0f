from pydantic import BaseModel, ConfigDict, RootModel
from typing import Dict, Optional


class BinanceTicker(BaseModel):
    """24h rolling ticker. Binance sends numbers as strings."""
    model_config = ConfigDict(extra="ignore")

    symbol: Optional[str] = None
    lastPrice: Optional[str] = None
    priceChangePercent: Optional[str] = None


class CoinCapAsset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    priceUsd: Optional[str] = None
    changePercent24Hr: Optional[str] = None


class CoinCapAssetPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: Optional[CoinCapAsset] = None


class CoinGeckoPrice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    krw: Optional[float] = None
    krw_24h_change: Optional[float] = None


class CoinGeckoPricePayload(RootModel[Dict[str, CoinGeckoPrice]]):
    """Simple-price response keyed by coin id, e.g. {"pax-gold": {"krw": 3900000.0}}."""

    def get(self, coin_id: str) -> Optional[CoinGeckoPrice]:
        return self.root.get(coin_id)
