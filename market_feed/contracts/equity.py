from pydantic import BaseModel, ConfigDict, Field
from typing import List


class ChartMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    regularMarketPrice: float
    chartPreviousClose: float


class ChartResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meta: ChartMeta


class Chart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: List[ChartResult] = Field(..., min_length=1)


class YahooChartPayload(BaseModel):
    """Only the chart meta block is read; indicators and timestamps are ignored."""
    model_config = ConfigDict(extra="ignore")

    chart: Chart
