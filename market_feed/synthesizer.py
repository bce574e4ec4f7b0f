import random
from typing import Dict, List, NamedTuple, Optional

from .cache import Clock, now_ms
from .models import PricePoint

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class PeriodShape(NamedTuple):
    points: int
    interval_ms: int
    start_factor: float  # first point sits at current * start_factor


PERIOD_SHAPES: Dict[str, PeriodShape] = {
    "1day": PeriodShape(24, HOUR_MS, 0.98),
    "1week": PeriodShape(28, 6 * HOUR_MS, 0.95),
    "1month": PeriodShape(30, DAY_MS, 0.90),
    "6month": PeriodShape(180, DAY_MS, 0.85),
    "1year": PeriodShape(365, DAY_MS, 0.80),
}
DEFAULT_PERIOD = "1day"

# How strongly each step is pulled back toward the linear trend line
TREND_PULL = 0.3
# Jitter spans +/- half of this fraction of the previous value
VOLATILITY = 0.02


def shape_for(period: str) -> PeriodShape:
    """Unknown periods are shaped like a single day."""
    return PERIOD_SHAPES.get(period, PERIOD_SHAPES[DEFAULT_PERIOD])


class SeriesSynthesizer:
    """
    Builds a plausible backward-looking series for providers that only expose
    a current value.

    The overall shape is fixed (a rising trend from `current * start_factor`
    to `current`, one point per interval ending now) while the detail between
    the endpoints is random. Pass a seeded `random.Random` and a fixed clock
    to get exactly reproducible output.
    """

    def __init__(self, rng: Optional[random.Random] = None, clock: Optional[Clock] = None):
        self._rng = rng or random.Random()
        self._clock = clock or now_ms

    def generate(self, current: float, period: str) -> List[PricePoint]:
        shape = shape_for(period)
        now = self._clock()
        start_price = current * shape.start_factor

        history: List[PricePoint] = []
        previous = start_price
        last_index = shape.points - 1
        for i in range(shape.points):
            progress = i / last_index if last_index else 1.0
            baseline = start_price + (current - start_price) * progress
            jitter = (self._rng.random() - 0.5) * VOLATILITY
            value = previous + (baseline - previous) * TREND_PULL + previous * jitter
            previous = value
            history.append(PricePoint(
                timestamp=now - (last_index - i) * shape.interval_ms,
                value=round(value, 2),
            ))

        if history:
            history[-1] = PricePoint(timestamp=history[-1].timestamp, value=current)

        history.sort(key=lambda point: point.timestamp)
        return history


def change_from_history(history: List[PricePoint]) -> float:
    """Percent move from the oldest to the newest point; 0 when it cannot be computed."""
    if len(history) < 2:
        return 0.0
    oldest = history[0].value
    newest = history[-1].value
    if oldest == 0:
        return 0.0
    return (newest - oldest) / oldest * 100
