from typing import Any, Optional, Protocol, Sequence, Type, TypeVar
from pydantic import BaseModel, ValidationError
import logging

from market_feed.errors import PermanentProviderError, ProviderError
from market_feed.fetcher import JsonFetcher
from market_feed.models import Quote

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class QuoteSource(Protocol):
    """One upstream that can price an asset. Raises ProviderError when it cannot."""
    name: str

    async def fetch_quote(self, fetcher: JsonFetcher, asset: Any) -> Quote: ...


def parse_payload(model: Type[PayloadT], raw: Any, source: str) -> PayloadT:
    """Validates a decoded JSON body against its contract model."""
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Validation failed for {source} payload: {e}")
        raise PermanentProviderError(
            f"{source} returned an unexpected payload", source=source, payload=raw
        ) from e


def to_float(value: Any) -> Optional[float]:
    """Parses numbers sent as strings; None when missing or not a number."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


async def first_available(
    sources: Sequence[QuoteSource],
    fetcher: JsonFetcher,
    asset: Any,
) -> Quote:
    """
    Tries each source strictly in order and returns the first quote obtained.
    Only provider errors move the chain along; anything else propagates as is.

    Raises:
        ProviderError: The last source's error when every source failed.
    """
    if not sources:
        raise ValueError("At least one quote source is required")

    last_error: Optional[ProviderError] = None
    for source in sources:
        try:
            quote = await source.fetch_quote(fetcher, asset)
            if last_error is not None:
                logger.info(f"Fallback source {source.name} answered for {asset}.")
            return quote
        except ProviderError as e:
            logger.warning(f"Source {source.name} failed for {asset}: {e}")
            last_error = e

    raise last_error
