from typing import Any, Optional


class ProviderError(Exception):
    """Base class for failures talking to an upstream market-data provider."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.source = source
        self.status_code = status_code
        self.payload = payload


class TransientProviderError(ProviderError):
    """Raised by the fetcher once every attempt (429, timeout, 5xx, ...) has failed."""
    pass


class PermanentProviderError(ProviderError):
    """Raised when an upstream payload is malformed or lacks the fields we need."""
    pass


class UnsupportedAssetError(ValueError):
    """Raised before any network call for a symbol or pair we do not know how to price."""

    def __init__(self, asset: str):
        super().__init__(f"Unsupported asset: {asset}")
        self.asset = asset
