"""Exception hierarchy for the live tools data pipeline.

Provider adapters raise ProviderError subclasses; the fallback chain runner
converts them into ProviderFailure records and only raises AllProvidersFailed
once every provider of a chain has failed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from livetools.models import ProviderFailure


class LiveToolsError(Exception):
    """Base exception for all live tools errors."""


class ProviderError(LiveToolsError):
    """Raised when a single provider call fails.

    Args:
        provider: Name of the provider adapter that failed.
        message: Human-readable failure description.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderTimeout(ProviderError):
    """Raised when a provider call does not complete within its timeout."""


class ProviderHTTPError(ProviderError):
    """Raised on a non-2xx response or a transport-level failure.

    ``status_code`` is None when no response was received at all
    (DNS failure, connection refused, TLS error).
    """

    def __init__(
        self, provider: str, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(provider, message)
        self.status_code = status_code


class MalformedPayloadError(ProviderError):
    """Raised when a response body does not have the expected shape."""


class AllProvidersFailed(LiveToolsError):
    """Raised when every provider in a chain failed and the chain's policy
    does not allow synthetic fallback data."""

    def __init__(self, chain: str, failures: list[ProviderFailure]) -> None:
        detail = "; ".join(f"{f.provider}: {f.message}" for f in failures)
        super().__init__(
            f"All providers failed for {chain}: {detail}" if detail
            else f"All providers failed for {chain}: no providers configured"
        )
        self.chain = chain
        self.failures = failures


class InvalidInputError(LiveToolsError):
    """Raised when user-supplied parameters to a metric are out of range."""
