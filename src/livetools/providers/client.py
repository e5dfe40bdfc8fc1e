"""Abstract provider interfaces and the shared HTTP plumbing.

Services depend only on the abstract classes here; each concrete adapter
wraps exactly one external source. Every outbound call opens its own
httpx.AsyncClient, is bounded by asyncio.wait_for, and converts every
transport or status problem into a ProviderError subclass.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from livetools.exceptions import MalformedPayloadError, ProviderHTTPError, ProviderTimeout
from livetools.models import NewsArticle, PricePoint, Quote, RateTable


class HttpProvider:
    """Base for adapters that make one HTTP GET per fetch.

    Args:
        timeout: Seconds allowed for the whole call.
        user_agent: Sent with every request; several feeds reject anonymous clients.
        transport: Optional httpx transport, used by tests to avoid the network.
    """

    name = "http"

    def __init__(
        self,
        timeout: float = 8.0,
        user_agent: str = "Mozilla/5.0 (compatible; LiveTools/1.0)",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    async def _request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        limit = timeout if timeout is not None else self._timeout
        try:
            return await asyncio.wait_for(self._send(url, params, limit), timeout=limit)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise ProviderTimeout(self.name, f"no response within {limit}s")

    async def _send(
        self, url: str, params: dict[str, Any] | None, timeout: float
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=self._transport,
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
        ) as client:
            try:
                response = await client.get(url, params=params)
            except httpx.TimeoutException:
                raise
            except httpx.HTTPError as e:
                raise ProviderHTTPError(self.name, f"transport error: {e}") from e

        if not response.is_success:
            raise ProviderHTTPError(
                self.name,
                f"HTTP {response.status_code} from {response.url.host}",
                status_code=response.status_code,
            )
        return response

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        response = await self._request(url, params, timeout)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedPayloadError(self.name, f"invalid JSON: {e}") from e

    async def _get_text(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> str:
        response = await self._request(url, params, timeout)
        return response.text

    def _malformed(self, message: str) -> MalformedPayloadError:
        return MalformedPayloadError(self.name, message)


def to_decimal(value: Any) -> Decimal | None:
    """Convert a JSON number (or numeric string) to Decimal.

    Returns None for missing, boolean, non-numeric and non-finite values.
    Percent signs are tolerated ("0.45%").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
        if not value:
            return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


class RateProvider(ABC):
    """Source of exchange-rate tables."""

    name: str

    @abstractmethod
    async def fetch_rates(self, base: str) -> RateTable:
        """Return rates relative to ``base``."""
        ...


class QuoteProvider(ABC):
    """Source of single-symbol quotes."""

    name: str

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Quote:
        """Return the current quote for ``symbol``."""
        ...


class HistoryProvider(ABC):
    """Source of daily closing prices."""

    name: str

    @abstractmethod
    async def fetch_history(self, symbol: str, days: int) -> list[PricePoint]:
        """Return up to ``days`` of daily closes, oldest first."""
        ...


class NewsFeedProvider(ABC):
    """Source of news articles (one feed)."""

    name: str

    @abstractmethod
    async def fetch_articles(self) -> list[NewsArticle]:
        """Return the newest articles of this feed."""
        ...
