"""ETF quote and price-history provider adapters.

Quotes are normalized into ``Quote`` with prices rounded to cents. Fields a
provider does not report get conservative defaults (P/E 18.5, dividend yield
1.8%, beta 1.0, 52-week range of +/-15% around the price, 1M volume).
"""

from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from livetools.exceptions import ProviderError
from livetools.logging import get_logger
from livetools.models import PricePoint, Quote
from livetools.providers.client import (
    HistoryProvider,
    HttpProvider,
    QuoteProvider,
    to_decimal,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")

DEFAULT_PE = Decimal("18.5")
DEFAULT_DIVIDEND_YIELD = Decimal("1.8")
DEFAULT_BETA = Decimal("1.0")
DEFAULT_VOLUME = 1_000_000
HIGH_FACTOR = Decimal("1.15")
LOW_FACTOR = Decimal("0.85")


def round_price(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_int(value: Any, default: int) -> int:
    number = to_decimal(value)
    if number is None or number <= 0:
        return default
    return int(number)


def _positive(value: Any) -> Decimal | None:
    number = to_decimal(value)
    if number is None or number <= 0:
        return None
    return number


def build_quote(
    symbol: str,
    provider: str,
    price: Decimal,
    change: Decimal,
    change_percent: Decimal,
    volume: int,
    **extra: Any,
) -> Quote:
    """Assemble a Quote, filling any missing optional field with its default.

    ``extra`` accepts market_cap, pe_ratio, dividend_yield, beta,
    fifty_two_week_high, fifty_two_week_low and avg_volume; None means
    "provider did not report it".
    """
    high = extra.get("fifty_two_week_high") or price * HIGH_FACTOR
    low = extra.get("fifty_two_week_low") or price * LOW_FACTOR
    return Quote(
        symbol=symbol,
        price=round_price(price),
        change=round_price(change),
        change_percent=round_price(change_percent),
        volume=volume,
        provider=provider,
        market_cap=extra.get("market_cap") or Decimal("0"),
        pe_ratio=extra.get("pe_ratio") or DEFAULT_PE,
        dividend_yield=extra.get("dividend_yield") or DEFAULT_DIVIDEND_YIELD,
        beta=extra.get("beta") or DEFAULT_BETA,
        fifty_two_week_high=round_price(high),
        fifty_two_week_low=round_price(low),
        avg_volume=extra.get("avg_volume") or volume,
    )


class YahooChartProvider(HttpProvider, QuoteProvider):
    """Yahoo Finance v8 chart metadata, enriched from the v7 quote endpoint.

    The enrichment call is best-effort: when it fails the quote is still
    returned with default fundamentals.
    """

    name = "yahoo"
    chart_url = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
    quote_url = "https://query1.finance.yahoo.com/v7/finance/quote"

    def __init__(self, enrichment_timeout: float = 5.0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._enrichment_timeout = enrichment_timeout

    async def fetch_quote(self, symbol: str) -> Quote:
        data = await self._get_json(self.chart_url.format(symbol=symbol))
        meta = _first_chart_result(data, self).get("meta")
        if not isinstance(meta, dict):
            raise self._malformed(f"no chart meta for {symbol}")

        price = _positive(meta.get("regularMarketPrice"))
        if price is None:
            raise self._malformed(f"invalid regularMarketPrice for {symbol}")
        previous_close = _positive(meta.get("previousClose")) or price
        change = price - previous_close
        change_percent = change / previous_close * 100
        volume = _to_int(meta.get("regularMarketVolume"), DEFAULT_VOLUME)

        extra = await self._fetch_fundamentals(symbol)
        extra.setdefault("avg_volume", volume)
        return build_quote(symbol, self.name, price, change, change_percent, volume, **extra)

    async def _fetch_fundamentals(self, symbol: str) -> dict[str, Any]:
        try:
            data = await self._get_json(
                self.quote_url,
                params={"symbols": symbol},
                timeout=self._enrichment_timeout,
            )
        except ProviderError as e:
            logger.debug("quote_enrichment_failed", symbol=symbol, error=e.message)
            return {}

        results = (data.get("quoteResponse") or {}).get("result") if isinstance(data, dict) else None
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            return {}
        item = results[0]

        fundamentals: dict[str, Any] = {
            "market_cap": _positive(item.get("marketCap")),
            "pe_ratio": _positive(item.get("trailingPE")),
            "beta": _positive(item.get("beta")),
            "fifty_two_week_high": _positive(item.get("fiftyTwoWeekHigh")),
            "fifty_two_week_low": _positive(item.get("fiftyTwoWeekLow")),
        }
        dividend = _positive(item.get("dividendYield"))
        if dividend is not None:
            fundamentals["dividend_yield"] = dividend * 100
        avg_volume = _to_int(item.get("averageDailyVolume10Day"), 0)
        if avg_volume:
            fundamentals["avg_volume"] = avg_volume
        return fundamentals


class AlphaVantageProvider(HttpProvider, QuoteProvider):
    """Alpha Vantage GLOBAL_QUOTE."""

    name = "alpha_vantage"
    url = "https://www.alphavantage.co/query"

    def __init__(self, api_key: str = "demo", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key

    async def fetch_quote(self, symbol: str) -> Quote:
        data = await self._get_json(
            self.url,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key},
        )
        quote = data.get("Global Quote") if isinstance(data, dict) else None
        if not isinstance(quote, dict) or not quote:
            # rate-limited responses carry a "Note" or "Information" key instead
            raise self._malformed(f"no Global Quote for {symbol}")

        price = _positive(quote.get("05. price"))
        if price is None:
            raise self._malformed(f"invalid price for {symbol}")
        change = to_decimal(quote.get("09. change")) or Decimal("0")
        change_percent = to_decimal(quote.get("10. change percent")) or Decimal("0")
        volume = _to_int(quote.get("06. volume"), DEFAULT_VOLUME)
        return build_quote(symbol, self.name, price, change, change_percent, volume)


class FmpProvider(HttpProvider, QuoteProvider):
    """Financial Modeling Prep v3 quote."""

    name = "fmp"
    url = "https://financialmodelingprep.com/api/v3/quote/{symbol}"

    def __init__(self, api_key: str = "demo", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key

    async def fetch_quote(self, symbol: str) -> Quote:
        data = await self._get_json(
            self.url.format(symbol=symbol), params={"apikey": self._api_key}
        )
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise self._malformed(f"no quote for {symbol}")
        item = data[0]

        price = _positive(item.get("price"))
        if price is None:
            raise self._malformed(f"invalid price for {symbol}")
        volume = _to_int(item.get("volume"), DEFAULT_VOLUME)
        return build_quote(
            symbol,
            self.name,
            price,
            to_decimal(item.get("change")) or Decimal("0"),
            to_decimal(item.get("changesPercentage")) or Decimal("0"),
            volume,
            market_cap=_positive(item.get("marketCap")),
            pe_ratio=_positive(item.get("pe")),
            fifty_two_week_high=_positive(item.get("yearHigh")),
            fifty_two_week_low=_positive(item.get("yearLow")),
            avg_volume=_to_int(item.get("avgVolume"), volume),
        )


class YahooHistoryProvider(HttpProvider, HistoryProvider):
    """Daily closes from the Yahoo v8 chart endpoint. Null closes are dropped."""

    name = "yahoo_history"
    url = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

    async def fetch_history(self, symbol: str, days: int) -> list[PricePoint]:
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)
        data = await self._get_json(
            self.url.format(symbol=symbol),
            params={
                "period1": int(start.timestamp()),
                "period2": int(end.timestamp()),
                "interval": "1d",
            },
        )
        result = _first_chart_result(data, self)
        timestamps = result.get("timestamp")
        try:
            closes = result["indicators"]["quote"][0]["close"]
        except (KeyError, IndexError, TypeError):
            closes = None
        if not isinstance(timestamps, list) or not isinstance(closes, list):
            raise self._malformed(f"missing timestamps or closes for {symbol}")

        points = []
        for ts, raw_close in zip(timestamps, closes):
            close = _positive(raw_close)
            if close is None or not isinstance(ts, (int, float)):
                continue
            day: date = datetime.fromtimestamp(ts, tz=timezone.utc).date()
            points.append(PricePoint(date=day, close=round_price(close)))
        if not points:
            raise self._malformed(f"no closes for {symbol}")
        return points


def _first_chart_result(data: Any, provider: HttpProvider) -> dict:
    chart = data.get("chart") if isinstance(data, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        raise provider._malformed("empty chart result")
    return results[0]


QUOTE_PROVIDERS: dict[str, type[HttpProvider]] = {
    YahooChartProvider.name: YahooChartProvider,
    AlphaVantageProvider.name: AlphaVantageProvider,
    FmpProvider.name: FmpProvider,
}


def build_quote_providers(
    names: list[str],
    timeout: float,
    user_agent: str,
    enrichment_timeout: float = 5.0,
    alpha_vantage_key: str = "demo",
    fmp_key: str = "demo",
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[QuoteProvider]:
    """Instantiate quote adapters by registry name, preserving priority order.

    Raises:
        ValueError: If a name is not a known provider.
    """
    common = {"timeout": timeout, "user_agent": user_agent, "transport": transport}
    providers: list[QuoteProvider] = []
    for name in names:
        if name == YahooChartProvider.name:
            providers.append(YahooChartProvider(enrichment_timeout=enrichment_timeout, **common))
        elif name == AlphaVantageProvider.name:
            providers.append(AlphaVantageProvider(api_key=alpha_vantage_key, **common))
        elif name == FmpProvider.name:
            providers.append(FmpProvider(api_key=fmp_key, **common))
        else:
            raise ValueError(
                f"Unknown quote provider {name!r}; expected one of {sorted(QUOTE_PROVIDERS)}"
            )
    return providers
