"""Provider adapters -- one external data source per class.

Rate, quote, history and RSS adapters share HttpProvider for bounded,
one-shot HTTP calls; synthetic builders stand in when a chain is allowed
to fabricate data.
"""

from livetools.providers.client import (
    HistoryProvider,
    HttpProvider,
    NewsFeedProvider,
    QuoteProvider,
    RateProvider,
)
from livetools.providers.news import NEWS_SOURCES, RssFeedProvider, build_feed_providers
from livetools.providers.quotes import (
    AlphaVantageProvider,
    FmpProvider,
    YahooChartProvider,
    YahooHistoryProvider,
    build_quote_providers,
)
from livetools.providers.rates import (
    CurrencyApiProvider,
    ExchangeRateApiProvider,
    ExchangerateHostProvider,
    FixerProvider,
    FrankfurterProvider,
    OpenErApiProvider,
    build_rate_providers,
)
from livetools.providers.synthetic import synthetic_history, synthetic_quote, synthetic_rates

__all__ = [
    "AlphaVantageProvider",
    "CurrencyApiProvider",
    "ExchangeRateApiProvider",
    "ExchangerateHostProvider",
    "FixerProvider",
    "FmpProvider",
    "FrankfurterProvider",
    "HistoryProvider",
    "HttpProvider",
    "NEWS_SOURCES",
    "NewsFeedProvider",
    "OpenErApiProvider",
    "QuoteProvider",
    "RateProvider",
    "RssFeedProvider",
    "YahooChartProvider",
    "YahooHistoryProvider",
    "build_feed_providers",
    "build_quote_providers",
    "build_rate_providers",
    "synthetic_history",
    "synthetic_quote",
    "synthetic_rates",
]
