"""Data services -- one pipeline per data class, each returning a ChainResult."""

from livetools.services.etf_service import EtfDataService, parse_symbols
from livetools.services.news_service import NewsDigest, NewsService
from livetools.services.rates_service import CurrencyRateService, normalize_currency

__all__ = [
    "CurrencyRateService",
    "EtfDataService",
    "NewsDigest",
    "NewsService",
    "normalize_currency",
    "parse_symbols",
]
