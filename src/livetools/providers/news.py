"""RSS feed adapter and the default feed list.

Feeds are parsed with regular expressions rather than an XML parser: real
feeds are frequently not well-formed, and only a handful of tags are needed.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from livetools.metrics.sentiment import (
    DEFAULT_LEXICON,
    SentimentLexicon,
    extract_tickers,
    score_sentiment,
)
from livetools.models import NewsArticle, NewsCategory, NewsSource
from livetools.providers.client import HttpProvider, NewsFeedProvider

_ITEM_RE = re.compile(r"<item[^>]*>[\s\S]*?</item>", re.IGNORECASE)
_CDATA_RE = re.compile(r"<!\[CDATA\[([\s\S]*?)\]\]>")
_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[^;\s]+;")
_SPACE_RE = re.compile(r"\s+")

NEWS_SOURCES: tuple[NewsSource, ...] = (
    NewsSource("MarketWatch", "https://www.marketwatch.com/rss/topstories", NewsCategory.MARKET),
    NewsSource("Yahoo Finance", "https://feeds.finance.yahoo.com/rss/2.0/headline", NewsCategory.MARKET),
    NewsSource("Seeking Alpha", "https://seekingalpha.com/market_currents.xml", NewsCategory.MARKET),
    NewsSource("The Motley Fool", "https://www.fool.com/feeds/index.aspx", NewsCategory.MARKET),
    NewsSource("Benzinga", "https://www.benzinga.com/feed", NewsCategory.MARKET),
    NewsSource("CoinDesk", "https://www.coindesk.com/arc/outboundfeeds/rss/", NewsCategory.CRYPTO),
    NewsSource("Cointelegraph", "https://cointelegraph.com/rss", NewsCategory.CRYPTO),
    NewsSource("CryptoSlate", "https://cryptoslate.com/feed/", NewsCategory.CRYPTO),
    NewsSource("Decrypt", "https://decrypt.co/feed", NewsCategory.CRYPTO),
    NewsSource("The Block", "https://www.theblockcrypto.com/rss.xml", NewsCategory.CRYPTO),
    NewsSource("Reuters Business", "https://feeds.reuters.com/reuters/businessNews", NewsCategory.ECONOMY),
    NewsSource("Bloomberg Economics", "https://feeds.bloomberg.com/economics/news.rss", NewsCategory.ECONOMY),
    NewsSource("Financial Times", "https://www.ft.com/rss/home/us", NewsCategory.ECONOMY),
    NewsSource("Wall Street Journal", "https://feeds.a.dj.com/rss/RSSMarketsMain.xml", NewsCategory.ECONOMY),
    NewsSource("CNBC Economics", "https://www.cnbc.com/id/20910258/device/rss/rss.html", NewsCategory.ECONOMY),
    NewsSource("Earnings Whispers", "https://www.earningswhispers.com/rss/earnings", NewsCategory.EARNINGS),
    NewsSource("Zacks Earnings", "https://www.zacks.com/rss/earnings.xml", NewsCategory.EARNINGS),
    NewsSource("StreetInsider Earnings", "https://www.streetinsider.com/rss_earnings.php", NewsCategory.EARNINGS),
    NewsSource("TheStreet Earnings", "https://www.thestreet.com/rss/earnings", NewsCategory.EARNINGS),
    NewsSource("Investor's Business Daily", "https://www.investors.com/feed/", NewsCategory.EARNINGS),
    NewsSource("Reuters World", "https://feeds.reuters.com/Reuters/worldNews", NewsCategory.GEOPOLITICAL),
    NewsSource("BBC World", "http://feeds.bbci.co.uk/news/world/rss.xml", NewsCategory.GEOPOLITICAL),
    NewsSource("Associated Press", "https://feeds.apnews.com/rss/apf-topnews", NewsCategory.GEOPOLITICAL),
    NewsSource("Foreign Affairs", "https://www.foreignaffairs.com/rss.xml", NewsCategory.GEOPOLITICAL),
    NewsSource("Politico", "https://www.politico.com/rss/politicopicks.xml", NewsCategory.GEOPOLITICAL),
)


def extract_tag(xml: str, tag: str) -> str:
    """Return the inner text of the first ``<tag>`` element, CDATA unwrapped."""
    match = re.search(rf"<{tag}[^>]*>([\s\S]*?)</{tag}>", xml, re.IGNORECASE)
    if not match:
        return ""
    return _CDATA_RE.sub(r"\1", match.group(1)).strip()


def clean_text(text: str) -> str:
    """Strip markup and entities, collapse whitespace."""
    text = _TAG_RE.sub("", text)
    text = _ENTITY_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", text).strip()


def parse_published(raw: str) -> datetime | None:
    """Parse an RFC 822 (RSS) or ISO 8601 (Atom) timestamp as aware UTC."""
    if not raw:
        return None
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_feed(
    xml: str,
    source: NewsSource,
    limit: int = 6,
    lexicon: SentimentLexicon = DEFAULT_LEXICON,
    now: datetime | None = None,
) -> list[NewsArticle]:
    """Turn the first ``limit`` RSS items into scored articles.

    Items without a title or a link are skipped. Items without a parseable
    date are stamped with ``now``.
    """
    fetched_at = now or datetime.now(timezone.utc)
    articles = []
    for item in _ITEM_RE.findall(xml)[:limit]:
        title = extract_tag(item, "title")
        description = extract_tag(item, "description") or extract_tag(item, "summary")
        link = extract_tag(item, "link") or extract_tag(item, "guid")
        if not title or not link:
            continue

        published = parse_published(
            extract_tag(item, "pubDate") or extract_tag(item, "published")
        ) or fetched_at
        raw_text = f"{title} {description}"
        sentiment = score_sentiment(raw_text, lexicon)
        articles.append(
            NewsArticle(
                title=clean_text(title),
                summary=clean_text(description or title),
                url=clean_text(link),
                source=source.name,
                published_at=published.isoformat(),
                sentiment_label=sentiment.label,
                sentiment_score=sentiment.score,
                category=source.category,
                tickers=tuple(extract_tickers(raw_text)),
            )
        )
    return articles


class RssFeedProvider(HttpProvider, NewsFeedProvider):
    """One RSS feed. An empty feed is a successful empty fetch, not an error."""

    def __init__(
        self,
        source: NewsSource,
        items_per_source: int = 6,
        lexicon: SentimentLexicon = DEFAULT_LEXICON,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.source = source
        self.name = source.name
        self._limit = items_per_source
        self._lexicon = lexicon

    async def fetch_articles(self) -> list[NewsArticle]:
        xml = await self._get_text(self.source.url)
        if "<item" not in xml.lower() and "<rss" not in xml.lower() and "<feed" not in xml.lower():
            raise self._malformed("response is not an RSS document")
        return parse_feed(xml, self.source, self._limit, self._lexicon)


def build_feed_providers(
    sources: tuple[NewsSource, ...] | list[NewsSource],
    timeout: float,
    user_agent: str,
    items_per_source: int = 6,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[NewsFeedProvider]:
    return [
        RssFeedProvider(
            source,
            items_per_source=items_per_source,
            timeout=timeout,
            user_agent=user_agent,
            transport=transport,
        )
        for source in sources
    ]
