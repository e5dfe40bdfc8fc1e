"""News pipeline: every feed in parallel, merged newest-first and scored."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from livetools.chain import apply_policy, settle_all
from livetools.config import FallbackPolicy
from livetools.logging import get_logger
from livetools.metrics.sentiment import MarketSentiment, summarize_sentiment
from livetools.models import ChainResult, NewsArticle
from livetools.providers.client import NewsFeedProvider

logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class NewsDigest:
    articles: list[NewsArticle]
    total_sources: int
    successful_sources: int
    sentiment: MarketSentiment = field(default_factory=lambda: summarize_sentiment([]))


def _published(article: NewsArticle) -> datetime:
    try:
        return datetime.fromisoformat(article.published_at)
    except ValueError:
        return _EPOCH


class NewsService:
    """Aggregates RSS feeds.

    Feeds that fail are dropped from the digest. There is no synthetic news:
    under the "synthesize" policy a total outage yields an empty digest
    flagged as synthetic.
    """

    def __init__(
        self,
        feeds: list[NewsFeedProvider],
        max_articles: int = 150,
        policy: FallbackPolicy = "fail",
    ) -> None:
        self._feeds = feeds
        self._max_articles = max_articles
        self._policy = policy

    async def get_digest(self) -> ChainResult[NewsDigest]:
        """Fetch all feeds and return the newest ``max_articles`` articles.

        Raises:
            AllProvidersFailed: If every feed failed and the policy is "fail".
        """
        name = "financial_news"

        async def run() -> ChainResult[NewsDigest]:
            settled = await settle_all(name, [(f.name, f.fetch_articles) for f in self._feeds])
            articles = [a for batch in settled.value for a in batch]
            articles.sort(key=_published, reverse=True)
            articles = articles[: self._max_articles]
            logger.info(
                "news_aggregated",
                sources=len(self._feeds),
                succeeded=len(settled.sources),
                articles=len(articles),
            )
            return ChainResult(
                value=NewsDigest(
                    articles=articles,
                    total_sources=len(self._feeds),
                    successful_sources=len(settled.sources),
                    sentiment=summarize_sentiment(articles),
                ),
                provenance=settled.provenance,
                sources=settled.sources,
                failures=settled.failures,
            )

        return await apply_policy(
            name,
            self._policy,
            run,
            lambda: NewsDigest(articles=[], total_sources=len(self._feeds), successful_sources=0),
        )
