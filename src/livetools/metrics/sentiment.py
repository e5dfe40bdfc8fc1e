"""Keyword sentiment scoring and ticker extraction for news text.

Scoring counts whitespace tokens that contain a positive or a negative
keyword (substring match, so "surges" counts for "surge"). A token can count
on both sides. The score is the positive share of all hits, scaled to 0-100.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from livetools.models import NewsArticle

NEUTRAL_SCORE = Decimal("50")
POSITIVE_ABOVE = Decimal("60")
NEGATIVE_BELOW = Decimal("40")

_TICKER_RE = re.compile(r"\b[A-Z]{1,5}\b")


@dataclass(frozen=True)
class SentimentLexicon:
    """Keyword lists used by score_sentiment."""

    positive: tuple[str, ...] = (
        "gain", "rise", "up", "bull", "growth", "profit", "surge", "rally",
        "boost", "strong", "beat", "exceed", "outperform",
    )
    negative: tuple[str, ...] = (
        "fall", "drop", "down", "bear", "loss", "decline", "crash", "plunge",
        "weak", "miss", "underperform", "concern",
    )


DEFAULT_LEXICON = SentimentLexicon()

DEFAULT_TICKER_STOPWORDS: frozenset[str] = frozenset({
    "THE", "AND", "FOR", "ARE", "BUT", "NOT", "YOU", "ALL", "CAN", "HER",
    "WAS", "ONE", "OUR", "HAD", "WHAT", "SO", "UP", "OUT", "IF", "ABOUT",
    "WHO", "GET", "WHICH", "GO", "ME", "WHEN", "MAKE", "LIKE", "TIME", "NO",
    "JUST", "HIM", "KNOW", "TAKE", "INTO", "YEAR", "YOUR", "GOOD", "SOME",
    "COULD", "THEM", "SEE", "OTHER", "THAN", "THEN", "NOW", "LOOK", "ONLY",
    "COME", "ITS", "OVER", "THINK", "ALSO", "BACK", "AFTER", "USE", "TWO",
    "HOW", "WORK", "FIRST", "WELL", "WAY", "EVEN", "NEW", "WANT", "ANY",
    "THESE", "GIVE", "DAY", "MOST", "US",
})


@dataclass(frozen=True)
class Sentiment:
    label: str
    score: Decimal
    positive_hits: int = 0
    negative_hits: int = 0


def score_sentiment(text: str, lexicon: SentimentLexicon = DEFAULT_LEXICON) -> Sentiment:
    """Classify free text as positive, negative or neutral.

    Args:
        text: Headline and/or summary.
        lexicon: Keyword lists to match against.

    Returns:
        Sentiment with score = positive / (positive + negative) * 100,
        or the neutral 50 when no keyword matched. Label is "positive"
        above 60, "negative" below 40 and "neutral" otherwise.
    """
    positive = 0
    negative = 0
    for token in text.lower().split():
        if any(word in token for word in lexicon.positive):
            positive += 1
        if any(word in token for word in lexicon.negative):
            negative += 1

    total = positive + negative
    if total == 0:
        return Sentiment(label="neutral", score=NEUTRAL_SCORE)

    score = Decimal(positive) / Decimal(total) * 100
    if score > POSITIVE_ABOVE:
        label = "positive"
    elif score < NEGATIVE_BELOW:
        label = "negative"
    else:
        label = "neutral"
    return Sentiment(label=label, score=score, positive_hits=positive, negative_hits=negative)


def extract_tickers(
    text: str,
    stopwords: frozenset[str] = DEFAULT_TICKER_STOPWORDS,
    limit: int = 3,
) -> list[str]:
    """Pull up to ``limit`` ticker-like all-caps words (2-5 letters) from text.

    Order of first appearance is kept; repeats are kept too, matching how
    the headline mentions them.
    """
    candidates = [
        match for match in _TICKER_RE.findall(text)
        if match not in stopwords and 2 <= len(match) <= 5
    ]
    return candidates[:limit]


@dataclass
class CategorySentiment:
    count: int = 0
    average_score: Decimal = NEUTRAL_SCORE
    positive: int = 0
    negative: int = 0
    neutral: int = 0


@dataclass
class MarketSentiment:
    """Aggregate view over a batch of articles."""

    overall_score: Decimal
    trend: str
    article_count: int
    positive: int
    negative: int
    neutral: int
    by_category: dict[str, CategorySentiment] = field(default_factory=dict)


def _trend(score: Decimal) -> str:
    if score > POSITIVE_ABOVE:
        return "bullish"
    if score < NEGATIVE_BELOW:
        return "bearish"
    return "neutral"


def summarize_sentiment(articles: Iterable[NewsArticle]) -> MarketSentiment:
    """Average article scores overall and per category.

    An empty batch is neutral (score 50).
    """
    scores: list[Decimal] = []
    labels = {"positive": 0, "negative": 0, "neutral": 0}
    grouped: dict[str, list[NewsArticle]] = {}
    for article in articles:
        scores.append(article.sentiment_score)
        labels[article.sentiment_label] = labels.get(article.sentiment_label, 0) + 1
        grouped.setdefault(article.category.value, []).append(article)

    overall = (sum(scores, Decimal("0")) / len(scores)) if scores else NEUTRAL_SCORE
    overall = overall.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    by_category: dict[str, CategorySentiment] = {}
    for category, items in sorted(grouped.items()):
        avg = sum((a.sentiment_score for a in items), Decimal("0")) / len(items)
        by_category[category] = CategorySentiment(
            count=len(items),
            average_score=avg.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            positive=sum(1 for a in items if a.sentiment_label == "positive"),
            negative=sum(1 for a in items if a.sentiment_label == "negative"),
            neutral=sum(1 for a in items if a.sentiment_label == "neutral"),
        )

    return MarketSentiment(
        overall_score=overall,
        trend=_trend(overall),
        article_count=len(scores),
        positive=labels["positive"],
        negative=labels["negative"],
        neutral=labels["neutral"],
        by_category=by_category,
    )
