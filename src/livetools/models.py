"""Shared data models for the live tools data pipeline.

All prices, rates and scores use Decimal. External JSON numbers are converted
with Decimal(str(value)) so float artefacts never leak into the arithmetic.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Provenance(str, Enum):
    """Where the data in a response came from."""

    LIVE = "live"
    PARTIAL = "partial"  # some providers failed, the rest answered
    SYNTHETIC = "synthetic"  # every provider failed, placeholder data substituted

    @classmethod
    def combine(cls, values: "list[Provenance]") -> "Provenance":
        """Fold per-item provenances into one response-level value."""
        if not values:
            return cls.LIVE
        if all(v is cls.LIVE for v in values):
            return cls.LIVE
        if all(v is cls.SYNTHETIC for v in values):
            return cls.SYNTHETIC
        return cls.PARTIAL


class NewsCategory(str, Enum):
    """Feed category used for grouping and filtering articles."""

    MARKET = "market"
    CRYPTO = "crypto"
    ECONOMY = "economy"
    EARNINGS = "earnings"
    GEOPOLITICAL = "geopolitical"


@dataclass(frozen=True)
class PricePoint:
    """One daily close."""

    date: date
    close: Decimal


@dataclass(frozen=True)
class Quote:
    """Normalized security quote from a single provider call."""

    symbol: str
    price: Decimal
    change: Decimal
    change_percent: Decimal
    volume: int
    provider: str
    market_cap: Decimal = Decimal("0")
    pe_ratio: Decimal = Decimal("18.5")
    dividend_yield: Decimal = Decimal("1.8")
    beta: Decimal = Decimal("1.0")
    fifty_two_week_high: Decimal = Decimal("0")
    fifty_two_week_low: Decimal = Decimal("0")
    avg_volume: int = 0
    price_history: tuple[PricePoint, ...] = ()

    @property
    def closes(self) -> list[Decimal]:
        return [p.close for p in self.price_history]


@dataclass(frozen=True)
class RateTable:
    """Exchange rates relative to ``base``.

    Invariant: every value in ``rates`` is a positive finite Decimal.
    """

    base: str
    rates: dict[str, Decimal]
    as_of: date
    providers: tuple[str, ...] = ()


@dataclass(frozen=True)
class NewsSource:
    """An RSS feed to aggregate."""

    name: str
    url: str
    category: NewsCategory


@dataclass(frozen=True)
class NewsArticle:
    """A parsed feed item with sentiment computed once at ingestion."""

    title: str
    summary: str
    url: str
    source: str
    published_at: str
    sentiment_label: str
    sentiment_score: Decimal
    category: NewsCategory
    tickers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderFailure:
    """Why one provider in a chain did not contribute."""

    provider: str
    error_type: str
    message: str


@dataclass
class ChainResult(Generic[T]):
    """Outcome of running a fallback chain.

    ``sources`` lists the providers whose output is contained in ``value``;
    it is empty when the value was synthesized.
    """

    value: T
    provenance: Provenance
    sources: list[str] = field(default_factory=list)
    failures: list[ProviderFailure] = field(default_factory=list)
