"""JSON shaping for API responses.

Field names are camelCased to match the browser widgets; Decimals are
rendered as strings so no precision is lost in transit.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from livetools.models import ChainResult, NewsArticle, Quote, RateTable


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json(obj: Any) -> Any:
    """Recursively convert dataclasses, Decimals, enums and dates to JSON types.

    Dataclass field names are camelCased; plain dict keys are kept as-is
    (currency codes, symbols).
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            _camel(f.name): to_json(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, dict):
        return {k: to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json(item) for item in obj]
    return obj


def rate_table_to_dict(table: RateTable) -> dict[str, Any]:
    return {
        "base": table.base,
        "date": table.as_of.isoformat(),
        "rates": to_json(table.rates),
        "providers": list(table.providers),
    }


def quote_to_dict(quote: Quote, provenance: str) -> dict[str, Any]:
    data = to_json(quote)
    data["provenance"] = provenance
    return data


def article_to_dict(article: NewsArticle) -> dict[str, Any]:
    return {
        "title": article.title,
        "description": article.summary,
        "url": article.url,
        "source": article.source,
        "publishedAt": article.published_at,
        "sentiment": article.sentiment_label,
        "sentimentScore": str(article.sentiment_score),
        "category": article.category.value,
        "tickers": list(article.tickers),
    }


def failures_to_list(result: ChainResult[Any]) -> list[dict[str, str]]:
    return [
        {"provider": f.provider, "errorType": f.error_type, "message": f.message}
        for f in result.failures
    ]
