"""JSON endpoints for the live tools widgets.

Every data response carries X-Data-Source (live | partial | synthetic) and
X-Timestamp so the client can disclose how reliable the numbers are.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from livetools.api.serializers import (
    article_to_dict,
    failures_to_list,
    quote_to_dict,
    rate_table_to_dict,
    to_json,
)
from livetools.exceptions import InvalidInputError
from livetools.logging import get_logger
from livetools.metrics import arbitrage, dca, health
from livetools.models import Provenance
from livetools.services.etf_service import parse_symbols
from livetools.services.rates_service import normalize_currency

logger = get_logger(__name__)

router = APIRouter()

RATES_MAX_AGE = 300
QUOTES_MAX_AGE = 60
NEWS_MAX_AGE = 300

DEFAULT_WEIGHTS = "VTI:30,QQQ:25,ITA:25,SCHD:10,VXUS:10"


def _respond(content: Any, provenance: Provenance, max_age: int) -> JSONResponse:
    return JSONResponse(
        content=content,
        headers={
            "X-Data-Source": provenance.value,
            "X-Timestamp": datetime.now(timezone.utc).isoformat(),
            "Cache-Control": f"public, max-age={max_age}",
        },
    )


def _parse_decimal(name: str, raw: str, minimum: Decimal | None = None) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise InvalidInputError(f"{name} must be a number, got {raw!r}")
    if not value.is_finite():
        raise InvalidInputError(f"{name} must be finite, got {raw!r}")
    if minimum is not None and value < minimum:
        raise InvalidInputError(f"{name} must be at least {minimum}, got {raw!r}")
    return value


def _parse_leg(raw: str, allow_none: bool = False) -> str:
    if allow_none and raw == arbitrage.NONE_SENTINEL:
        return raw
    return normalize_currency(raw)


def _parse_weights(raw: str) -> dict[str, Decimal]:
    """Parse ``SYM:weight,SYM:weight`` (weights in percent)."""
    weights: dict[str, Decimal] = {}
    for part in raw.split(","):
        if not part.strip():
            continue
        symbol, sep, weight = part.partition(":")
        if not sep or not symbol.strip():
            raise InvalidInputError(f"Expected SYMBOL:WEIGHT, got {part.strip()!r}")
        (symbol,) = parse_symbols(symbol, [], limit=1)
        weights[symbol] = _parse_decimal(f"weight for {symbol}", weight.strip(), Decimal("0"))
    if not weights:
        raise InvalidInputError("at least one SYMBOL:WEIGHT pair is required")
    return weights


@router.get("/health")
async def get_health() -> JSONResponse:
    """Liveness probe."""
    return JSONResponse(
        content={"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


@router.get("/currency-rates")
async def get_currency_rates(request: Request, base: str = Query("USD")) -> JSONResponse:
    """Consensus exchange rates for ``base`` from all rate providers."""
    result = await request.app.state.rates_service.get_rates(base)
    content = rate_table_to_dict(result.value)
    content["provenance"] = result.provenance.value
    content["failures"] = failures_to_list(result)
    return _respond(content, result.provenance, RATES_MAX_AGE)


@router.get("/etf-data")
async def get_etf_data(request: Request, symbols: str | None = Query(None)) -> JSONResponse:
    """Quotes with 30-day price history, keyed by symbol."""
    settings = request.app.state.settings
    symbol_list = parse_symbols(symbols, settings.etf.default_symbols, settings.etf.max_symbols)
    snapshot = await request.app.state.etf_service.get_quotes(symbol_list)

    content = {
        symbol: quote_to_dict(result.value, result.provenance.value)
        for symbol, result in snapshot.items()
    }
    provenance = Provenance.combine([r.provenance for r in snapshot.values()])
    return _respond(content, provenance, QUOTES_MAX_AGE)


@router.get("/financial-news")
async def get_financial_news(request: Request) -> JSONResponse:
    """Aggregated, sentiment-scored headlines from all configured feeds."""
    result = await request.app.state.news_service.get_digest()
    digest = result.value
    content = {
        "articles": [article_to_dict(a) for a in digest.articles],
        "totalSources": digest.total_sources,
        "successfulSources": digest.successful_sources,
        "sentiment": to_json(digest.sentiment),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return _respond(content, result.provenance, NEWS_MAX_AGE)


@router.get("/arbitrage")
async def get_arbitrage(
    request: Request,
    amount: str = Query("1000"),
    from1: str = Query("USD"),
    to1: str = Query("MXN"),
    from2: str = Query("MXN"),
    to2: str = Query("GBP"),
    from3: str = Query("GBP"),
    to3: str = Query("USD"),
    first_threshold: str = Query("18.95"),
    second_threshold: str = Query("25.50"),
    third_threshold: str = Query("1.38"),
    apy_currency: str = Query("USD"),
) -> JSONResponse:
    """Arbitrage projection over live USD-based rates."""
    value = _parse_decimal("amount", amount)
    route = arbitrage.ArbitrageRoute(
        from1=_parse_leg(from1),
        to1=_parse_leg(to1),
        from2=_parse_leg(from2),
        to2=_parse_leg(to2),
        from3=_parse_leg(from3, allow_none=True),
        to3=_parse_leg(to3, allow_none=True),
    )
    thresholds = arbitrage.TradingThresholds(
        first=_parse_decimal("first_threshold", first_threshold),
        second=_parse_decimal("second_threshold", second_threshold),
        third=_parse_decimal("third_threshold", third_threshold),
    )

    result = await request.app.state.rates_service.get_rates("USD")
    rates = result.value.rates

    live = arbitrage.compute_arbitrage(value, route, rates)
    target = arbitrage.compute_threshold_arbitrage(value, route, thresholds)
    conditions = arbitrage.market_conditions(rates)
    first, second, third = arbitrage.route_rates(route, rates)
    readiness = arbitrage.check_threshold_opportunity(route, rates, thresholds)

    content = {
        "route": route.path,
        "twoWay": route.is_two_way,
        "rates": {"first": str(first), "second": str(second), "third": str(third)},
        "arbitrage": to_json(live),
        "threshold": to_json(target),
        "opportunity": None if readiness is None else {
            **to_json(readiness),
            "allReady": readiness.all_ready,
        },
        "market": to_json(conditions),
        "predictionModel": to_json(arbitrage.prediction_model(route, conditions.trend)),
        "gains": to_json(arbitrage.realistic_gains(live.profit, route, conditions.trend)),
        "thresholdGains": to_json(
            arbitrage.realistic_gains(target.profit, route, conditions.trend)
        ),
        "apy": to_json(arbitrage.apy_gains(value, normalize_currency(apy_currency))),
        "provenance": result.provenance.value,
    }
    logger.info("arbitrage_computed", path=route.path, profit=str(live.profit))
    return _respond(content, result.provenance, RATES_MAX_AGE)


@router.get("/dca-projection")
async def get_dca_projection(
    request: Request,
    weights: str = Query(DEFAULT_WEIGHTS),
    age: int = Query(23),
    payment: str = Query("153.85"),
    frequency: dca.PaymentFrequency = Query(dca.PaymentFrequency.BIWEEKLY),
) -> JSONResponse:
    """Portfolio DCA projection: one month, one year and to retirement."""
    allocation = _parse_weights(weights)
    amount = _parse_decimal("payment", payment, Decimal("0"))
    settings = request.app.state.settings
    if len(allocation) > settings.etf.max_symbols:
        raise InvalidInputError(f"At most {settings.etf.max_symbols} ETFs per portfolio")

    snapshot = await request.app.state.etf_service.get_quotes(list(allocation))
    stats = {symbol: dca.EtfStats.from_quote(r.value) for symbol, r in snapshot.items()}
    projection = dca.project_portfolio(
        allocation,
        stats,
        age,
        amount,
        frequency,
        datetime.now(timezone.utc).date(),
    )

    provenance = Provenance.combine([r.provenance for r in snapshot.values()])
    content = to_json(projection)
    content["etfs"] = to_json(stats)
    content["provenance"] = provenance.value
    return _respond(content, provenance, QUOTES_MAX_AGE)


@router.get("/etf-health")
async def get_etf_health(request: Request, symbols: str | None = Query(None)) -> JSONResponse:
    """Risk level, predicted return and recommendation per ETF."""
    settings = request.app.state.settings
    symbol_list = parse_symbols(symbols, settings.etf.default_symbols, settings.etf.max_symbols)
    snapshot = await request.app.state.etf_service.get_quotes(symbol_list)

    regime = health.market_regime(datetime.now(timezone.utc))
    content = {
        symbol: {
            **to_json(health.predict_etf_health(r.value, r.value.closes, regime)),
            "provenance": r.provenance.value,
        }
        for symbol, r in snapshot.items()
    }
    provenance = Provenance.combine([r.provenance for r in snapshot.values()])
    return _respond(content, provenance, QUOTES_MAX_AGE)
