"""Shared test fixtures for the live tools data pipeline."""

import json
from collections.abc import Callable
from datetime import date
from decimal import Decimal

import httpx
import pytest

from livetools.config import (
    AppSettings,
    CurrencySettings,
    EtfSettings,
    NewsSettings,
    ServerSettings,
)
from livetools.models import PricePoint, Quote, RateTable

Handler = Callable[[httpx.Request], httpx.Response]


def json_response(payload: object, status_code: int = 200) -> httpx.Response:
    """Build an httpx response carrying a JSON body."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json"},
    )


def route_transport(routes: dict[str, Handler | httpx.Response]) -> httpx.MockTransport:
    """MockTransport dispatching on URL host (and path prefix when given).

    Keys are ``host`` or ``host/path-prefix``; the longest match wins.
    Unmatched requests get a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        target = f"{request.url.host}{request.url.path}"
        for key in sorted(routes, key=len, reverse=True):
            if target.startswith(key):
                route = routes[key]
                if isinstance(route, httpx.Response):
                    return route
                return route(request)
        return httpx.Response(404, text="not found")

    return httpx.MockTransport(handler)


def timeout_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectTimeout("timed out", request=request)


@pytest.fixture
def mock_settings() -> AppSettings:
    """AppSettings with test defaults (small symbol list, fail-fast rates)."""
    return AppSettings(
        log_level="DEBUG",
        currency=CurrencySettings(
            providers=["frankfurter", "open_er_api", "exchangerate_api"],
            display_codes=[],
            fallback_policy="fail",
        ),
        etf=EtfSettings(
            default_symbols=["VTI", "QQQ"],
            providers=["yahoo", "alpha_vantage", "fmp"],
            fallback_policy="synthesize",
        ),
        news=NewsSettings(fallback_policy="fail"),
        server=ServerSettings(cors_origins=["*"]),
    )


@pytest.fixture
def sample_rates() -> RateTable:
    """USD-based table covering the default arbitrage route and the majors."""
    return RateTable(
        base="USD",
        rates={
            "USD": Decimal("1"),
            "EUR": Decimal("0.92"),
            "GBP": Decimal("0.79"),
            "MXN": Decimal("17.10"),
            "JPY": Decimal("151.20"),
            "CAD": Decimal("1.36"),
            "AUD": Decimal("1.52"),
        },
        as_of=date(2024, 3, 1),
        providers=("frankfurter",),
    )


@pytest.fixture
def sample_quote() -> Quote:
    """A VTI quote with a flat 30-day history."""
    history = tuple(
        PricePoint(date=date(2024, 2, day), close=Decimal("250.00"))
        for day in range(1, 30)
    )
    return Quote(
        symbol="VTI",
        price=Decimal("250.00"),
        change=Decimal("1.25"),
        change_percent=Decimal("0.50"),
        volume=3_000_000,
        provider="yahoo",
        market_cap=Decimal("350000000000"),
        pe_ratio=Decimal("22.1"),
        dividend_yield=Decimal("1.4"),
        beta=Decimal("1.0"),
        fifty_two_week_high=Decimal("260.00"),
        fifty_two_week_low=Decimal("200.00"),
        avg_volume=3_000_000,
        price_history=history,
    )


# ---------------------------------------------------------------------------
# HTTP helpers exposed as fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(name="json_response")
def json_response_fixture() -> Callable[..., httpx.Response]:
    return json_response


@pytest.fixture(name="route_transport")
def route_transport_fixture() -> Callable[..., httpx.MockTransport]:
    return route_transport


@pytest.fixture(name="timeout_handler")
def timeout_handler_fixture() -> Handler:
    return timeout_handler
