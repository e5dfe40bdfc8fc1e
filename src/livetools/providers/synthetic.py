"""Placeholder data used when a chain's fallback policy is "synthesize".

Shapes and ranges mirror real responses so downstream metrics keep working,
but anything built here is always reported with SYNTHETIC provenance.
Pass a seeded ``random.Random`` for reproducible output.
"""

import math
import random
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from livetools.models import PricePoint, Quote, RateTable
from livetools.providers.quotes import round_price

SYNTHETIC_PROVIDER = "synthetic"

# Reference levels per USD; modulated by day-of-year and time-of-day waves.
BASE_RATES: dict[str, float] = {
    "USD": 1.0, "EUR": 0.85, "GBP": 0.73, "JPY": 150.0, "CAD": 1.35,
    "AUD": 1.2, "CHF": 0.97, "CNY": 7.25, "INR": 83.1, "BRL": 5.1,
    "MXN": 18.5, "KRW": 1320.0, "SGD": 1.35, "HKD": 7.8, "NOK": 10.8,
    "SEK": 10.5, "DKK": 6.9, "PLN": 4.1, "CZK": 23.3, "HUF": 360.0,
}


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def synthetic_history(
    anchor: Decimal,
    days: int = 30,
    rng: random.Random | None = None,
    today: date | None = None,
    skip_weekends: bool = False,
) -> list[PricePoint]:
    """Daily closes scattered +/-10 around ``anchor``, oldest first."""
    rng = rng or random.Random()
    today = today or datetime.now(timezone.utc).date()
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        if skip_weekends and day.weekday() >= 5:
            continue
        close = anchor + _dec((rng.random() - 0.5) * 20)
        points.append(PricePoint(date=day, close=round_price(max(close, Decimal("0.01")))))
    return points


def synthetic_quote(
    symbol: str,
    rng: random.Random | None = None,
    days: int = 30,
    today: date | None = None,
) -> Quote:
    """A plausible ETF quote: price 100-300, daily change within +/-5.

    History has one close per calendar day, weekends included.
    """
    rng = rng or random.Random()
    price = _dec(100 + rng.random() * 200)
    change = _dec((rng.random() - 0.5) * 10)
    return Quote(
        symbol=symbol,
        price=round_price(price),
        change=round_price(change),
        change_percent=round_price(change / price * 100),
        volume=int(rng.random() * 10_000_000) + 1_000_000,
        provider=SYNTHETIC_PROVIDER,
        market_cap=Decimal(int(rng.random() * 1_000_000_000_000) + 10_000_000_000),
        pe_ratio=round_price(_dec(15 + rng.random() * 20)),
        dividend_yield=round_price(_dec(rng.random() * 5)),
        beta=round_price(_dec(0.5 + rng.random() * 1.5)),
        fifty_two_week_high=round_price(price * _dec(1.1 + rng.random() * 0.2)),
        fifty_two_week_low=round_price(price * _dec(0.8 - rng.random() * 0.2)),
        avg_volume=int(rng.random() * 5_000_000) + 1_000_000,
        price_history=tuple(synthetic_history(price, days, rng, today)),
    )


def synthetic_rates(
    base: str,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> RateTable | None:
    """Seasonal placeholder rates relative to ``base``.

    Each reference rate drifts by at most ~0.8% with the day of year and the
    hour, plus a small global trend and per-currency noise.

    Returns None when ``base`` has no reference level in BASE_RATES.
    """
    if base not in BASE_RATES:
        return None
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    day_of_year = now.timetuple().tm_yday
    hour = now.hour + now.minute / 60

    levels: dict[str, float] = {}
    for i, (code, level) in enumerate(BASE_RATES.items()):
        if code == "USD":
            levels[code] = level
            continue
        wave = math.sin if i % 2 else math.cos
        seasonal = wave(day_of_year / 365 * (i + 1) * math.pi) * 0.005
        intraday = wave(hour / 24 * (i + 1) * math.pi) * 0.001
        levels[code] = level * (1 + seasonal + intraday + 0.002)

    base_level = levels[base]
    trend = math.sin((day_of_year + hour) / 50) * 0.0025
    rates = {base: Decimal("1")}
    for code, level in levels.items():
        if code == base:
            continue
        noise = (rng.random() - 0.5) * 0.005
        rates[code] = _dec(round(level / base_level * (1 + noise + trend), 6))

    return RateTable(base=base, rates=rates, as_of=now.date(), providers=(SYNTHETIC_PROVIDER,))
