"""Currency arbitrage projections over a USD-based rate table.

A route has up to three conversion legs. Setting ``from3`` or ``to3`` to the
"None" sentinel makes it a 2-leg round trip: convert out on leg one and back
at the same rate, which is profit-neutral by construction.

CRITICAL: All computations use Decimal. The input amount and every money
output are quantized to 8 decimal places, and a 2-leg round trip returns the
quantized amount itself.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from livetools.exceptions import InvalidInputError

NONE_SENTINEL = "None"
USD = "USD"

MONEY_QUANTUM = Decimal("0.00000001")
PERCENT_QUANTUM = Decimal("0.000001")
MAX_AMOUNT = Decimal("1000000000")  # keeps quantized results within 28 digits

ONE = Decimal("1")


@dataclass(frozen=True)
class ArbitrageRoute:
    """Currency legs: from1->to1, from2->to2, from3->to3."""

    from1: str = "USD"
    to1: str = "MXN"
    from2: str = "MXN"
    to2: str = "GBP"
    from3: str = "GBP"
    to3: str = "USD"

    @property
    def is_two_way(self) -> bool:
        return self.from3 == NONE_SENTINEL or self.to3 == NONE_SENTINEL

    @property
    def path(self) -> list[str]:
        if self.is_two_way:
            return [self.from1, self.to1, self.from1]
        return [self.from1, self.to1, self.to2, self.to3]


@dataclass(frozen=True)
class TradingThresholds:
    """Target rates per leg for the threshold ("what if") scenario."""

    first: Decimal = Decimal("18.95")
    second: Decimal = Decimal("25.50")
    third: Decimal = Decimal("1.38")


@dataclass(frozen=True)
class ArbitrageResult:
    initial_amount: Decimal
    after_first: Decimal
    after_second: Decimal
    final_usd: Decimal
    profit: Decimal
    profit_percentage: Decimal
    path: list[str]


@dataclass(frozen=True)
class ThresholdReadiness:
    first_ready: bool
    second_ready: bool
    third_ready: bool

    @property
    def all_ready(self) -> bool:
        return self.first_ready and self.second_ready and self.third_ready


@dataclass(frozen=True)
class MarketConditions:
    volatility_index: Decimal
    trend: str  # "bullish" | "bearish" | "neutral"


@dataclass(frozen=True)
class PredictionModel:
    daily_opportunity_rate: Decimal
    monthly_opportunities: Decimal
    yearly_opportunities: Decimal
    average_hold_time: Decimal
    volatility_factor: Decimal


@dataclass(frozen=True)
class Gains:
    daily: Decimal
    monthly: Decimal
    yearly: Decimal


@dataclass(frozen=True)
class ApyGains:
    yearly_gain: Decimal
    apy_rate: Decimal


def _d(mapping: Mapping[str, str]) -> dict[str, Decimal]:
    return {k: Decimal(v) for k, v in mapping.items()}


@dataclass(frozen=True)
class ArbitrageReference:
    """Reference tables behind the opportunity projections.

    Daily volatility per currency, historical opportunity frequency per
    pair, expected ranges of the majors against USD and savings APY.
    """

    volatility: dict[str, Decimal] = field(default_factory=lambda: _d({
        "USD": "0.008", "MXN": "0.025", "GBP": "0.012", "EUR": "0.010",
        "JPY": "0.014", "CAD": "0.011", "AUD": "0.018", "CHF": "0.009",
        "CNY": "0.008", "INR": "0.022", "BRL": "0.035", "KRW": "0.028",
        "SGD": "0.008", "HKD": "0.003", "NOK": "0.016", "SEK": "0.015",
        "DKK": "0.010", "PLN": "0.020", "CZK": "0.018", "HUF": "0.025",
    }))
    default_volatility: Decimal = Decimal("0.015")
    opportunity_rates: dict[str, Decimal] = field(default_factory=lambda: _d({
        "USD-MXN": "0.12", "USD-GBP": "0.08", "USD-EUR": "0.07", "USD-JPY": "0.09",
        "USD-CAD": "0.06", "USD-AUD": "0.11", "USD-CHF": "0.05", "USD-CNY": "0.04",
        "USD-INR": "0.15", "USD-BRL": "0.18", "USD-KRW": "0.14", "USD-SGD": "0.04",
        "USD-HKD": "0.02", "USD-NOK": "0.10", "USD-SEK": "0.09", "USD-DKK": "0.06",
        "USD-PLN": "0.13", "USD-CZK": "0.12", "USD-HUF": "0.16", "MXN-GBP": "0.14",
        "MXN-EUR": "0.13", "GBP-EUR": "0.08", "EUR-JPY": "0.10", "GBP-JPY": "0.11",
        "AUD-JPY": "0.13", "CAD-JPY": "0.10", "CHF-JPY": "0.09", "JPY-EUR": "0.10",
        "JPY-GBP": "0.11", "EUR-GBP": "0.08", "BRL-USD": "0.18", "INR-USD": "0.15",
        "KRW-USD": "0.14", "PLN-USD": "0.13", "CZK-USD": "0.12", "HUF-USD": "0.16",
        "NOK-USD": "0.10", "SEK-USD": "0.09", "DKK-USD": "0.06", "SGD-USD": "0.04",
        "HKD-USD": "0.02", "CNY-USD": "0.04", "CHF-USD": "0.05", "AUD-USD": "0.11",
        "CAD-USD": "0.06", "JPY-USD": "0.09", "EUR-USD": "0.07", "GBP-USD": "0.08",
        "MXN-USD": "0.12",
    }))
    fallback_pair: str = "USD-EUR"
    two_way_default_rate: Decimal = Decimal("0.10")
    leg_default_rate: Decimal = Decimal("0.08")
    three_way_discount: Decimal = Decimal("0.75")
    major_ranges: dict[str, tuple[Decimal, Decimal]] = field(default_factory=lambda: {
        "EUR": (Decimal("0.85"), Decimal("0.95")),
        "GBP": (Decimal("0.70"), Decimal("0.80")),
        "JPY": (Decimal("140"), Decimal("160")),
        "CAD": (Decimal("1.25"), Decimal("1.40")),
        "AUD": (Decimal("1.45"), Decimal("1.60")),
    })
    apy_rates: dict[str, Decimal] = field(default_factory=lambda: _d({
        "USD": "3.92", "GBP": "2.62", "EUR": "1.00",
    }))
    monthly_opportunities: Decimal = Decimal("1.4")
    yearly_opportunities: Decimal = Decimal("16.8")


DEFAULT_REFERENCE = ArbitrageReference()

TREND_MULTIPLIERS = {
    "bullish": Decimal("1.2"),
    "bearish": Decimal("0.8"),
    "neutral": Decimal("1.0"),
}


# ---------------------------------------------------------------------------
# Rates along a route
# ---------------------------------------------------------------------------


def cross_rate(from_code: str, to_code: str, rates: Mapping[str, Decimal]) -> Decimal:
    """Units of ``to_code`` per unit of ``from_code`` from a USD-based table.

    A code missing from the table is treated as rate 1.
    """
    if from_code == USD:
        return rates.get(to_code) or ONE
    if to_code == USD:
        return ONE / (rates.get(from_code) or ONE)
    return (rates.get(to_code) or ONE) / (rates.get(from_code) or ONE)


def route_rates(
    route: ArbitrageRoute, rates: Mapping[str, Decimal]
) -> tuple[Decimal, Decimal, Decimal]:
    """Return (first, second, third) leg rates for a route.

    In 2-leg mode the second rate is 1 and the third is the rate back to USD
    from the first leg's target currency.
    """
    first = cross_rate(route.from1, route.to1, rates)
    if route.is_two_way:
        back_from = route.to1 if route.from3 == NONE_SENTINEL else route.from3
        return first, ONE, cross_rate(back_from, USD, rates)
    return (
        first,
        cross_rate(route.from2, route.to2, rates),
        cross_rate(route.from3, route.to3, rates),
    )


def _validate_amount(amount: Decimal) -> Decimal:
    """Return ``amount`` quantized to MONEY_QUANTUM, or raise if out of range."""
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError(f"amount must be positive, got {amount}")
    if amount > MAX_AMOUNT:
        raise InvalidInputError(f"amount must not exceed {MAX_AMOUNT}, got {amount}")
    quantized = amount.quantize(MONEY_QUANTUM)
    if quantized == 0:
        raise InvalidInputError(f"amount must be at least {MONEY_QUANTUM}, got {amount}")
    return quantized


def _result(amount: Decimal, after_first: Decimal, after_second: Decimal,
            final_usd: Decimal, route: ArbitrageRoute) -> ArbitrageResult:
    after_first = after_first.quantize(MONEY_QUANTUM)
    after_second = after_second.quantize(MONEY_QUANTUM)
    final_usd = final_usd.quantize(MONEY_QUANTUM)
    profit = final_usd - amount
    return ArbitrageResult(
        initial_amount=amount,
        after_first=after_first,
        after_second=after_second,
        final_usd=final_usd,
        profit=profit,
        profit_percentage=(profit / amount * 100).quantize(PERCENT_QUANTUM),
        path=route.path,
    )


def compute_arbitrage(
    amount: Decimal, route: ArbitrageRoute, rates: Mapping[str, Decimal]
) -> ArbitrageResult:
    """Run ``amount`` through the route at current market rates.

    2-leg: converts out on leg one and straight back at the same rate, so
    final_usd equals amount and profit is zero.
    3-leg: amount * first * second * third.

    ``amount`` is quantized to 8 decimal places before use.

    Raises:
        InvalidInputError: If amount is not positive.
    """
    amount = _validate_amount(amount)
    first, second, third = route_rates(route, rates)
    after_first = amount * first
    if route.is_two_way:
        after_second = after_first
        final_usd = amount
    else:
        after_second = after_first * second
        final_usd = after_second * third
    return _result(amount, after_first, after_second, final_usd, route)


def compute_threshold_arbitrage(
    amount: Decimal,
    route: ArbitrageRoute,
    thresholds: TradingThresholds = TradingThresholds(),
) -> ArbitrageResult:
    """Same projection using target rates instead of market rates.

    The second threshold is quoted inversely (units of from2 per to2), so
    the 3-leg path divides by it.

    Raises:
        InvalidInputError: If amount or any threshold is not positive.
    """
    amount = _validate_amount(amount)
    for value in (thresholds.first, thresholds.second, thresholds.third):
        if value <= 0:
            raise InvalidInputError(f"thresholds must be positive, got {value}")

    after_first = amount * thresholds.first
    if route.is_two_way:
        after_second = after_first
        final_usd = amount
    else:
        after_second = after_first / thresholds.second
        final_usd = after_second * thresholds.third
    return _result(amount, after_first, after_second, final_usd, route)


def check_threshold_opportunity(
    route: ArbitrageRoute,
    rates: Mapping[str, Decimal],
    thresholds: TradingThresholds = TradingThresholds(),
) -> ThresholdReadiness | None:
    """Compare live leg rates against the thresholds.

    Returns None when there is no rate table to compare against.
    """
    if not rates:
        return None
    first, second, third = route_rates(route, rates)
    two_way = route.is_two_way
    return ThresholdReadiness(
        first_ready=first >= thresholds.first,
        second_ready=two_way or (ONE / second) >= thresholds.second,
        third_ready=two_way or third >= thresholds.third,
    )


# ---------------------------------------------------------------------------
# Opportunity projections
# ---------------------------------------------------------------------------


def combined_volatility(
    route: ArbitrageRoute, reference: ArbitrageReference = DEFAULT_REFERENCE
) -> Decimal:
    """Mean daily volatility over the distinct currencies a route touches."""
    codes = [route.from1, route.to1]
    if not route.is_two_way:
        codes += [route.to2, route.to3]
    unique = list(dict.fromkeys(codes))
    total = sum(
        (reference.volatility.get(c, reference.default_volatility) for c in unique),
        Decimal("0"),
    )
    return total / len(unique)


def _pair_key(from_code: str, to_code: str, reference: ArbitrageReference) -> str:
    for key in (f"{from_code}-{to_code}", f"{to_code}-{from_code}"):
        if key in reference.opportunity_rates:
            return key
    return reference.fallback_pair


def combined_opportunity_rate(
    route: ArbitrageRoute, reference: ArbitrageReference = DEFAULT_REFERENCE
) -> Decimal:
    """Expected daily frequency of a profitable window along the route.

    3-leg routes average their three pairs and apply a discount, since all
    legs must line up at once.
    """
    rates = reference.opportunity_rates
    if route.is_two_way:
        key = _pair_key(route.from1, route.to1, reference)
        return rates.get(key, reference.two_way_default_rate)

    legs = [
        rates.get(_pair_key(a, b, reference), reference.leg_default_rate)
        for a, b in ((route.from1, route.to1), (route.from2, route.to2), (route.from3, route.to3))
    ]
    return sum(legs, Decimal("0")) / 3 * reference.three_way_discount


def market_conditions(
    rates: Mapping[str, Decimal], reference: ArbitrageReference = DEFAULT_REFERENCE
) -> MarketConditions:
    """Volatility index and trend from how far the majors sit from mid-range.

    Each major above its mid-range adds 0.1 to the trend, each one below
    subtracts 0.1. More than +0.2 is bullish, less than -0.2 bearish.
    """
    majors = reference.major_ranges
    total_deviation = Decimal("0")
    trend = Decimal("0")
    for code, (low, high) in majors.items():
        rate = rates.get(code)
        if not rate:
            continue
        mid = (low + high) / 2
        total_deviation += abs(rate - mid) / mid
        trend += Decimal("0.1") if rate > mid else Decimal("-0.1")

    average = total_deviation / len(majors) if majors else Decimal("0")
    if trend > Decimal("0.2"):
        label = "bullish"
    elif trend < Decimal("-0.2"):
        label = "bearish"
    else:
        label = "neutral"
    return MarketConditions(volatility_index=min(ONE, average * 10), trend=label)


def prediction_model(
    route: ArbitrageRoute,
    trend: str = "neutral",
    reference: ArbitrageReference = DEFAULT_REFERENCE,
) -> PredictionModel:
    """Opportunity frequency scaled by route volatility and market trend."""
    volatility = combined_volatility(route, reference)
    factor = (ONE + volatility * 10) * TREND_MULTIPLIERS.get(trend, ONE)
    return PredictionModel(
        daily_opportunity_rate=combined_opportunity_rate(route, reference) * factor,
        monthly_opportunities=reference.monthly_opportunities,
        yearly_opportunities=reference.yearly_opportunities,
        average_hold_time=Decimal("1.5") if route.is_two_way else Decimal("2.8"),
        volatility_factor=factor,
    )


def realistic_gains(
    profit: Decimal,
    route: ArbitrageRoute,
    trend: str = "neutral",
    reference: ArbitrageReference = DEFAULT_REFERENCE,
) -> Gains:
    """Scale one trade's profit by how often such a window actually opens."""
    model = prediction_model(route, trend, reference)
    daily = (
        abs(profit)
        * combined_opportunity_rate(route, reference)
        * TREND_MULTIPLIERS.get(trend, ONE)
        * (ONE + combined_volatility(route, reference) * 5)
    )
    return Gains(
        daily=daily.quantize(MONEY_QUANTUM),
        monthly=(daily * model.monthly_opportunities).quantize(MONEY_QUANTUM),
        yearly=(daily * model.yearly_opportunities).quantize(MONEY_QUANTUM),
    )


def apy_gains(
    amount: Decimal, currency: str, reference: ArbitrageReference = DEFAULT_REFERENCE
) -> ApyGains:
    """Yearly interest from parking ``amount`` in a savings balance."""
    rate = reference.apy_rates.get(currency, Decimal("0"))
    return ApyGains(yearly_gain=(amount * rate / 100).quantize(MONEY_QUANTUM), apy_rate=rate)
