"""Dollar-cost-averaging projections for a weighted ETF portfolio.

Each recurring payment compounds from its contribution date to the horizon
end. Confidence bands are +/- z standard deviations of a volatility that DCA
smooths by 1/sqrt(number of payments).

CRITICAL: All computations use Decimal. Trigonometric cycle terms are
computed in float and converted once via Decimal(str(x)).
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from livetools.exceptions import InvalidInputError
from livetools.models import Quote

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
TWELVE = Decimal("12")
DEFAULT_Z = Decimal("1.96")

DEFAULT_VOLATILITY = Decimal("0.15")
TRADING_DAYS = Decimal("252")


class PaymentFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def per_year(self) -> int:
        return {"weekly": 52, "biweekly": 26, "monthly": 12}[self.value]


@dataclass(frozen=True)
class DcaProjection:
    payments: int
    total_contributions: Decimal
    total_value: Decimal
    gains: Decimal
    low_estimate: Decimal
    high_estimate: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def simulate_dca(
    payment: Decimal,
    frequency: PaymentFrequency,
    months: int,
    monthly_return: Decimal,
    monthly_volatility: Decimal,
    z: Decimal = DEFAULT_Z,
) -> DcaProjection:
    """Simulate recurring contributions over ``months``.

    Payment i (0-based) is made i * (12 / per_year) months in and grows at
    ``monthly_return`` for the remaining months. Low/high estimates are the
    gains at value * (1 -/+ z * monthly_volatility / sqrt(n)).

    Args:
        payment: Amount per contribution.
        frequency: Contribution schedule.
        months: Horizon length in months.
        monthly_return: Expected return per month (0.008 = 0.8%).
        monthly_volatility: Standard deviation of monthly returns.
        z: Band width in standard deviations (1.96 ~ 95%).

    Returns:
        DcaProjection with money rounded to cents. Zero payments yields an
        all-zero projection.

    Raises:
        InvalidInputError: On a negative payment or horizon.
    """
    if payment < 0:
        raise InvalidInputError(f"payment must not be negative, got {payment}")
    if months < 0:
        raise InvalidInputError(f"months must not be negative, got {months}")

    n = months * frequency.per_year // 12
    if n == 0:
        return DcaProjection(0, ZERO, ZERO, ZERO, ZERO, ZERO)

    interval = TWELVE / frequency.per_year
    growth_base = ONE + monthly_return
    total_value = ZERO
    for i in range(n):
        remaining = Decimal(months) - i * interval
        total_value += payment * growth_base ** remaining
    contributions = payment * n

    adjusted_volatility = monthly_volatility / Decimal(n).sqrt()
    low = total_value * (ONE - z * adjusted_volatility)
    high = total_value * (ONE + z * adjusted_volatility)

    return DcaProjection(
        payments=n,
        total_contributions=_money(contributions),
        total_value=_money(total_value),
        gains=_money(total_value - contributions),
        low_estimate=_money(low - contributions),
        high_estimate=_money(high - contributions),
    )


def annualized_volatility(closes: Sequence[Decimal]) -> Decimal:
    """Population std-dev of daily returns scaled by sqrt(252).

    Series of ten closes or fewer are too short to be meaningful and get the
    default 0.15.
    """
    if len(closes) <= 10:
        return DEFAULT_VOLATILITY
    returns = [
        (closes[i + 1] - closes[i]) / closes[i]
        for i in range(len(closes) - 1)
        if closes[i] > 0
    ]
    if not returns:
        return DEFAULT_VOLATILITY
    mean = sum(returns, ZERO) / len(returns)
    variance = sum(((r - mean) ** 2 for r in returns), ZERO) / len(returns)
    return (variance.sqrt() * TRADING_DAYS.sqrt()).quantize(Decimal("0.001"))


# ---------------------------------------------------------------------------
# Portfolio projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EtfStats:
    """Per-ETF inputs to the portfolio projection."""

    symbol: str
    volatility: Decimal
    beta: Decimal = ONE
    dividend_yield: Decimal = Decimal("1.8")

    @classmethod
    def from_quote(cls, quote: Quote) -> "EtfStats":
        return cls(
            symbol=quote.symbol,
            volatility=annualized_volatility(quote.closes),
            beta=quote.beta,
            dividend_yield=quote.dividend_yield or Decimal("1.8"),
        )


def _d(mapping: Mapping[str, str]) -> dict[str, Decimal]:
    return {k: Decimal(v) for k, v in mapping.items()}


@dataclass(frozen=True)
class PortfolioAssumptions:
    """Long-run return and cost assumptions plus the macro baseline."""

    historical_returns: dict[str, Decimal] = field(default_factory=lambda: _d({
        "VTI": "0.105", "SPY": "0.103", "VOO": "0.103",
        "QQQ": "0.145", "XLK": "0.138",
        "ITA": "0.087", "XLF": "0.082",
        "SCHD": "0.092",
        "VXUS": "0.058", "VEA": "0.055", "VWO": "0.065",
        "BND": "0.028", "TLT": "0.035",
        "VNQ": "0.078",
        "GLD": "0.042",
    }))
    default_return: Decimal = Decimal("0.08")
    expense_ratios: dict[str, Decimal] = field(default_factory=lambda: _d({
        "VTI": "0.0003", "SPY": "0.000945", "VOO": "0.0003", "QQQ": "0.0020",
        "ITA": "0.0040", "SCHD": "0.0006", "VXUS": "0.0008", "VEA": "0.0005",
        "VWO": "0.0010", "BND": "0.0003", "VNQ": "0.0012", "GLD": "0.0040",
        "TLT": "0.0015", "XLK": "0.0010", "XLF": "0.0010",
    }))
    default_expense_ratio: Decimal = Decimal("0.005")
    base_inflation: Decimal = Decimal("2.8")
    base_fed_rate: Decimal = Decimal("4.5")
    base_market_volatility: Decimal = Decimal("0.18")
    market_sentiment: Decimal = Decimal("0.1")
    retirement_age: int = 65
    long_term_haircut: Decimal = Decimal("0.92")
    z: Decimal = DEFAULT_Z


DEFAULT_ASSUMPTIONS = PortfolioAssumptions()


@dataclass(frozen=True)
class MarketEnvironment:
    inflation_rate: Decimal
    fed_rate: Decimal
    market_volatility: Decimal
    economic_growth: Decimal
    market_sentiment: Decimal


@dataclass(frozen=True)
class HorizonProjection:
    projection: DcaProjection
    confidence: Decimal


@dataclass(frozen=True)
class PortfolioProjection:
    one_month: HorizonProjection
    one_year: HorizonProjection
    to_retirement: HorizonProjection
    years_to_retirement: int
    real_return: Decimal  # percent, after inflation
    annual_return: Decimal
    annual_volatility: Decimal
    beta: Decimal
    dividend_yield: Decimal
    expense_ratio: Decimal
    environment: MarketEnvironment


def market_environment(
    as_of: date, assumptions: PortfolioAssumptions = DEFAULT_ASSUMPTIONS
) -> MarketEnvironment:
    """Macro baseline modulated by a yearly economic cycle in [-0.5, 0.5]."""
    day_of_year = as_of.timetuple().tm_yday
    cycle = Decimal(str(round(math.sin(day_of_year / 365 * 2 * math.pi) * 0.5, 6)))
    return MarketEnvironment(
        inflation_rate=assumptions.base_inflation + cycle * Decimal("0.5"),
        fed_rate=assumptions.base_fed_rate + cycle * Decimal("0.3"),
        market_volatility=assumptions.base_market_volatility + abs(cycle) * Decimal("0.05"),
        economic_growth=Decimal("2.2") + cycle * Decimal("0.8"),
        market_sentiment=assumptions.market_sentiment,
    )


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def project_portfolio(
    weights: Mapping[str, Decimal],
    etfs: Mapping[str, EtfStats],
    age: int,
    payment: Decimal,
    frequency: PaymentFrequency,
    as_of: date,
    assumptions: PortfolioAssumptions = DEFAULT_ASSUMPTIONS,
) -> PortfolioProjection:
    """Project a recurring investment one month, one year and to retirement.

    Args:
        weights: Symbol -> allocation in percent (30 = 30%). Symbols without
            stats in ``etfs`` contribute nothing.
        etfs: Per-symbol volatility, beta and dividend yield.
        age: Investor age; clamped to 18-80.
        payment: Amount per contribution.
        frequency: Contribution schedule.
        as_of: Date driving the economic-cycle adjustment.
        assumptions: Return, cost and macro assumptions.

    Raises:
        InvalidInputError: On an empty or negative allocation.
    """
    if not weights:
        raise InvalidInputError("at least one ETF weight is required")
    if any(w < 0 for w in weights.values()):
        raise InvalidInputError("weights must not be negative")

    env = market_environment(as_of, assumptions)
    age = max(18, min(80, age))
    years = max(1, assumptions.retirement_age - age)

    market_adjustment = (
        -env.inflation_rate * Decimal("0.003")
        - (env.fed_rate - 2) * Decimal("0.002")
        + env.market_sentiment * Decimal("0.01")
    )
    annual_return = ZERO
    volatility = ZERO
    beta = ZERO
    expense = ZERO
    dividend = ZERO
    for symbol, weight in weights.items():
        stats = etfs.get(symbol)
        if stats is None:
            continue
        share = weight / 100
        base = assumptions.historical_returns.get(symbol, assumptions.default_return)
        annual_return += (base + market_adjustment) * share
        volatility += stats.volatility * share
        beta += stats.beta * share
        expense += assumptions.expense_ratios.get(symbol, assumptions.default_expense_ratio) * share
        dividend += stats.dividend_yield * share

    if len(weights) > 1:
        volatility *= (Decimal("0.75") + (len(weights) - 1) * Decimal("0.05")).sqrt()
    annual_return -= expense

    monthly_return = annual_return / TWELVE
    monthly_volatility = volatility / TWELVE.sqrt()
    z = assumptions.z

    one_month = HorizonProjection(
        projection=simulate_dca(payment, frequency, 1, monthly_return, monthly_volatility, z),
        confidence=_clamp(70 - env.market_volatility * 100, Decimal("60"), Decimal("75")),
    )
    one_year = HorizonProjection(
        projection=simulate_dca(payment, frequency, 12, monthly_return, monthly_volatility, z),
        confidence=_clamp(80 - env.market_volatility * 80, Decimal("70"), Decimal("85")),
    )

    long_term_return = annual_return * assumptions.long_term_haircut
    to_retirement = HorizonProjection(
        projection=simulate_dca(
            payment, frequency, years * 12, long_term_return / TWELVE, monthly_volatility, z
        ),
        confidence=min(Decimal("90"), 75 + Decimal(years).ln() * 8).quantize(CENT),
    )
    real_return = (long_term_return - env.inflation_rate / 100) * 100

    return PortfolioProjection(
        one_month=one_month,
        one_year=one_year,
        to_retirement=to_retirement,
        years_to_retirement=years,
        real_return=real_return.quantize(CENT, rounding=ROUND_HALF_UP),
        annual_return=annual_return,
        annual_volatility=volatility,
        beta=beta,
        dividend_yield=dividend,
        expense_ratio=expense,
        environment=env,
    )
