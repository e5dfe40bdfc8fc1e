"""ETF health: risk classification and a multi-factor 12-month outlook.

Factor weights: momentum 30%, 52-week mean reversion 25%, beta 20%,
volume 15%, dividend yield 10%, plus a market-regime term.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from livetools.metrics.dca import annualized_volatility
from livetools.models import Quote

MIN_RETURN = Decimal("-20")
MAX_RETURN = Decimal("25")


@dataclass(frozen=True)
class EtfHealth:
    symbol: str
    risk_level: str  # "Low" | "Medium" | "High"
    volatility_score: Decimal  # annualized, percent
    predicted_return: Decimal  # percent over the horizon
    confidence_level: Decimal
    recommendation: str
    target_price: Decimal
    time_horizon: str = "12 months"


def classify_risk(volatility_pct: Decimal, beta: Decimal) -> str:
    """Low below 15% vol and beta 1.2; Medium below 25% and 1.5; else High."""
    if volatility_pct < 15 and beta < Decimal("1.2"):
        return "Low"
    if volatility_pct < 25 and beta < Decimal("1.5"):
        return "Medium"
    return "High"


def market_regime(timestamp: datetime) -> Decimal:
    """Cyclical regime term in [-0.5, 0.5] driven by the wall clock."""
    days = timestamp.timestamp() / 86400
    return Decimal(str(round(math.sin(days * 7) * 0.5, 6)))


def recommend(predicted_return: Decimal, risk_level: str, volume_ratio: Decimal) -> str:
    if predicted_return > 10 and risk_level != "High" and volume_ratio > Decimal("1.2"):
        return "Strong Buy"
    if predicted_return > 5 and risk_level != "High":
        return "Buy"
    if -2 < predicted_return < 5:
        return "Hold"
    if predicted_return > -8:
        return "Sell"
    return "Strong Sell"


def predict_etf_health(
    quote: Quote,
    closes: Sequence[Decimal],
    regime: Decimal = Decimal("0"),
) -> EtfHealth:
    """Score one ETF from its quote and recent closes.

    Args:
        quote: Current quote (price, change %, beta, 52-week range, volumes).
        closes: Daily closes, oldest first.
        regime: Output of market_regime(); 0 disables the term.

    Returns:
        EtfHealth with predicted return clamped to [-20, 25] percent.
    """
    volatility = annualized_volatility(closes) * 100
    risk = classify_risk(volatility, quote.beta)

    span = quote.fifty_two_week_high - quote.fifty_two_week_low
    position = (quote.price - quote.fifty_two_week_low) / span if span > 0 else Decimal("0.5")
    volume_ratio = (
        Decimal(quote.volume) / Decimal(quote.avg_volume) if quote.avg_volume else Decimal("1")
    )

    predicted = quote.change_percent * Decimal("0.3")
    predicted += (Decimal("0.5") - position) * 15 * Decimal("0.25")
    predicted += (Decimal("1.2") - quote.beta) * 3 * Decimal("0.20")
    if volume_ratio > Decimal("1.5"):
        predicted += 2 * Decimal("0.15")
    elif volume_ratio < Decimal("0.7"):
        predicted -= 1 * Decimal("0.15")
    predicted += (quote.dividend_yield - Decimal("1.5")) * Decimal("0.5") * Decimal("0.10")
    predicted += regime * 2
    predicted = max(MIN_RETURN, min(MAX_RETURN, predicted))

    confidence = max(Decimal("65"), min(Decimal("95"), 100 - abs(volatility - 20)))
    target = quote.price * (1 + predicted / 100)

    return EtfHealth(
        symbol=quote.symbol,
        risk_level=risk,
        volatility_score=volatility.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        predicted_return=predicted.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        confidence_level=confidence.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        recommendation=recommend(predicted, risk, volume_ratio),
        target_price=target.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
    )
