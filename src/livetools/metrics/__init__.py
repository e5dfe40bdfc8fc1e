"""Derived metrics -- pure functions over normalized market data.

Arbitrage projections, DCA portfolio projections, ETF health scoring and
news sentiment. Reference tables are plain dataclasses with module-level
defaults so callers can substitute their own.
"""

from livetools.metrics.arbitrage import (
    ArbitrageReference,
    ArbitrageResult,
    ArbitrageRoute,
    TradingThresholds,
    check_threshold_opportunity,
    compute_arbitrage,
    compute_threshold_arbitrage,
    cross_rate,
    market_conditions,
    prediction_model,
    realistic_gains,
    route_rates,
)
from livetools.metrics.dca import (
    EtfStats,
    PaymentFrequency,
    PortfolioAssumptions,
    annualized_volatility,
    project_portfolio,
    simulate_dca,
)
from livetools.metrics.health import classify_risk, market_regime, predict_etf_health
from livetools.metrics.sentiment import (
    SentimentLexicon,
    extract_tickers,
    score_sentiment,
    summarize_sentiment,
)

__all__ = [
    "ArbitrageReference",
    "ArbitrageResult",
    "ArbitrageRoute",
    "EtfStats",
    "PaymentFrequency",
    "PortfolioAssumptions",
    "SentimentLexicon",
    "TradingThresholds",
    "annualized_volatility",
    "check_threshold_opportunity",
    "classify_risk",
    "compute_arbitrage",
    "compute_threshold_arbitrage",
    "cross_rate",
    "extract_tickers",
    "market_conditions",
    "market_regime",
    "predict_etf_health",
    "prediction_model",
    "project_portfolio",
    "realistic_gains",
    "route_rates",
    "score_sentiment",
    "simulate_dca",
    "summarize_sentiment",
]
