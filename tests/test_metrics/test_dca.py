"""Tests for DCA simulation and the portfolio projection."""

from datetime import date
from decimal import Decimal

import pytest

from livetools.exceptions import InvalidInputError
from livetools.metrics.dca import (
    EtfStats,
    PaymentFrequency,
    annualized_volatility,
    market_environment,
    project_portfolio,
    simulate_dca,
)
from livetools.models import Quote

DEFAULT_WEIGHTS = {
    "VTI": Decimal("30"),
    "QQQ": Decimal("25"),
    "ITA": Decimal("25"),
    "SCHD": Decimal("10"),
    "VXUS": Decimal("10"),
}


@pytest.fixture
def etf_stats() -> dict[str, EtfStats]:
    return {
        symbol: EtfStats(symbol=symbol, volatility=Decimal("0.18"))
        for symbol in DEFAULT_WEIGHTS
    }


# ---------------------------------------------------------------------------
# simulate_dca
# ---------------------------------------------------------------------------


class TestSimulateDca:
    def test_biweekly_year_zero_return(self) -> None:
        result = simulate_dca(
            Decimal("100"), PaymentFrequency.BIWEEKLY, 12, Decimal("0"), Decimal("0")
        )
        assert result.payments == 26
        assert result.total_contributions == Decimal("2600.00")
        assert result.total_value == Decimal("2600.00")
        assert result.gains == Decimal("0.00")

    @pytest.mark.parametrize("frequency", list(PaymentFrequency))
    @pytest.mark.parametrize("months", [1, 6, 12, 60])
    def test_zero_return_value_equals_contributions(
        self, frequency: PaymentFrequency, months: int
    ) -> None:
        result = simulate_dca(
            Decimal("153.85"), frequency, months, Decimal("0"), Decimal("0.05")
        )
        assert result.total_value == result.total_contributions
        assert result.gains == 0

    def test_payment_counts(self) -> None:
        assert simulate_dca(Decimal("1"), PaymentFrequency.WEEKLY, 1, Decimal("0"), Decimal("0")).payments == 4
        assert simulate_dca(Decimal("1"), PaymentFrequency.BIWEEKLY, 1, Decimal("0"), Decimal("0")).payments == 2
        assert simulate_dca(Decimal("1"), PaymentFrequency.MONTHLY, 24, Decimal("0"), Decimal("0")).payments == 24

    def test_positive_return_compounds(self) -> None:
        result = simulate_dca(
            Decimal("100"), PaymentFrequency.MONTHLY, 12, Decimal("0.01"), Decimal("0")
        )
        # first payment grows 12 months, last one 1 month
        assert result.total_value > result.total_contributions
        assert result.total_value == Decimal("1280.93")

    def test_confidence_band_brackets_gains(self) -> None:
        result = simulate_dca(
            Decimal("100"), PaymentFrequency.MONTHLY, 12, Decimal("0.008"), Decimal("0.05")
        )
        assert result.low_estimate < result.gains < result.high_estimate

    def test_zero_payments(self) -> None:
        result = simulate_dca(
            Decimal("100"), PaymentFrequency.MONTHLY, 0, Decimal("0.01"), Decimal("0.05")
        )
        assert result.payments == 0
        assert result.total_value == 0
        assert result.low_estimate == result.high_estimate == 0

    def test_negative_payment_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            simulate_dca(Decimal("-1"), PaymentFrequency.MONTHLY, 12, Decimal("0"), Decimal("0"))

    def test_negative_months_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            simulate_dca(Decimal("1"), PaymentFrequency.MONTHLY, -1, Decimal("0"), Decimal("0"))


# ---------------------------------------------------------------------------
# Volatility
# ---------------------------------------------------------------------------


class TestAnnualizedVolatility:
    def test_short_series_uses_default(self) -> None:
        assert annualized_volatility([Decimal("100")] * 10) == Decimal("0.15")

    def test_flat_series_is_zero(self) -> None:
        assert annualized_volatility([Decimal("100")] * 30) == 0

    def test_alternating_series(self) -> None:
        closes = [Decimal("100") if i % 2 == 0 else Decimal("101") for i in range(21)]
        vol = annualized_volatility(closes)
        assert Decimal("0.1") < vol < Decimal("0.2")

    def test_from_quote(self, sample_quote: Quote) -> None:
        stats = EtfStats.from_quote(sample_quote)
        assert stats.symbol == "VTI"
        assert stats.volatility == 0
        assert stats.dividend_yield == Decimal("1.4")


# ---------------------------------------------------------------------------
# Portfolio projection
# ---------------------------------------------------------------------------


class TestMarketEnvironment:
    @pytest.mark.parametrize("day", [date(2024, 1, 1), date(2024, 3, 21), date(2024, 9, 30)])
    def test_cycle_bounds(self, day: date) -> None:
        env = market_environment(day)
        assert Decimal("2.55") <= env.inflation_rate <= Decimal("3.05")
        assert Decimal("4.35") <= env.fed_rate <= Decimal("4.65")
        assert Decimal("0.18") <= env.market_volatility <= Decimal("0.205")


class TestProjectPortfolio:
    def test_default_portfolio(self, etf_stats: dict[str, EtfStats]) -> None:
        projection = project_portfolio(
            DEFAULT_WEIGHTS, etf_stats, 23, Decimal("153.85"),
            PaymentFrequency.BIWEEKLY, date(2024, 3, 1),
        )
        assert projection.years_to_retirement == 42
        assert projection.one_year.projection.payments == 26
        assert projection.to_retirement.projection.payments == 42 * 26
        assert projection.one_year.projection.total_contributions == Decimal("4000.10")
        assert Decimal("0.05") < projection.annual_return < Decimal("0.15")
        assert Decimal("60") <= projection.one_month.confidence <= Decimal("75")
        assert Decimal("70") <= projection.one_year.confidence <= Decimal("85")
        assert projection.to_retirement.confidence == Decimal("90.00")

    def test_diversification_lowers_volatility(self, etf_stats: dict[str, EtfStats]) -> None:
        projection = project_portfolio(
            DEFAULT_WEIGHTS, etf_stats, 30, Decimal("100"),
            PaymentFrequency.MONTHLY, date(2024, 3, 1),
        )
        assert projection.annual_volatility < Decimal("0.18")

    def test_expense_ratio(self) -> None:
        stats = {"SPY": EtfStats(symbol="SPY", volatility=Decimal("0.15"))}
        projection = project_portfolio(
            {"SPY": Decimal("100")}, stats, 30, Decimal("100"),
            PaymentFrequency.MONTHLY, date(2024, 3, 1),
        )
        assert projection.expense_ratio == Decimal("0.000945")
        assert projection.annual_volatility == Decimal("0.15")

    @pytest.mark.parametrize("age,years", [(10, 47), (64, 1), (90, 1)])
    def test_age_clamped(self, age: int, years: int, etf_stats: dict[str, EtfStats]) -> None:
        projection = project_portfolio(
            DEFAULT_WEIGHTS, etf_stats, age, Decimal("100"),
            PaymentFrequency.MONTHLY, date(2024, 3, 1),
        )
        assert projection.years_to_retirement == years

    def test_empty_weights_rejected(self, etf_stats: dict[str, EtfStats]) -> None:
        with pytest.raises(InvalidInputError):
            project_portfolio(
                {}, etf_stats, 30, Decimal("100"), PaymentFrequency.MONTHLY, date(2024, 3, 1)
            )

    def test_negative_weight_rejected(self, etf_stats: dict[str, EtfStats]) -> None:
        with pytest.raises(InvalidInputError):
            project_portfolio(
                {"VTI": Decimal("-10")}, etf_stats, 30, Decimal("100"),
                PaymentFrequency.MONTHLY, date(2024, 3, 1),
            )
