"""Tests for the placeholder data builders."""

import random
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from livetools.providers.synthetic import (
    BASE_RATES,
    SYNTHETIC_PROVIDER,
    synthetic_history,
    synthetic_quote,
    synthetic_rates,
)

NOW = datetime(2024, 3, 1, 14, 30, tzinfo=timezone.utc)


class TestSyntheticRates:
    def test_base_is_one_and_all_codes_present(self) -> None:
        table = synthetic_rates("USD", now=NOW, rng=random.Random(1))
        assert table.rates["USD"] == Decimal("1")
        assert set(table.rates) == set(BASE_RATES)
        assert table.providers == (SYNTHETIC_PROVIDER,)
        assert table.as_of == date(2024, 3, 1)

    @pytest.mark.parametrize("seed", range(10))
    def test_stays_near_reference_levels(self, seed: int) -> None:
        table = synthetic_rates("USD", now=NOW, rng=random.Random(seed))
        for code, level in BASE_RATES.items():
            drift = abs(float(table.rates[code]) / level - 1)
            assert drift < 0.02, code

    def test_other_base(self) -> None:
        table = synthetic_rates("EUR", now=NOW, rng=random.Random(3))
        assert table.base == "EUR"
        assert table.rates["EUR"] == Decimal("1")
        assert table.rates["USD"] > Decimal("1.1")

    def test_base_without_reference_level(self) -> None:
        assert "ZAR" not in BASE_RATES
        assert synthetic_rates("ZAR", now=NOW, rng=random.Random(3)) is None

    def test_reproducible_with_seed(self) -> None:
        a = synthetic_rates("USD", now=NOW, rng=random.Random(42))
        b = synthetic_rates("USD", now=NOW, rng=random.Random(42))
        assert a == b


class TestSyntheticQuote:
    @pytest.mark.parametrize("seed", range(10))
    def test_ranges(self, seed: int) -> None:
        quote = synthetic_quote("VTI", rng=random.Random(seed), today=date(2024, 3, 1))
        assert Decimal("100") <= quote.price <= Decimal("300")
        assert abs(quote.change) <= Decimal("5")
        assert quote.fifty_two_week_low < quote.price < quote.fifty_two_week_high
        assert quote.provider == SYNTHETIC_PROVIDER
        assert len(quote.price_history) == 30
        assert quote.price_history[-1].date == date(2024, 3, 1)

    def test_history_covers_every_calendar_day(self) -> None:
        quote = synthetic_quote("VTI", rng=random.Random(2), days=14, today=date(2024, 3, 1))
        dates = [p.date for p in quote.price_history]
        assert dates[0] == date(2024, 2, 17)
        assert all((b - a).days == 1 for a, b in zip(dates, dates[1:]))
        assert any(d.weekday() >= 5 for d in dates)

    def test_reproducible_with_seed(self) -> None:
        a = synthetic_quote("QQQ", rng=random.Random(7), today=date(2024, 3, 1))
        b = synthetic_quote("QQQ", rng=random.Random(7), today=date(2024, 3, 1))
        assert a == b


class TestSyntheticHistory:
    def test_oldest_first_within_band(self) -> None:
        points = synthetic_history(Decimal("200"), days=10, rng=random.Random(0), today=date(2024, 3, 1))
        assert [p.date for p in points] == sorted(p.date for p in points)
        assert all(Decimal("190") <= p.close <= Decimal("210") for p in points)

    def test_skip_weekends(self) -> None:
        points = synthetic_history(
            Decimal("200"), days=14, rng=random.Random(0), today=date(2024, 3, 1), skip_weekends=True
        )
        assert len(points) == 10
        assert all(p.date.weekday() < 5 for p in points)

    def test_close_never_below_a_cent(self) -> None:
        points = synthetic_history(Decimal("1"), days=30, rng=random.Random(5), today=date(2024, 3, 1))
        assert all(p.close >= Decimal("0.01") for p in points)
