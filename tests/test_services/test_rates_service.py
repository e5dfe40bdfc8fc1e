"""Tests for the currency rate pipeline (parallel providers + median merge)."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from livetools.exceptions import AllProvidersFailed, InvalidInputError, ProviderTimeout
from livetools.models import Provenance, RateTable
from livetools.providers.synthetic import SYNTHETIC_PROVIDER
from livetools.services.rates_service import CurrencyRateService, normalize_currency


def make_provider(name: str, eur: str | None = None, error: Exception | None = None) -> AsyncMock:
    """Rate provider double answering a USD table with the given EUR rate."""
    provider = AsyncMock()
    provider.name = name
    if error is not None:
        provider.fetch_rates = AsyncMock(side_effect=error)
    else:
        provider.fetch_rates = AsyncMock(
            return_value=RateTable(
                base="USD",
                rates={"USD": Decimal("1"), "EUR": Decimal(eur), "GBP": Decimal("0.79")},
                as_of=date(2024, 3, 1) if name != "late" else date(2024, 3, 2),
                providers=(name,),
            )
        )
    return provider


def timed_out(name: str) -> AsyncMock:
    return make_provider(name, error=ProviderTimeout(name, "no response within 6.0s"))


# ---------------------------------------------------------------------------
# normalize_currency
# ---------------------------------------------------------------------------


class TestNormalizeCurrency:
    def test_upper_cases(self) -> None:
        assert normalize_currency(" usd ") == "USD"

    @pytest.mark.parametrize("code", ["US", "USDT", "U5D", ""])
    def test_rejects(self, code: str) -> None:
        with pytest.raises(InvalidInputError):
            normalize_currency(code)


# ---------------------------------------------------------------------------
# CurrencyRateService
# ---------------------------------------------------------------------------


class TestCurrencyRateService:
    @pytest.mark.asyncio
    async def test_median_of_three_providers(self) -> None:
        providers = [make_provider("a", "0.90"), make_provider("b", "0.92"), make_provider("late", "0.94")]
        service = CurrencyRateService(providers)

        result = await service.get_rates("usd")

        assert result.provenance is Provenance.LIVE
        assert result.value.rates["EUR"] == Decimal("0.92")
        assert result.value.base == "USD"
        assert result.value.as_of == date(2024, 3, 2)
        assert result.value.providers == ("a", "b", "late")
        assert result.sources == ["a", "b", "late"]
        for provider in providers:
            provider.fetch_rates.assert_awaited_once_with("USD")

    @pytest.mark.asyncio
    async def test_one_failure_is_partial(self) -> None:
        service = CurrencyRateService(
            [timed_out("a"), make_provider("b", "0.92"), make_provider("c", "0.94")]
        )
        result = await service.get_rates("USD")

        assert result.provenance is Provenance.PARTIAL
        assert result.value.rates["EUR"] == Decimal("0.93")
        assert [f.provider for f in result.failures] == ["a"]
        assert result.failures[0].error_type == "ProviderTimeout"

    @pytest.mark.asyncio
    async def test_all_time_out_fails_without_synthetic_data(self) -> None:
        synthesize = MagicMock()
        service = CurrencyRateService(
            [timed_out("a"), timed_out("b"), timed_out("c")],
            policy="fail",
            synthesize=synthesize,
        )
        with pytest.raises(AllProvidersFailed) as exc_info:
            await service.get_rates("USD")

        assert exc_info.value.chain == "currency_rates:USD"
        assert len(exc_info.value.failures) == 3
        synthesize.assert_not_called()

    @pytest.mark.asyncio
    async def test_synthesize_policy(self) -> None:
        service = CurrencyRateService(
            [timed_out("a"), timed_out("b")],
            display_codes=["EUR", "GBP"],
            policy="synthesize",
        )
        result = await service.get_rates("USD")

        assert result.provenance is Provenance.SYNTHETIC
        assert result.sources == []
        assert result.value.providers == (SYNTHETIC_PROVIDER,)
        assert list(result.value.rates) == ["USD", "EUR", "GBP"]
        assert len(result.failures) == 2

    @pytest.mark.asyncio
    async def test_synthesize_policy_without_reference_level_fails(self) -> None:
        service = CurrencyRateService(
            [timed_out("a"), timed_out("b")],
            policy="synthesize",
        )
        with pytest.raises(AllProvidersFailed) as exc_info:
            await service.get_rates("ZAR")

        assert exc_info.value.chain == "currency_rates:ZAR"
        assert len(exc_info.value.failures) == 2

    @pytest.mark.asyncio
    async def test_display_filter_keeps_base(self) -> None:
        service = CurrencyRateService([make_provider("a", "0.92")], display_codes=["GBP"])
        result = await service.get_rates("USD")
        assert list(result.value.rates) == ["USD", "GBP"]

    @pytest.mark.asyncio
    async def test_invalid_base(self) -> None:
        service = CurrencyRateService([make_provider("a", "0.92")])
        with pytest.raises(InvalidInputError):
            await service.get_rates("dollars")
