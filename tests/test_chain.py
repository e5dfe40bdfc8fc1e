"""Tests for the fallback chain runner.

Provider attempts are plain coroutine factories; no network involved.
"""

import asyncio
from collections.abc import Awaitable, Callable

import pytest

from livetools.chain import apply_policy, first_success, settle_all
from livetools.exceptions import (
    AllProvidersFailed,
    MalformedPayloadError,
    ProviderHTTPError,
    ProviderTimeout,
)
from livetools.models import ChainResult, Provenance


# ---------------------------------------------------------------------------
# Attempt factories
# ---------------------------------------------------------------------------


def ok(value: object, delay: float = 0.0) -> Callable[[], Awaitable[object]]:
    async def factory() -> object:
        if delay:
            await asyncio.sleep(delay)
        return value

    return factory


def fail(exc: Exception) -> Callable[[], Awaitable[object]]:
    async def factory() -> object:
        raise exc

    return factory


class Counter:
    """Attempt factory that records how often it was invoked."""

    def __init__(self, value: object) -> None:
        self.value = value
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        return self.value


# ---------------------------------------------------------------------------
# first_success
# ---------------------------------------------------------------------------


class TestFirstSuccess:
    """Sequential mode: priority order, stop at first success."""

    @pytest.mark.asyncio
    async def test_first_provider_wins(self) -> None:
        second = Counter("b")
        result = await first_success("test", [("a", ok("a")), ("b", second)])
        assert result.value == "a"
        assert result.provenance is Provenance.LIVE
        assert result.sources == ["a"]
        assert result.failures == []
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_falls_back_to_next_provider_output(self) -> None:
        third = Counter("c")
        result = await first_success(
            "test",
            [
                ("a", fail(ProviderTimeout("a", "no response within 8.0s"))),
                ("b", ok({"price": "101.25"})),
                ("c", third),
            ],
        )
        assert result.value == {"price": "101.25"}
        assert result.sources == ["b"]
        assert [f.provider for f in result.failures] == ["a"]
        assert result.failures[0].error_type == "ProviderTimeout"
        assert third.calls == 0

    @pytest.mark.asyncio
    async def test_all_fail_raises_with_every_failure(self) -> None:
        with pytest.raises(AllProvidersFailed) as exc_info:
            await first_success(
                "etf_quote:VTI",
                [
                    ("a", fail(ProviderHTTPError("a", "HTTP 503", status_code=503))),
                    ("b", fail(MalformedPayloadError("b", "no Global Quote"))),
                ],
            )
        err = exc_info.value
        assert err.chain == "etf_quote:VTI"
        assert [f.provider for f in err.failures] == ["a", "b"]
        assert [f.error_type for f in err.failures] == [
            "ProviderHTTPError",
            "MalformedPayloadError",
        ]

    @pytest.mark.asyncio
    async def test_empty_chain_raises(self) -> None:
        with pytest.raises(AllProvidersFailed) as exc_info:
            await first_success("empty", [])
        assert exc_info.value.failures == []
        assert "no providers configured" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_provider_error_propagates(self) -> None:
        later = Counter("b")
        with pytest.raises(KeyError):
            await first_success("test", [("a", fail(KeyError("bug"))), ("b", later)])
        assert later.calls == 0


# ---------------------------------------------------------------------------
# settle_all
# ---------------------------------------------------------------------------


class TestSettleAll:
    """Parallel mode: every attempt runs, successes are kept in order."""

    @pytest.mark.asyncio
    async def test_all_succeed_is_live(self) -> None:
        result = await settle_all(
            "rates", [("a", ok(1, delay=0.02)), ("b", ok(2)), ("c", ok(3, delay=0.01))]
        )
        assert result.value == [1, 2, 3]
        assert result.sources == ["a", "b", "c"]
        assert result.provenance is Provenance.LIVE

    @pytest.mark.asyncio
    async def test_some_fail_is_partial(self) -> None:
        result = await settle_all(
            "rates",
            [
                ("a", fail(ProviderTimeout("a", "no response within 6.0s"))),
                ("b", ok(2)),
            ],
        )
        assert result.value == [2]
        assert result.sources == ["b"]
        assert result.provenance is Provenance.PARTIAL
        assert result.failures[0].provider == "a"

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self) -> None:
        slow = Counter("slow")

        async def delayed() -> object:
            await asyncio.sleep(0.02)
            return await slow()

        result = await settle_all(
            "rates", [("fast_fail", fail(ProviderHTTPError("x", "HTTP 500"))), ("slow", delayed)]
        )
        assert slow.calls == 1
        assert result.value == ["slow"]

    @pytest.mark.asyncio
    async def test_all_fail_raises(self) -> None:
        with pytest.raises(AllProvidersFailed) as exc_info:
            await settle_all(
                "currency_rates:USD",
                [
                    ("a", fail(ProviderTimeout("a", "t"))),
                    ("b", fail(ProviderTimeout("b", "t"))),
                    ("c", fail(ProviderTimeout("c", "t"))),
                ],
            )
        assert len(exc_info.value.failures) == 3

    @pytest.mark.asyncio
    async def test_bug_in_one_attempt_propagates(self) -> None:
        with pytest.raises(ZeroDivisionError):
            await settle_all("rates", [("a", ok(1)), ("b", fail(ZeroDivisionError()))])


# ---------------------------------------------------------------------------
# apply_policy
# ---------------------------------------------------------------------------


async def _exhausted() -> ChainResult[str]:
    raise AllProvidersFailed("test", [])


class TestApplyPolicy:
    @pytest.mark.asyncio
    async def test_success_passes_through(self) -> None:
        async def run() -> ChainResult[str]:
            return ChainResult(value="live", provenance=Provenance.LIVE, sources=["a"])

        result = await apply_policy("test", "synthesize", run, lambda: "fake")
        assert result.value == "live"
        assert result.provenance is Provenance.LIVE

    @pytest.mark.asyncio
    async def test_fail_policy_reraises(self) -> None:
        calls = []
        with pytest.raises(AllProvidersFailed):
            await apply_policy("test", "fail", _exhausted, lambda: calls.append(1))
        assert calls == []

    @pytest.mark.asyncio
    async def test_synthesize_policy_marks_synthetic(self) -> None:
        result = await apply_policy("test", "synthesize", _exhausted, lambda: "fake")
        assert result.value == "fake"
        assert result.provenance is Provenance.SYNTHETIC
        assert result.sources == []

    @pytest.mark.asyncio
    async def test_synthesize_without_synthesizer_reraises(self) -> None:
        with pytest.raises(AllProvidersFailed):
            await apply_policy("test", "synthesize", _exhausted)

    @pytest.mark.asyncio
    async def test_synthesizer_returning_none_reraises(self) -> None:
        with pytest.raises(AllProvidersFailed) as exc_info:
            await apply_policy("test", "synthesize", _exhausted, lambda: None)
        assert exc_info.value.chain == "test"
