"""Fallback chain runner: sequential-first-success and parallel settle-all.

An attempt is a ``(provider_name, factory)`` pair where ``factory`` returns a
fresh awaitable each time it is called. Only ProviderError (timeouts
included) is treated as a provider failure; anything else is a bug and
propagates to the caller unchanged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from livetools.config import FallbackPolicy
from livetools.exceptions import AllProvidersFailed, ProviderError
from livetools.logging import get_logger
from livetools.models import ChainResult, Provenance, ProviderFailure

logger = get_logger(__name__)

T = TypeVar("T")

Attempt = tuple[str, Callable[[], Awaitable[T]]]


def _failure(provider: str, exc: ProviderError) -> ProviderFailure:
    return ProviderFailure(
        provider=provider,
        error_type=type(exc).__name__,
        message=exc.message,
    )


async def first_success(name: str, attempts: Sequence[Attempt[T]]) -> ChainResult[T]:
    """Try attempts in priority order and stop at the first success.

    Args:
        name: Chain name used in logs and errors (e.g. "etf_quote:VTI").
        attempts: Ordered provider attempts.

    Returns:
        ChainResult holding the first successful value, with the failures of
        every provider tried before it.

    Raises:
        AllProvidersFailed: If every attempt raised ProviderError.
    """
    failures: list[ProviderFailure] = []
    for provider, factory in attempts:
        try:
            value = await factory()
        except ProviderError as e:
            failures.append(_failure(provider, e))
            logger.warning(
                "provider_failed",
                chain=name,
                provider=provider,
                error_type=type(e).__name__,
                error=e.message,
            )
            continue

        if failures:
            logger.info(
                "chain_fell_back",
                chain=name,
                provider=provider,
                failed=[f.provider for f in failures],
            )
        return ChainResult(
            value=value,
            provenance=Provenance.LIVE,
            sources=[provider],
            failures=failures,
        )

    logger.error("chain_exhausted", chain=name, failures=len(failures))
    raise AllProvidersFailed(name, failures)


async def settle_all(name: str, attempts: Sequence[Attempt[T]]) -> ChainResult[list[T]]:
    """Run every attempt concurrently and keep the successes.

    No attempt is cancelled because another failed. Successes are returned
    in attempt order so downstream merging sees a stable sequence.

    Returns:
        ChainResult whose value lists successful outputs. Provenance is LIVE
        when every attempt succeeded and PARTIAL otherwise.

    Raises:
        AllProvidersFailed: If no attempt succeeded.
    """
    outcomes = await asyncio.gather(
        *(factory() for _, factory in attempts),
        return_exceptions=True,
    )

    values: list[T] = []
    sources: list[str] = []
    failures: list[ProviderFailure] = []
    for (provider, _), outcome in zip(attempts, outcomes):
        if isinstance(outcome, ProviderError):
            failures.append(_failure(provider, outcome))
            logger.warning(
                "provider_failed",
                chain=name,
                provider=provider,
                error_type=type(outcome).__name__,
                error=outcome.message,
            )
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            values.append(outcome)
            sources.append(provider)

    if not values:
        logger.error("chain_exhausted", chain=name, failures=len(failures))
        raise AllProvidersFailed(name, failures)

    provenance = Provenance.PARTIAL if failures else Provenance.LIVE
    if failures:
        logger.info(
            "chain_partial",
            chain=name,
            succeeded=sources,
            failed=[f.provider for f in failures],
        )
    return ChainResult(
        value=values,
        provenance=provenance,
        sources=sources,
        failures=failures,
    )


async def apply_policy(
    name: str,
    policy: FallbackPolicy,
    run: Callable[[], Awaitable[ChainResult[T]]],
    synthesize: Callable[[], T | None] | None = None,
) -> ChainResult[T]:
    """Run a chain and apply its fallback policy to total failure.

    Under ``"synthesize"`` an AllProvidersFailed is replaced by the output of
    ``synthesize`` with SYNTHETIC provenance. Under ``"fail"`` it propagates.
    A synthesizer returns None when it has nothing plausible to offer for
    this request.

    Raises:
        AllProvidersFailed: When the chain failed and the policy is "fail",
            or no synthesizer was supplied, or the synthesizer returned None.
    """
    try:
        return await run()
    except AllProvidersFailed as e:
        if policy != "synthesize" or synthesize is None:
            raise
        value = synthesize()
        if value is None:
            logger.error("fallback_unavailable", chain=name)
            raise
        logger.warning(
            "fallback_synthesized",
            chain=name,
            failed=[f.provider for f in e.failures],
        )
        return ChainResult(
            value=value,
            provenance=Provenance.SYNTHETIC,
            sources=[],
            failures=e.failures,
        )
