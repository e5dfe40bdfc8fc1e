"""ETF quote pipeline: per-symbol sequential provider chain plus price history.

Symbols resolve concurrently; within a symbol providers are tried in
priority order. A missing price history never fails a live quote: it is
replaced by a synthetic series and the symbol is reported as partial.
"""

import asyncio
import random
import re
from collections.abc import Callable
from dataclasses import replace
from functools import partial

from livetools.chain import apply_policy, first_success
from livetools.config import FallbackPolicy
from livetools.exceptions import InvalidInputError, ProviderError
from livetools.logging import get_logger
from livetools.models import ChainResult, Provenance, ProviderFailure, Quote
from livetools.providers.client import HistoryProvider, QuoteProvider
from livetools.providers.synthetic import synthetic_history, synthetic_quote

logger = get_logger(__name__)

_SYMBOL_RE = re.compile(r"^[A-Z0-9][A-Z0-9.\-^=]{0,9}$")


def parse_symbols(raw: str | None, default: list[str], limit: int) -> list[str]:
    """Split a comma-separated symbol list, upper-cased and de-duplicated.

    Raises:
        InvalidInputError: On a malformed symbol or too many symbols.
    """
    if raw is None or not raw.strip():
        return list(default)
    symbols: list[str] = []
    for part in raw.split(","):
        symbol = part.strip().upper()
        if not symbol:
            continue
        if not _SYMBOL_RE.match(symbol):
            raise InvalidInputError(f"Invalid symbol: {part.strip()!r}")
        if symbol not in symbols:
            symbols.append(symbol)
    if not symbols:
        return list(default)
    if len(symbols) > limit:
        raise InvalidInputError(f"At most {limit} symbols per request, got {len(symbols)}")
    return symbols


class EtfDataService:
    """Resolves ETF quotes with history through the quote provider chain."""

    def __init__(
        self,
        quote_providers: list[QuoteProvider],
        history_provider: HistoryProvider | None,
        policy: FallbackPolicy = "synthesize",
        history_days: int = 30,
        rng_factory: Callable[[], random.Random] = random.Random,
    ) -> None:
        self._quote_providers = quote_providers
        self._history_provider = history_provider
        self._policy = policy
        self._history_days = history_days
        self._rng_factory = rng_factory

    async def get_quotes(self, symbols: list[str]) -> dict[str, ChainResult[Quote]]:
        """Resolve every symbol concurrently.

        Every symbol's chain runs to completion before an error is raised.

        Raises:
            AllProvidersFailed: If a symbol's chain fails and the policy is
                "fail". The first failing symbol in ``symbols`` order wins.
        """
        results = await asyncio.gather(
            *(self.get_quote(s) for s in symbols), return_exceptions=True
        )
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.error("etf_quote_failed", symbol=symbol, error_type=type(result).__name__)
                raise result
        snapshot = dict(zip(symbols, results))
        logger.info(
            "etf_quotes_resolved",
            symbols=len(symbols),
            synthetic=[s for s, r in snapshot.items() if r.provenance is Provenance.SYNTHETIC],
        )
        return snapshot

    async def get_quote(self, symbol: str) -> ChainResult[Quote]:
        name = f"etf_quote:{symbol}"

        async def run() -> ChainResult[Quote]:
            attempts = [(p.name, partial(p.fetch_quote, symbol)) for p in self._quote_providers]
            result = await first_success(name, attempts)
            return await self._with_history(result)

        return await apply_policy(
            name,
            self._policy,
            run,
            lambda: synthetic_quote(symbol, self._rng_factory(), self._history_days),
        )

    async def _with_history(self, result: ChainResult[Quote]) -> ChainResult[Quote]:
        quote = result.value
        if self._history_provider is None:
            return result
        try:
            history = await self._history_provider.fetch_history(quote.symbol, self._history_days)
        except ProviderError as e:
            logger.warning(
                "history_synthesized",
                symbol=quote.symbol,
                provider=e.provider,
                error=e.message,
            )
            history = synthetic_history(
                quote.price, self._history_days, self._rng_factory(), skip_weekends=True
            )
            return ChainResult(
                value=replace(quote, price_history=tuple(history)),
                provenance=Provenance.PARTIAL,
                sources=result.sources,
                failures=[
                    *result.failures,
                    ProviderFailure(e.provider, type(e).__name__, e.message),
                ],
            )

        return ChainResult(
            value=replace(quote, price_history=tuple(history)),
            provenance=result.provenance,
            sources=[*result.sources, self._history_provider.name],
            failures=result.failures,
        )
