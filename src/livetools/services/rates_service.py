"""Currency rate pipeline: parallel providers -> median merge -> display filter."""

import re
from collections.abc import Callable
from functools import partial

from livetools.chain import apply_policy, settle_all
from livetools.config import FallbackPolicy
from livetools.exceptions import InvalidInputError
from livetools.logging import get_logger
from livetools.models import ChainResult, RateTable
from livetools.providers.client import RateProvider
from livetools.providers.synthetic import synthetic_rates
from livetools.reconcile import filter_codes, median_merge

logger = get_logger(__name__)

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def normalize_currency(code: str) -> str:
    """Upper-case and validate an ISO 4217 style code.

    Raises:
        InvalidInputError: If the code is not three letters.
    """
    normalized = code.strip().upper()
    if not _CURRENCY_RE.match(normalized):
        raise InvalidInputError(f"Invalid currency code: {code!r}")
    return normalized


class CurrencyRateService:
    """Fetches rates from every provider at once and reconciles them.

    A single provider failing only reduces the sample; the request fails
    when none answer, unless the policy allows synthetic rates.
    """

    def __init__(
        self,
        providers: list[RateProvider],
        display_codes: list[str] | None = None,
        policy: FallbackPolicy = "fail",
        synthesize: Callable[[str], RateTable | None] = synthetic_rates,
    ) -> None:
        self._providers = providers
        self._display_codes = display_codes or []
        self._policy = policy
        self._synthesize = synthesize

    async def get_rates(self, base: str = "USD") -> ChainResult[RateTable]:
        """Return the consensus rate table for ``base``.

        Raises:
            InvalidInputError: If ``base`` is not a currency code.
            AllProvidersFailed: If no provider answered and the policy is "fail".
        """
        base = normalize_currency(base)
        name = f"currency_rates:{base}"

        async def run() -> ChainResult[RateTable]:
            attempts = [(p.name, partial(p.fetch_rates, base)) for p in self._providers]
            settled = await settle_all(name, attempts)
            table = self._merge(base, settled.value)
            logger.info(
                "rates_merged",
                base=base,
                providers=settled.sources,
                currencies=len(table.rates),
            )
            return ChainResult(
                value=table,
                provenance=settled.provenance,
                sources=settled.sources,
                failures=settled.failures,
            )

        def synthesize() -> RateTable | None:
            table = self._synthesize(base)
            return None if table is None else self._filtered(table)

        return await apply_policy(name, self._policy, run, synthesize)

    def _merge(self, base: str, tables: list[RateTable]) -> RateTable:
        merged = median_merge(t.rates for t in tables)
        table = RateTable(
            base=base,
            rates=merged,
            as_of=max(t.as_of for t in tables),
            providers=tuple(p for t in tables for p in t.providers),
        )
        return self._filtered(table)

    def _filtered(self, table: RateTable) -> RateTable:
        if not self._display_codes:
            return table
        codes = list(self._display_codes)
        if table.base not in codes:
            codes.insert(0, table.base)
        return RateTable(
            base=table.base,
            rates=filter_codes(table.rates, codes),
            as_of=table.as_of,
            providers=table.providers,
        )
