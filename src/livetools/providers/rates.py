"""Exchange-rate provider adapters.

Each adapter performs one GET, normalizes the provider's payload into a
RateTable quoted against the requested base, and raises ProviderError on
anything unexpected. Tables answered in another base are re-based; the base
currency itself is always present with rate 1.
"""

from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from livetools.models import RateTable
from livetools.providers.client import HttpProvider, RateProvider, to_decimal
from livetools.reconcile import is_valid_rate, rebase


def _parse_date(raw: Any) -> date:
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            pass
    return datetime.now(timezone.utc).date()


class _JsonRateProvider(HttpProvider, RateProvider):
    """Shared normalization for JSON rate endpoints."""

    def _build_table(
        self,
        requested: str,
        answered: str,
        raw_rates: Any,
        as_of: date,
    ) -> RateTable:
        if not isinstance(raw_rates, Mapping) or not raw_rates:
            raise self._malformed("missing rates object")

        rates = {}
        for code, raw in raw_rates.items():
            value = to_decimal(raw)
            if value is not None and is_valid_rate(value):
                rates[str(code).upper()] = value
        if not rates:
            raise self._malformed("no numeric rates in payload")

        answered = answered.upper()
        rates.setdefault(answered, Decimal("1"))
        if answered != requested:
            rates = rebase(answered, rates, requested, provider=self.name)

        return RateTable(base=requested, rates=rates, as_of=as_of, providers=(self.name,))


class ExchangeRateApiProvider(_JsonRateProvider):
    """api.exchangerate-api.com v4: ``{base, date, rates}``."""

    name = "exchangerate_api"
    url = "https://api.exchangerate-api.com/v4/latest/{base}"

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(self.url.format(base=base))
        if not isinstance(data, dict):
            raise self._malformed("expected JSON object")
        return self._build_table(
            base, str(data.get("base") or base), data.get("rates"), _parse_date(data.get("date"))
        )


class FrankfurterProvider(_JsonRateProvider):
    """api.frankfurter.app (ECB reference rates): ``{amount, base, date, rates}``."""

    name = "frankfurter"
    url = "https://api.frankfurter.app/latest"

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(self.url, params={"from": base})
        if not isinstance(data, dict):
            raise self._malformed("expected JSON object")
        return self._build_table(
            base, str(data.get("base") or base), data.get("rates"), _parse_date(data.get("date"))
        )


class ExchangerateHostProvider(_JsonRateProvider):
    """api.exchangerate.host: ``{success, base, date, rates}``."""

    name = "exchangerate_host"
    url = "https://api.exchangerate.host/latest"

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(self.url, params={"base": base})
        if not isinstance(data, dict):
            raise self._malformed("expected JSON object")
        if data.get("success") is False:
            raise self._malformed(f"provider error: {data.get('error')}")
        return self._build_table(
            base, str(data.get("base") or base), data.get("rates"), _parse_date(data.get("date"))
        )


class OpenErApiProvider(_JsonRateProvider):
    """open.er-api.com v6: ``{result, base_code, time_last_update_utc, rates}``."""

    name = "open_er_api"
    url = "https://open.er-api.com/v6/latest/{base}"

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(self.url.format(base=base))
        if not isinstance(data, dict):
            raise self._malformed("expected JSON object")
        if data.get("result") not in (None, "success"):
            raise self._malformed(f"provider error: {data.get('error-type')}")
        as_of = _parse_date(None)
        updated = data.get("time_last_update_unix")
        if isinstance(updated, int):
            as_of = datetime.fromtimestamp(updated, tz=timezone.utc).date()
        return self._build_table(
            base, str(data.get("base_code") or base), data.get("rates"), as_of
        )


class FixerProvider(_JsonRateProvider):
    """api.fixer.io with the public demo key."""

    name = "fixer"
    url = "https://api.fixer.io/latest"

    def __init__(self, access_key: str = "demo", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._access_key = access_key

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(
            self.url, params={"access_key": self._access_key, "base": base, "format": 1}
        )
        if not isinstance(data, dict):
            raise self._malformed("expected JSON object")
        if data.get("success") is False:
            raise self._malformed(f"provider error: {data.get('error')}")
        return self._build_table(
            base, str(data.get("base") or base), data.get("rates"), _parse_date(data.get("date"))
        )


class CurrencyApiProvider(_JsonRateProvider):
    """api.currencyapi.com v3: ``{meta, data: {CODE: {code, value}}}``."""

    name = "currencyapi"
    url = "https://api.currencyapi.com/v3/latest"

    def __init__(self, api_key: str = "demo", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key

    async def fetch_rates(self, base: str) -> RateTable:
        data = await self._get_json(
            self.url, params={"apikey": self._api_key, "base_currency": base}
        )
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise self._malformed("missing data object")
        raw_rates = {
            code: info.get("value")
            for code, info in data["data"].items()
            if isinstance(info, dict)
        }
        meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}
        return self._build_table(base, base, raw_rates, _parse_date(meta.get("last_updated_at")))


RATE_PROVIDERS: dict[str, type[_JsonRateProvider]] = {
    provider.name: provider
    for provider in (
        FrankfurterProvider,
        ExchangerateHostProvider,
        OpenErApiProvider,
        ExchangeRateApiProvider,
        FixerProvider,
        CurrencyApiProvider,
    )
}


def build_rate_providers(
    names: list[str],
    timeout: float,
    user_agent: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RateProvider]:
    """Instantiate rate adapters by registry name, preserving order.

    Raises:
        ValueError: If a name is not a known provider.
    """
    providers: list[RateProvider] = []
    for name in names:
        cls = RATE_PROVIDERS.get(name)
        if cls is None:
            raise ValueError(
                f"Unknown rate provider {name!r}; expected one of {sorted(RATE_PROVIDERS)}"
            )
        providers.append(cls(timeout=timeout, user_agent=user_agent, transport=transport))
    return providers
