"""Median merge of exchange-rate fragments from concurrently queried providers.

A fragment is a plain ``{code: rate}`` mapping relative to one base currency.
The merge is order-independent: permuting the fragments never changes the
result.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from livetools.exceptions import MalformedPayloadError


def is_valid_rate(value: Decimal) -> bool:
    """Return True for a positive finite rate."""
    return value.is_finite() and value > 0


def median(values: Iterable[Decimal]) -> Decimal:
    """Statistical median: middle value for odd counts, mean of the two
    middle values for even counts.

    Raises:
        ValueError: If ``values`` is empty.
    """
    ordered = sorted(values)
    if not ordered:
        raise ValueError("median of empty sequence")
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def median_merge(fragments: Iterable[Mapping[str, Decimal]]) -> dict[str, Decimal]:
    """Merge rate fragments into one consensus table.

    For each code present in at least one fragment, the result holds the
    median of the valid values reported for it. Non-positive and non-finite
    values are discarded first; a code with no valid values is left out
    rather than defaulted.

    Args:
        fragments: Rate mappings sharing the same base currency.

    Returns:
        Merged mapping, keys sorted alphabetically.
    """
    samples: dict[str, list[Decimal]] = {}
    for fragment in fragments:
        for code, value in fragment.items():
            if is_valid_rate(value):
                samples.setdefault(code, []).append(value)

    return {code: median(samples[code]) for code in sorted(samples)}


def rebase(
    base: str, rates: Mapping[str, Decimal], target: str, provider: str = "rebase"
) -> dict[str, Decimal]:
    """Re-express a table quoted against ``base`` relative to ``target``.

    Raises:
        MalformedPayloadError: If the table has no usable rate for ``target``.
    """
    if base == target:
        return dict(rates)

    pivot = rates.get(target)
    if pivot is None or not is_valid_rate(pivot):
        raise MalformedPayloadError(
            provider, f"cannot rebase {base} table to {target}: no {target} rate"
        )

    rebased = {code: value / pivot for code, value in rates.items() if is_valid_rate(value)}
    rebased[base] = Decimal("1") / pivot
    rebased[target] = Decimal("1")
    return rebased


def filter_codes(rates: Mapping[str, Decimal], codes: Iterable[str]) -> dict[str, Decimal]:
    """Keep only the requested codes, in the requested order."""
    return {code: rates[code] for code in codes if code in rates}
