"""Rate and totals calculation.

Amounts are computed at full Decimal precision and rounded half-up to two
places only by :func:`quantize_money` / :func:`format_decimal`, which callers
use at the storage and presentation boundary.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Any

from timesheet_engine.calculators.types import (
    ZERO,
    AggregationRow,
    FrozenSnapshot,
    Totals,
    to_decimal,
)

CENT = Decimal("0.01")


def _cents_down(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def compute_totals(
    row: AggregationRow,
    rate: Any,
    frozen: FrozenSnapshot | None = None,
    include_sunday: bool = False,
) -> Totals:
    """Hours and amount for a row.

    A frozen snapshot from a submitted or paid invoice wins over live data.
    """
    if frozen is not None and frozen.status != "DRAFT":
        return frozen.totals

    hours = row.tonnage_total + row.day_labour_total
    if include_sunday:
        hours += row.sunday_hours
    return Totals(hours=hours, amount=hours * to_decimal(rate))


def allocate_snapshot(snapshot: FrozenSnapshot, weights: list[Decimal]) -> list[Totals]:
    """Split a frozen snapshot across rows in proportion to ``weights``.

    Shares are truncated to cents and the row with the largest weight takes
    the remainder, so the parts add up to the snapshot exactly and none goes
    negative. With no weight at all the first row carries the whole snapshot.
    """
    if not weights:
        return []
    total_weight = sum(weights, ZERO)
    if total_weight <= ZERO:
        weights = [Decimal(1)] + [ZERO] * (len(weights) - 1)
        total_weight = Decimal(1)
    largest = weights.index(max(weights))

    hours = [_cents_down(snapshot.hours * w / total_weight) for w in weights]
    amounts = [_cents_down(snapshot.amount * w / total_weight) for w in weights]
    hours[largest] += snapshot.hours - sum(hours, ZERO)
    amounts[largest] += snapshot.amount - sum(amounts, ZERO)
    return [Totals(hours=h, amount=a) for h, a in zip(hours, amounts)]


def sum_totals(totals: Iterable[Totals]) -> Totals:
    hours = ZERO
    amount = ZERO
    for item in totals:
        hours += item.hours
        amount += item.amount
    return Totals(hours=hours, amount=amount)


def quantize_money(value: Any) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_decimal(value: Any) -> str:
    """Two decimal place string, e.g. ``"500.00"``."""
    return str(quantize_money(value))


def format_currency(value: Any, currency: str = "AUD") -> str:
    """Display amount such as ``$1,234.50`` (currency code only when not AUD)."""
    amount = quantize_money(value)
    text = f"${amount:,.2f}"
    if currency and currency != "AUD":
        text = f"{text} {currency}"
    return text
