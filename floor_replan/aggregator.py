"""
Folds ordered (text, qty) report rows into per-key quantity totals.

Reports interleave category header rows with item rows, so the pass carries a
category cursor. The cursor is an explicit two-state value threaded through
``step`` rather than a variable mutated inside the loop.
"""

import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Sequence, Union

from .parsers import has_sku_code, is_category_header, parse_text_line
from .schemas import make_key


@dataclass(frozen=True)
class AwaitingCategory:
    """No header seen yet; items are filed under an empty category."""

    @property
    def category(self) -> str:
        return ""


@dataclass(frozen=True)
class InCategory:
    category: str


CursorState = Union[AwaitingCategory, InCategory]


class AggregatedRow(NamedTuple):
    category: str
    sku: str
    size: str
    color: str
    qty: int

    @property
    def key(self) -> str:
        return make_key(self.sku, self.size, self.color)


def coerce_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def coerce_qty(value) -> int:
    """Numbers and numeric strings become ints; anything else counts as 0."""
    if value is None:
        return 0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def step(state: CursorState, row: Sequence) -> tuple[CursorState, AggregatedRow | None]:
    """
    Consumes one row. Returns the next cursor state and, for product rows,
    the row's contribution (qty not yet summed).
    """
    text = coerce_text(row[0] if len(row) > 0 else None)
    if not text:
        return state, None

    if is_category_header(text):
        return InCategory(text), None
    if not has_sku_code(text):
        return state, None

    parsed = parse_text_line(text)
    if not parsed.is_product:
        return state, None

    qty = coerce_qty(row[1] if len(row) > 1 else None)
    return state, AggregatedRow(state.category, parsed.sku, parsed.size, parsed.color, qty)


def aggregate_rows(rows: Iterable[Sequence]) -> list[AggregatedRow]:
    """
    Sums quantities per (category, sku, size, color). One output row per
    distinct key, in first-seen order.
    """
    state: CursorState = AwaitingCategory()
    totals: dict[tuple[str, str, str, str], int] = {}

    for row in rows:
        state, contribution = step(state, row)
        if contribution is None:
            continue
        group = contribution[:4]
        totals[group] = totals.get(group, 0) + contribution.qty

    return [AggregatedRow(*group, qty) for group, qty in totals.items()]


def to_key_totals(rows: Iterable[AggregatedRow]) -> dict[str, int]:
    """Re-keys aggregated rows by inventory key, summing across categories."""
    totals: dict[str, int] = {}
    for row in rows:
        totals[row.key] = totals.get(row.key, 0) + row.qty
    return totals
