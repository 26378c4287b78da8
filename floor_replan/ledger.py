"""
Stock ledger operations.

The ledger is the single authoritative snapshot of on-hand quantity per
inventory key. It is only ever replaced wholesale by a stock upload or
decremented by a successful line execution.
"""

import logging
from datetime import datetime
from typing import Iterable

from . import settings
from .aggregator import AggregatedRow
from .errors import InsufficientStockError, NotFoundError, ValidationError
from .schemas import StockItem, StockLedger

logger = logging.getLogger(__name__)


def build_items(rows: Iterable[AggregatedRow]) -> dict[str, StockItem]:
    """
    Keys aggregated stock rows by inventory key. When the same key appears
    under two categories, the later row wins. Negative totals are stored as 0.
    """
    items: dict[str, StockItem] = {}
    for row in rows:
        items[row.key] = StockItem(
            sku=row.sku,
            size=row.size,
            color=row.color,
            category=row.category,
            qty=max(0, row.qty),
        )
    return items


def replace(
    items: dict[str, StockItem], source_name: str | None, now: datetime
) -> StockLedger:
    """Builds the snapshot that replaces the current ledger."""
    return StockLedger(updated_at=now, source_file_name=source_name, items=items)


def clear(now: datetime) -> StockLedger:
    return StockLedger(updated_at=now, source_file_name=None, items={})


def quantity(ledger: StockLedger, key: str) -> int:
    item = ledger.items.get(key)
    if item is None:
        raise NotFoundError("Item not found in stock")
    return item.qty


def decrement(ledger: StockLedger, key: str, amount: int) -> int:
    """Subtracts in place and returns the remaining quantity."""
    if amount < 0:
        raise ValidationError("Amount must not be negative")
    item = ledger.items.get(key)
    if item is None:
        raise NotFoundError("Item not found in stock")
    if amount > item.qty:
        raise InsufficientStockError(have=item.qty, need=amount)
    item.qty -= amount
    return item.qty


def _matches(item: StockItem, needle: str) -> bool:
    return any(
        needle in str(value).lower()
        for value in (item.sku, item.size, item.color, item.category)
    )


def search(
    ledger: StockLedger,
    query: str = "",
    category: str = "",
    limit: int | None = None,
) -> tuple[int, list[StockItem]]:
    """
    In-stock items only, optionally narrowed to a category and a substring
    over sku/size/color/category, largest quantity first.
    Returns the total match count and the first ``limit`` items.
    """
    needle = (query or "").strip().lower()
    category = (category or "").strip()
    try:
        limit = int(limit or settings.SEARCH_DEFAULT_LIMIT)
    except (TypeError, ValueError):
        limit = settings.SEARCH_DEFAULT_LIMIT
    limit = min(max(limit, 1), settings.SEARCH_MAX_LIMIT)

    items = [x for x in ledger.items.values() if x.qty > 0]
    if category:
        items = [x for x in items if x.category == category]
    if needle:
        items = [x for x in items if _matches(x, needle)]

    items.sort(key=lambda x: x.qty, reverse=True)
    return len(items), items[:limit]


def categories(ledger: StockLedger) -> list[str]:
    """Distinct categories that still have stock, sorted."""
    return sorted({x.category for x in ledger.items.values() if x.qty > 0})
