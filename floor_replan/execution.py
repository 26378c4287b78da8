"""
Line execution shared by replan runs and new-collection batches.

A line moves Pending -> Done exactly once. Executing a Done line again is a
successful no-op. A line only executes when the ledger, as it stands right
now, holds at least the units the line needs.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Union

from . import ledger as stock
from .errors import InsufficientStockError
from .schemas import (
    BulkExecution,
    ExecutionFailure,
    LineExecution,
    LineStatus,
    NewCollectionLine,
    ReplanLine,
    StockLedger,
)

logger = logging.getLogger(__name__)

Line = Union[ReplanLine, NewCollectionLine]


def _mark_done(line, now: datetime) -> None:
    line.status = LineStatus.DONE
    line.executed_at = now


def execute(line: Line, ledger: StockLedger, need: int, now: datetime) -> LineExecution:
    """
    Executes one line against the ledger. Raises NotFoundError when the key is
    gone from the ledger and InsufficientStockError when it holds too few
    units; in both cases neither the ledger nor the line is touched.
    """
    if line.is_done:
        return LineExecution(line=line, already_executed=True, message="Already executed")

    have = stock.quantity(ledger, line.line_id)
    if have < need:
        raise InsufficientStockError(have=have, need=need)

    remaining = stock.decrement(ledger, line.line_id, need)
    _mark_done(line, now)
    logger.info(f"Executed {line.line_id}: pulled {need}, {remaining} left in stock.")
    return LineExecution(line=line, new_stock_qty=remaining)


def execute_pending(
    lines: Iterable[Line],
    ledger: StockLedger,
    need_of: Callable[[Line], int],
    now: datetime,
) -> BulkExecution:
    """
    Executes every Pending line in order. Each line sees the ledger as left by
    the lines before it. Failures are collected, never raised.
    """
    lines = list(lines)
    executed = 0
    failures: list[ExecutionFailure] = []

    for line in lines:
        if line.is_done:
            continue

        item = ledger.items.get(line.line_id)
        need = need_of(line)

        if item is None or need <= 0:
            reason = "Missing stock / qty<=0"
        elif item.qty < need:
            reason = f"Insufficient have {item.qty}, need {need}"
        else:
            stock.decrement(ledger, line.line_id, need)
            _mark_done(line, now)
            executed += 1
            continue

        logger.warning(f"⚠️ Skipped {line.line_id}: {reason}")
        failures.append(ExecutionFailure(line_id=line.line_id, reason=reason))

    logger.info(f"Bulk execution finished: {executed} executed, {len(failures)} failed.")
    return BulkExecution(
        executed=executed, failed=len(failures), failures=failures, lines=lines
    )
