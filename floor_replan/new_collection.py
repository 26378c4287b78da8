import logging
from datetime import datetime
from typing import Callable

from . import execution, utils
from .errors import NotFoundError, ValidationError
from .schemas import (
    BatchMode,
    BulkExecution,
    LineExecution,
    NewCollectionBatch,
    NewCollectionLine,
    StockLedger,
)

logger = logging.getLogger(__name__)

# Every new-arrival line pulls a single unit.
UNIT_QTY = 1


class NewCollectionEngine:
    """
    Derives the pending "new arrivals" batch from a stock snapshot change.

    After a clear (empty previous ledger) every in-stock key is new. On a
    regular update only keys missing from the previous snapshot are; a key
    whose quantity merely changed is not surfaced again.
    """

    def __init__(self, clock: Callable[[], datetime] = utils.now):
        self.clock = clock

    def build_batch(
        self, previous: StockLedger, current: StockLedger
    ) -> NewCollectionBatch:
        base_load = previous.is_empty()
        mode = BatchMode.BASE_ALL if base_load else BatchMode.UPDATE_NEW_ONLY

        items = []
        for key, item in current.items.items():
            if not base_load and key in previous.items:
                continue
            if item.qty < UNIT_QTY:
                continue
            items.append(
                NewCollectionLine(
                    line_id=key,
                    category=item.category,
                    sku=item.sku,
                    size=item.size,
                    color=item.color,
                    qty=UNIT_QTY,
                )
            )

        batch = NewCollectionBatch(created_at=self.clock(), mode=mode, items=items)
        logger.info(f"New collection batch ({mode.value}): {len(items)} pending lines.")
        return batch

    @staticmethod
    def find_line(batch: NewCollectionBatch, line_id: str) -> NewCollectionLine:
        line_id = (line_id or "").strip()
        if not line_id:
            raise ValidationError("Missing lineId")
        for line in batch.items:
            if line.line_id == line_id:
                return line
        raise NotFoundError("Line not found")

    def execute_line(
        self, batch: NewCollectionBatch, ledger: StockLedger, line_id: str
    ) -> LineExecution:
        line = self.find_line(batch, line_id)
        return execution.execute(line, ledger, UNIT_QTY, self.clock())

    def execute_all(self, batch: NewCollectionBatch, ledger: StockLedger) -> BulkExecution:
        logger.info("Executing all pending new collection lines...")
        return execution.execute_pending(
            batch.items, ledger, lambda line: UNIT_QTY, self.clock()
        )
