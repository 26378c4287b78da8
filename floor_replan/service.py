"""
Outward operations of the replenishment system.

Each public method is one bounded transaction: take the locks of every
document it touches, load them, let an engine mutate the in-memory copies,
and write back what changed. Engines never see the store.

Run history is a single document, so executing lines of any run serializes
on the RUNS lock together with STOCK; there is no finer per-run lock.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Sequence

from . import ledger as stock
from . import limits, settings, utils
from .aggregator import aggregate_rows
from .dashboard import DashboardAnalyzer
from .errors import EmptyLedgerError, ValidationError
from .new_collection import NewCollectionEngine
from .replan import ReplanEngine
from .schemas import (
    BatchMode,
    BulkExecution,
    DashboardReport,
    LimitRule,
    LimitsConfig,
    LineExecution,
    NewCollectionBatch,
    ReplanRun,
    RunHistory,
    RunSummary,
    SearchResult,
    StockLedger,
    StockUpdateSummary,
)
from .storage import DocumentStore, JsonFileStore

logger = logging.getLogger(__name__)

STOCK = settings.STOCK_DOCUMENT
RUNS = settings.RUNS_DOCUMENT
NEW_COLLECTION = settings.NEW_COLLECTION_DOCUMENT
LIMITS = settings.LIMITS_DOCUMENT


def _required(value, message: str) -> str:
    value = str(value if value is not None else "").strip()
    if not value:
        raise ValidationError(message)
    return value


class ReplanService:
    def __init__(
        self,
        store: DocumentStore | None = None,
        clock: Callable[[], datetime] = utils.now,
    ):
        self.store = store or JsonFileStore()
        self.clock = clock
        self.replan = ReplanEngine(clock)
        self.new_collection = NewCollectionEngine(clock)
        self.analyzer = DashboardAnalyzer(clock)

    # --- Document access (callers hold the lock) ---

    def _ledger(self) -> StockLedger:
        return self.store.load(STOCK, StockLedger)

    def _history(self) -> RunHistory:
        return self.store.load(RUNS, RunHistory)

    def _batch(self) -> NewCollectionBatch:
        return self.store.load(NEW_COLLECTION, NewCollectionBatch)

    def _limits(self) -> LimitsConfig:
        return self.store.load(LIMITS, LimitsConfig)

    # --- Stock ---

    def update_stock(
        self, rows: Iterable[Sequence], source_name: str | None = None
    ) -> StockUpdateSummary:
        """
        Replaces the ledger with a new snapshot and rebuilds the new-collection
        batch from the difference with the previous one.
        """
        items = stock.build_items(aggregate_rows(rows))

        with self.store.lock(STOCK, NEW_COLLECTION):
            previous = self._ledger()
            current = stock.replace(items, source_name, self.clock())
            batch = self.new_collection.build_batch(previous, current)
            self.store.save(NEW_COLLECTION, batch)
            self.store.save(STOCK, current)

        logger.info(f"✅ Stock replaced from {source_name or 'upload'}: {len(items)} lines.")
        return StockUpdateSummary(
            updated_at=current.updated_at,
            total_lines=len(items),
            base_mode=batch.mode == BatchMode.BASE_ALL,
            new_collection_count=len(batch.items),
        )

    def clear_stock(self) -> None:
        """Empties the ledger and resets run history and the batch with it."""
        with self.store.lock(STOCK, RUNS, NEW_COLLECTION):
            self.store.save(STOCK, stock.clear(self.clock()))
            self.store.save(RUNS, RunHistory())
            self.store.save(NEW_COLLECTION, NewCollectionBatch())
        logger.info("Stock, run history and new collection cleared.")

    def current_stock(self) -> StockLedger:
        with self.store.lock(STOCK):
            return self._ledger()

    def require_stock(self) -> None:
        """Raises EmptyLedgerError when no snapshot is loaded."""
        if self.current_stock().is_empty():
            raise EmptyLedgerError()

    def search(self, query: str = "", category: str = "", limit=None) -> SearchResult:
        ledger = self.current_stock()
        count, items = stock.search(ledger, query, category, limit)
        return SearchResult(updated_at=ledger.updated_at, count=count, items=items)

    def categories(self) -> list[str]:
        return stock.categories(self.current_stock())

    # --- Limits ---

    def get_limits(self) -> LimitsConfig:
        with self.store.lock(LIMITS):
            return self._limits()

    def set_default_limits(self, min_qty, max_qty) -> LimitsConfig:
        with self.store.lock(LIMITS):
            config = limits.set_default(self._limits(), min_qty, max_qty)
            self.store.save(LIMITS, config)
        return config

    def set_sku_limits(self, sku, min_qty, max_qty) -> LimitRule:
        with self.store.lock(LIMITS):
            config = self._limits()
            rule = limits.set_sku(config, sku, min_qty, max_qty)
            self.store.save(LIMITS, config)
        return rule

    def remove_sku_limits(self, sku) -> LimitRule:
        with self.store.lock(LIMITS):
            config = self._limits()
            rule = limits.remove_sku(config, sku)
            self.store.save(LIMITS, config)
        return rule

    # --- Replan Runs ---

    def generate_run(
        self,
        sales_rows: Iterable[Sequence],
        category_filter: str = "",
        sales_file_name: str | None = None,
    ) -> RunSummary:
        """
        Builds a run from the stored limits and ledger and records it, all
        under one critical section so a concurrent clear cannot interleave.
        """
        with self.store.lock(LIMITS, STOCK, RUNS):
            config = self._limits()
            ledger = self._ledger()
            run = self.replan.generate(
                ledger, sales_rows, config, category_filter, sales_file_name
            )
            history = self._history()
            self.replan.add_run(history, run)
            self.store.save(RUNS, history)

        return RunSummary.from_run(run)

    def list_runs(self, limit: int | None = None) -> list[RunSummary]:
        with self.store.lock(RUNS):
            return self.replan.list_runs(self._history(), limit)

    def get_run(self, run_id: str) -> ReplanRun:
        with self.store.lock(RUNS):
            return self.replan.find_run(self._history(), run_id)

    def latest_run(self) -> ReplanRun | None:
        with self.store.lock(RUNS):
            return self.replan.latest_run(self._history())

    def execute_run_line(self, run_id: str, line_id: str) -> LineExecution:
        run_id = _required(run_id, "Missing runId or lineId")
        line_id = _required(line_id, "Missing runId or lineId")

        with self.store.lock(STOCK, RUNS):
            history = self._history()
            ledger = self._ledger()
            result = self.replan.execute_line(history, ledger, run_id, line_id)
            if not result.already_executed:
                self.store.save(STOCK, ledger)
                self.store.save(RUNS, history)
        return result

    def execute_run(self, run_id: str) -> BulkExecution:
        run_id = _required(run_id, "Missing runId")

        with self.store.lock(STOCK, RUNS):
            history = self._history()
            ledger = self._ledger()
            result = self.replan.execute_all(history, ledger, run_id)
            if result.executed:
                self.store.save(STOCK, ledger)
                self.store.save(RUNS, history)
        return result

    # --- New Collection ---

    def latest_new_collection(self) -> NewCollectionBatch:
        with self.store.lock(NEW_COLLECTION):
            return self._batch()

    def execute_new_collection_line(self, line_id: str) -> LineExecution:
        line_id = _required(line_id, "Missing lineId")

        with self.store.lock(NEW_COLLECTION, STOCK):
            batch = self._batch()
            ledger = self._ledger()
            result = self.new_collection.execute_line(batch, ledger, line_id)
            if not result.already_executed:
                self.store.save(STOCK, ledger)
                self.store.save(NEW_COLLECTION, batch)
        return result

    def execute_new_collection(self) -> BulkExecution:
        with self.store.lock(NEW_COLLECTION, STOCK):
            batch = self._batch()
            ledger = self._ledger()
            result = self.new_collection.execute_all(batch, ledger)
            if result.executed:
                self.store.save(STOCK, ledger)
                self.store.save(NEW_COLLECTION, batch)
        return result

    # --- Dashboard ---

    def dashboard(self, days=None, stale_days=None, category: str = "") -> DashboardReport:
        with self.store.lock(RUNS, STOCK):
            history = self._history()
            ledger = self._ledger()
        return self.analyzer.analyze(history, ledger, days, stale_days, category)
