import logging
from datetime import datetime
from typing import Callable, Iterable, Sequence

from . import execution, limits, utils
from .aggregator import aggregate_rows, to_key_totals
from .errors import EmptyLedgerError, NotFoundError, ValidationError
from .schemas import (
    BulkExecution,
    LimitsConfig,
    LineExecution,
    ReplanLine,
    ReplanRun,
    RunHistory,
    RunSummary,
    StockLedger,
)

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class ReplanEngine:
    """
    Builds replan runs from sales reports and executes their lines.

    A run proposes, per inventory key that sold, how many units to pull from
    the remaining stock. Lines are fixed at generation time; executing them
    only changes their status and the ledger.
    """

    def __init__(self, clock: Callable[[], datetime] = utils.now):
        self.clock = clock

    def build_lines(
        self,
        ledger: StockLedger,
        sales_totals: dict[str, int],
        config: LimitsConfig,
        category_filter: str = "",
    ) -> list[ReplanLine]:
        lines = []
        for key, sales_qty in sales_totals.items():
            if sales_qty <= 0:
                continue

            item = ledger.items.get(key)
            if item is None:
                continue
            if category_filter and item.category != category_filter:
                continue

            balance = item.qty - sales_qty
            if balance <= 0:
                continue

            min_qty, max_qty = limits.resolve(config, item.sku)
            pull_qty = limits.clamp(balance, min_qty, max_qty)
            if pull_qty <= 0:
                continue

            lines.append(
                ReplanLine(
                    line_id=key,
                    category=item.category,
                    sku=item.sku,
                    size=item.size,
                    color=item.color,
                    stock_qty=item.qty,
                    sales_qty=sales_qty,
                    balance=balance,
                    pull_qty=pull_qty,
                )
            )

        lines.sort(key=lambda line: (-line.balance, line.sku))
        return lines

    def generate(
        self,
        ledger: StockLedger,
        sales_rows: Iterable[Sequence],
        config: LimitsConfig,
        category_filter: str = "",
        sales_file_name: str | None = None,
    ) -> ReplanRun:
        """
        Creates a run from raw sales rows. Fails with EmptyLedgerError before
        reading any row when no stock snapshot is loaded.
        """
        if ledger.is_empty():
            raise EmptyLedgerError()

        category_filter = (category_filter or "").strip()
        sales_totals = to_key_totals(aggregate_rows(sales_rows))
        lines = self.build_lines(ledger, sales_totals, config, category_filter)

        created_at = self.clock()
        run = ReplanRun(
            run_id=utils.new_run_id(created_at),
            created_at=created_at,
            category_filter=category_filter or ALL_CATEGORIES,
            sales_file_name=sales_file_name,
            lines=lines,
        )
        logger.info(
            f"✅ Generated {run.run_id}: {len(lines)} lines from {len(sales_totals)} sold keys "
            f"(category: {run.category_filter})."
        )
        return run

    @staticmethod
    def add_run(history: RunHistory, run: ReplanRun) -> None:
        """Most recent run goes first."""
        history.runs.insert(0, run)

    @staticmethod
    def find_run(history: RunHistory, run_id: str) -> ReplanRun:
        run_id = (run_id or "").strip()
        if not run_id:
            raise ValidationError("Missing runId")
        for run in history.runs:
            if run.run_id == run_id:
                return run
        raise NotFoundError("Run not found")

    @staticmethod
    def find_line(run: ReplanRun, line_id: str) -> ReplanLine:
        line_id = (line_id or "").strip()
        if not line_id:
            raise ValidationError("Missing lineId")
        for line in run.lines:
            if line.line_id == line_id:
                return line
        raise NotFoundError("Line not found")

    def execute_line(
        self, history: RunHistory, ledger: StockLedger, run_id: str, line_id: str
    ) -> LineExecution:
        if not (run_id or "").strip() or not (line_id or "").strip():
            raise ValidationError("Missing runId or lineId")
        run = self.find_run(history, run_id)
        line = self.find_line(run, line_id)
        return execution.execute(line, ledger, line.pull_qty, self.clock())

    def execute_all(
        self, history: RunHistory, ledger: StockLedger, run_id: str
    ) -> BulkExecution:
        run = self.find_run(history, run_id)
        logger.info(f"Executing all pending lines of {run.run_id}...")
        return execution.execute_pending(
            run.lines, ledger, lambda line: line.pull_qty, self.clock()
        )

    @staticmethod
    def latest_run(history: RunHistory) -> ReplanRun | None:
        return history.runs[0] if history.runs else None

    @staticmethod
    def list_runs(history: RunHistory, limit: int | None = None) -> list[RunSummary]:
        runs = history.runs if limit is None else history.runs[: max(limit, 0)]
        return [RunSummary.from_run(run, include_lines=False) for run in runs]
