import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

from . import settings, utils
from .schemas import (
    CategoryTotal,
    DashboardReport,
    ReplanLine,
    RunHistory,
    SkuTotal,
    StaleItem,
    StockLedger,
)

logger = logging.getLogger(__name__)


def _positive_days(value, default: int) -> int:
    try:
        days = float(value or default)
    except (TypeError, ValueError):
        days = default
    if not math.isfinite(days):
        days = default
    return max(int(days), 1)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class DashboardAnalyzer:
    """
    Leaderboards of what was pulled recently, plus the in-stock lines nobody
    has pulled for a while (or ever).
    """

    def __init__(self, clock: Callable[[], datetime] = utils.now):
        self.clock = clock

    @staticmethod
    def done_lines(history: RunHistory):
        for run in history.runs:
            for line in run.lines:
                if line.is_done and line.executed_at is not None:
                    yield line

    def last_executions(self, history: RunHistory) -> dict[str, datetime]:
        """Most recent execution per inventory key, over the whole history."""
        last: dict[str, datetime] = {}
        for line in self.done_lines(history):
            executed_at = _as_utc(line.executed_at)
            if line.line_id not in last or executed_at > last[line.line_id]:
                last[line.line_id] = executed_at
        return last

    @staticmethod
    def top_categories(lines: list[ReplanLine], limit: int) -> list[CategoryTotal]:
        totals: dict[str, int] = {}
        for line in lines:
            totals[line.category] = totals.get(line.category, 0) + line.pull_qty
        ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
        return [CategoryTotal(category=c, qty=q) for c, q in ranked[:limit]]

    @staticmethod
    def top_skus(lines: list[ReplanLine], limit: int) -> list[SkuTotal]:
        totals: dict[tuple[str, str], int] = {}
        for line in lines:
            group = (line.category, line.sku)
            totals[group] = totals.get(group, 0) + line.pull_qty
        ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
        return [SkuTotal(category=c, sku=s, qty=q) for (c, s), q in ranked[:limit]]

    def stale_items(
        self,
        ledger: StockLedger,
        last_by_key: dict[str, datetime],
        cutoff: datetime,
        category: str = "",
    ) -> list[StaleItem]:
        stale = []
        for key, item in ledger.items.items():
            if item.qty <= 0:
                continue
            if category and item.category != category:
                continue
            last = last_by_key.get(key)
            if last is not None and last >= cutoff:
                continue
            stale.append(
                StaleItem(
                    category=item.category,
                    sku=item.sku,
                    size=item.size,
                    color=item.color,
                    stock_qty=item.qty,
                    last_executed_at=last,
                )
            )

        # Never-pulled lines first, then the oldest pull.
        stale.sort(
            key=lambda x: (
                x.last_executed_at is not None,
                x.last_executed_at.timestamp() if x.last_executed_at else 0.0,
            )
        )
        return stale[: settings.NO_REPLAN_LIMIT]

    def analyze(
        self,
        history: RunHistory,
        ledger: StockLedger,
        days=None,
        stale_days=None,
        category: str = "",
    ) -> DashboardReport:
        days = _positive_days(days, settings.DASHBOARD_WINDOW_DAYS)
        stale_days = _positive_days(stale_days, settings.DASHBOARD_STALE_DAYS)
        category = (category or "").strip()

        now = _as_utc(self.clock())
        since = now - timedelta(days=days)
        stale_cutoff = now - timedelta(days=stale_days)

        recent = [
            line
            for line in self.done_lines(history)
            if _as_utc(line.executed_at) >= since
            and (not category or line.category == category)
        ]

        report = DashboardReport(
            window_days=days,
            stale_days=stale_days,
            category=category or "All",
            top_categories=self.top_categories(recent, settings.TOP_CATEGORIES_LIMIT),
            top_skus=self.top_skus(recent, settings.TOP_SKUS_LIMIT),
            no_replan=self.stale_items(
                ledger, self.last_executions(history), stale_cutoff, category
            ),
        )
        logger.info(
            f"Dashboard: {len(recent)} pulls in the last {days} days, "
            f"{len(report.no_replan)} stale lines."
        )
        return report
