from datetime import datetime, timedelta, timezone

import pytest

from floor_replan import ledger as stock
from floor_replan.dashboard import DashboardAnalyzer
from floor_replan.schemas import (
    LineStatus,
    ReplanLine,
    ReplanRun,
    RunHistory,
    StockItem,
)

NOW = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)


def make_line(sku, size, category, pull_qty, executed_days_ago=None):
    line = ReplanLine(
        line_id=f"{sku}||{size}||",
        category=category,
        sku=sku,
        size=size,
        stock_qty=20,
        sales_qty=1,
        balance=19,
        pull_qty=pull_qty,
    )
    if executed_days_ago is not None:
        line.status = LineStatus.DONE
        line.executed_at = NOW - timedelta(days=executed_days_ago)
    return line


@pytest.fixture
def analyzer():
    return DashboardAnalyzer(clock=lambda: NOW)


@pytest.fixture
def history():
    run = ReplanRun(
        run_id="RUN-1",
        created_at=NOW - timedelta(days=45),
        lines=[
            make_line("1", "M", "A", 5, executed_days_ago=2),
            make_line("2", "M", "A", 2, executed_days_ago=40),
            make_line("3", "S", "B", 4, executed_days_ago=20),
            make_line("4", "S", "B", 9),
        ],
    )
    return RunHistory(runs=[run])


@pytest.fixture
def ledger():
    items = [
        StockItem(sku="1", size="M", category="A", qty=3),
        StockItem(sku="2", size="M", category="A", qty=5),
        StockItem(sku="3", size="S", category="B", qty=2),
        StockItem(sku="4", size="S", category="B", qty=1),
        StockItem(sku="5", size="S", category="B", qty=0),
        StockItem(sku="6", size="L", category="A", qty=7),
    ]
    return stock.replace({x.key: x for x in items}, "stock.csv", NOW)


def test_leaderboards_count_done_lines_inside_window(analyzer, history, ledger):
    report = analyzer.analyze(history, ledger)

    assert (report.window_days, report.stale_days, report.category) == (30, 14, "All")
    assert [(c.category, c.qty) for c in report.top_categories] == [("A", 5), ("B", 4)]
    assert [(s.category, s.sku, s.qty) for s in report.top_skus] == [("A", "1", 5), ("B", "3", 4)]


def test_stale_lines_never_executed_first_then_oldest(analyzer, history, ledger):
    report = analyzer.analyze(history, ledger)

    assert [x.sku for x in report.no_replan] == ["4", "6", "2", "3"]
    assert report.no_replan[0].last_executed_at is None
    assert report.no_replan[2].last_executed_at == NOW - timedelta(days=40)
    assert report.no_replan[1].stock_qty == 7


def test_category_filter(analyzer, history, ledger):
    report = analyzer.analyze(history, ledger, category="A")

    assert report.category == "A"
    assert [(c.category, c.qty) for c in report.top_categories] == [("A", 5)]
    assert [x.sku for x in report.no_replan] == ["6", "2"]


def test_window_and_stale_days(analyzer, history, ledger):
    report = analyzer.analyze(history, ledger, days=50, stale_days=1)

    assert [(c.category, c.qty) for c in report.top_categories] == [("A", 7), ("B", 4)]
    assert "1" in {x.sku for x in report.no_replan}


@pytest.mark.parametrize(
    "days, expected",
    [(None, 30), (-5, 1), ("abc", 30), ("7", 7), (2.5, 2), ("nan", 30), (float("inf"), 30)],
)
def test_window_days_are_at_least_one(analyzer, history, ledger, days, expected):
    assert analyzer.analyze(history, ledger, days=days).window_days == expected


def test_last_execution_is_the_latest_across_runs(analyzer, history):
    newer = ReplanRun(
        run_id="RUN-2",
        created_at=NOW,
        lines=[make_line("2", "M", "A", 1, executed_days_ago=1)],
    )
    history.runs.insert(0, newer)

    last = analyzer.last_executions(history)

    assert last["2||M||"] == NOW - timedelta(days=1)
    assert "4||S||" not in last


def test_empty_history(analyzer, ledger):
    report = analyzer.analyze(RunHistory(), ledger)
    assert report.top_categories == []
    assert report.top_skus == []
    assert [x.sku for x in report.no_replan] == ["1", "2", "3", "4", "6"]


def test_leaderboards_and_stale_list_are_capped(analyzer):
    lines = [
        make_line(str(i), "M", f"C{i:02d}", pull_qty=i + 1, executed_days_ago=1)
        for i in range(25)
    ]
    history = RunHistory(runs=[ReplanRun(run_id="RUN-1", created_at=NOW, lines=lines)])
    items = [StockItem(sku=f"9{i:03d}", size="S", category="Z", qty=1) for i in range(250)]
    ledger = stock.replace({x.key: x for x in items}, "stock.csv", NOW)

    report = analyzer.analyze(history, ledger)

    assert len(report.top_categories) == 15
    assert [c.qty for c in report.top_categories] == list(range(25, 10, -1))
    assert report.top_categories[0].category == "C24"
    assert len(report.top_skus) == 20
    assert [s.qty for s in report.top_skus] == list(range(25, 5, -1))
    assert len(report.no_replan) == 200
