import argparse
import json
import logging
import sys

from floor_replan import data_handler
from floor_replan.errors import ReplanError
from floor_replan.logger import setup_logger
from floor_replan.pipelines.sales import SalesReplanPipeline
from floor_replan.pipelines.stock import StockUploadPipeline
from floor_replan.service import ReplanService

logger = logging.getLogger("floor_replan")


def _print(model) -> None:
    if isinstance(model, list):
        data = [m.model_dump(mode="json", by_alias=True) for m in model]
    else:
        data = model.model_dump(mode="json", by_alias=True)
    print(json.dumps(data, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Floor replenishment: stock snapshots, replan runs and new collection pulls."
    )
    parser.add_argument("--no-webhook", action="store_true", help="Do not post upload summaries")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stock-update", help="Replace stock with an .xlsx/.csv snapshot")
    p.add_argument("file")

    sub.add_parser("stock-clear", help="Clear stock, run history and new collection")

    p = sub.add_parser("search", help="Search in-stock lines")
    p.add_argument("query", nargs="?", default="")
    p.add_argument("--category", default="")
    p.add_argument("--limit", type=int, default=None)

    sub.add_parser("categories", help="List categories with stock")

    p = sub.add_parser("replan", help="Generate a replan run from a sales report")
    p.add_argument("file")
    p.add_argument("--category", default="")

    p = sub.add_parser("runs", help="List replan runs")
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("execute", help="Execute one line of a run")
    p.add_argument("run_id")
    p.add_argument("line_id")

    p = sub.add_parser("execute-all", help="Execute every pending line of a run")
    p.add_argument("run_id")

    sub.add_parser("nc-show", help="Show the latest new collection batch")

    p = sub.add_parser("nc-execute", help="Execute one new collection line")
    p.add_argument("line_id")

    sub.add_parser("nc-execute-all", help="Execute every pending new collection line")

    p = sub.add_parser("dashboard", help="Top pulls and stale lines")
    p.add_argument("--days", type=int, default=None)
    p.add_argument("--stale-days", type=int, default=None)
    p.add_argument("--category", default="")

    p = sub.add_parser("limits", help="Show or change min/max pull limits")
    p.add_argument("action", choices=["show", "set-default", "set", "remove"])
    p.add_argument("--sku", default="")
    p.add_argument("--min", dest="min_qty", default=None)
    p.add_argument("--max", dest="max_qty", default=None)

    p = sub.add_parser("export", help="Export a run, the new collection or stock as CSV")
    p.add_argument("source", choices=["run", "new-collection", "stock"])
    p.add_argument("--run-id", default="")
    p.add_argument("--pending-only", action="store_true")
    p.add_argument("--title", default="")

    return parser


def run_command(args, service: ReplanService):
    notify = not args.no_webhook

    if args.command == "stock-update":
        return StockUploadPipeline(args.file, service=service, notify=notify).run()
    if args.command == "stock-clear":
        service.clear_stock()
        return None
    if args.command == "search":
        return service.search(args.query, args.category, args.limit)
    if args.command == "categories":
        print("\n".join(service.categories()))
        return None
    if args.command == "replan":
        return SalesReplanPipeline(
            args.file, category=args.category, service=service, notify=notify
        ).run()
    if args.command == "runs":
        return service.list_runs(args.limit)
    if args.command == "execute":
        return service.execute_run_line(args.run_id, args.line_id)
    if args.command == "execute-all":
        return service.execute_run(args.run_id)
    if args.command == "nc-show":
        return service.latest_new_collection()
    if args.command == "nc-execute":
        return service.execute_new_collection_line(args.line_id)
    if args.command == "nc-execute-all":
        return service.execute_new_collection()
    if args.command == "dashboard":
        return service.dashboard(args.days, args.stale_days, args.category)
    if args.command == "limits":
        if args.action == "show":
            return service.get_limits()
        if args.action == "set-default":
            return service.set_default_limits(args.min_qty, args.max_qty)
        if args.action == "set":
            return service.set_sku_limits(args.sku, args.min_qty, args.max_qty)
        return service.remove_sku_limits(args.sku)
    if args.command == "export":
        return export_report(args, service)
    raise ValueError(f"Unknown command {args.command}")


def export_report(args, service: ReplanService):
    if args.source == "run":
        run = service.get_run(args.run_id) if args.run_id else service.latest_run()
        if run is None:
            logger.warning("⚠️ No replan runs yet.")
            return None
        items = data_handler.report_items_for_run(run, args.pending_only)
        title = args.title or f"Replan {run.run_id}"
    elif args.source == "new-collection":
        batch = service.latest_new_collection()
        items = data_handler.report_items_for_batch(batch, args.pending_only)
        title = args.title or "New Collection"
    else:
        in_stock = [x for x in service.current_stock().items.values() if x.qty > 0]
        in_stock.sort(key=lambda x: x.qty, reverse=True)
        items = data_handler.report_items_for_stock(in_stock)
        title = args.title or "Stock"

    path = data_handler.save_report(items, title)
    print(path)
    return None


def main(argv=None) -> int:
    setup_logger("floor_replan")
    args = build_parser().parse_args(argv)
    service = ReplanService()

    try:
        result = run_command(args, service)
    except ReplanError as e:
        logger.error(f"❌ {e.message}")
        return 1

    if result is not None:
        _print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
