import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable

import pandas as pd
import requests

from . import settings
from . import utils
from .schemas import NewCollectionBatch, ReplanRun, ReportItem, StockItem

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["category", "sku", "size", "color", "qty"]


# --- Report Items ---
# Flat {category, sku, size, color, qty} rows, the only shape report renderers see.


def report_items_for_run(run: ReplanRun, pending_only: bool = False) -> list[ReportItem]:
    return [
        ReportItem(
            category=line.category,
            sku=line.sku,
            size=line.size,
            color=line.color,
            qty=line.pull_qty,
        )
        for line in run.lines
        if not (pending_only and line.is_done)
    ]


def report_items_for_batch(
    batch: NewCollectionBatch, pending_only: bool = False
) -> list[ReportItem]:
    return [
        ReportItem(
            category=line.category,
            sku=line.sku,
            size=line.size,
            color=line.color,
            qty=line.qty,
        )
        for line in batch.items
        if not (pending_only and line.is_done)
    ]


def report_items_for_stock(items: Iterable[StockItem]) -> list[ReportItem]:
    return [
        ReportItem(
            category=x.category, sku=x.sku, size=x.size, color=x.color, qty=x.qty
        )
        for x in items
    ]


def _safe_filename(title: str) -> str:
    return re.sub(r"[^\w\- ]", "_", title).strip().replace(" ", "_") or "report"


def save_report(
    items: list[ReportItem], title: str = "Report", output_dir: Path | None = None
) -> Path:
    """Saves report items to a dated CSV and, when configured, to JSON."""
    output_dir = Path(output_dir or settings.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()
    base_name = f"{settings.REPORT_FILENAME_BASE}_{_safe_filename(title)}_{date_suffix}"

    csv_path = output_dir / f"{base_name}.csv"
    json_path = output_dir / f"{base_name}.json"

    df = pd.DataFrame([item.model_dump() for item in items], columns=REPORT_COLUMNS)
    df.to_csv(csv_path, index=False, encoding="utf-8-sig")
    logger.info(f"✅ Report '{title}' ({len(items)} rows, {int(df['qty'].sum())} units) saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(
                {"title": title, "items": [item.model_dump() for item in items]},
                f,
                indent=2,
                ensure_ascii=False,
            )
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return csv_path


def post_to_webhook(event: str, payload: dict[str, Any]) -> bool:
    """
    Posts an event summary to the configured webhook. Delivery problems are
    logged and reported through the return value, never raised.
    """
    if not settings.WEBHOOK_URL:
        logger.info("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting '{event}' to webhook: {settings.WEBHOOK_URL}")
    body = {"event": event, "data": payload}

    try:
        response = requests.post(settings.WEBHOOK_URL, json=body, timeout=15)
        response.raise_for_status()
        logger.info("✅ Event successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
