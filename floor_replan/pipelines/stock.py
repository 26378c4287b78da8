import logging

from floor_replan.pipeline import UploadPipeline
from floor_replan.schemas import StockUpdateSummary

logger = logging.getLogger(__name__)


class StockUploadPipeline(UploadPipeline):
    """Replaces the stock ledger with the uploaded snapshot."""

    def __init__(self, file_path, **kwargs):
        super().__init__("stock", file_path, **kwargs)

    def transform(self, rows: list[tuple]) -> StockUpdateSummary:
        logger.info("--- Replacing Stock Snapshot ---")
        summary = self.service.update_stock(rows, self.original_name)

        mode = "base load (all lines new)" if summary.base_mode else "update"
        logger.info(f"  > Lines in snapshot: {summary.total_lines}")
        logger.info(f"  > Mode: {mode}")
        logger.info(f"  > New collection lines pending: {summary.new_collection_count}")
        return summary
