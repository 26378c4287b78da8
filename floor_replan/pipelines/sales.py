import logging

from floor_replan.pipeline import UploadPipeline
from floor_replan.schemas import RunSummary

logger = logging.getLogger(__name__)


class SalesReplanPipeline(UploadPipeline):
    """Turns an uploaded sales report into a new replan run."""

    def __init__(self, file_path, category: str = "", **kwargs):
        super().__init__("sales", file_path, **kwargs)
        self.category = category

    def check_preconditions(self) -> None:
        # No point decoding the sales file without a stock snapshot to compare against.
        self.service.require_stock()

    def transform(self, rows: list[tuple]) -> RunSummary:
        logger.info("--- Generating Replan Run ---")
        summary = self.service.generate_run(rows, self.category, self.original_name)

        logger.info(f"  > Run: {summary.run_id} (category: {summary.category_filter})")
        logger.info(f"  > Lines proposed: {summary.lines_count}")
        logger.info(f"  > Units to pull: {sum(line.pull_qty for line in summary.lines)}")
        return summary
