import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from floor_replan import data_handler, utils
from floor_replan.service import ReplanService

logger = logging.getLogger(__name__)


class UploadPipeline(ABC):
    """
    Abstract base class for report uploads (stock snapshot, sales report).
    Follows an Extract -> Transform -> Load pattern:
    extract decodes the file into (text, qty) rows, transform hands them to
    the service, load publishes the outcome.
    """

    def __init__(
        self,
        report_type: str,
        file_path: Path,
        service: Optional[ReplanService] = None,
        original_name: Optional[str] = None,
        notify: bool = True,
    ):
        self.report_type = report_type
        self.file_path = Path(file_path)
        self.original_name = original_name or self.file_path.name
        self.service = service or ReplanService()
        self.notify = notify

    def run(self) -> Any | None:
        """
        Orchestrates the pipeline execution. Returns the service result, or
        None when the file held no rows.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} UPLOAD ({self.original_name})")
        logger.info("-" * 30)

        self.check_preconditions()

        # --- 1. EXTRACT ---
        rows = self.extract()
        if not rows:
            logger.warning(f"⚠️ No rows extracted from {self.original_name}. Nothing to do.")
            return None
        logger.info(f"  > Rows read: {len(rows)}")

        # --- 2. TRANSFORM ---
        result = self.transform(rows)

        # --- 3. LOAD ---
        self.load(result)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return result

    def check_preconditions(self) -> None:
        """Runs before the file is read; raise to abort."""

    def extract(self) -> list[tuple]:
        return utils.load_rows(self.file_path, self.original_name)

    @abstractmethod
    def transform(self, rows: list[tuple]) -> Any:
        """Applies the rows to the stored state and returns the operation summary."""

    def load(self, result: Any) -> None:
        """Posts the summary to the webhook."""
        if not self.notify:
            logger.info("🧪 Notifications disabled: Skipping webhook post.")
            return
        data_handler.post_to_webhook(
            f"{self.report_type}_uploaded", result.model_dump(mode="json", by_alias=True)
        )
