import math
from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from . import settings

KEY_SEPARATOR = "||"


def make_key(sku: str, size: str, color: str) -> str:
    """Inventory key: the identity of a stock line. Category is not part of it."""
    return KEY_SEPARATOR.join([sku, size, color])


def floor_bound(value):
    """Floors a configured pull bound and clamps it at zero. Non-numbers pass through."""
    try:
        number = math.floor(float(value))
    except (TypeError, ValueError, OverflowError):
        return value
    return max(0, number)


class Document(BaseModel):
    """
    Base for every persisted contract. Stored JSON uses camelCase aliases
    (lineId, pullQty, ...) while the code works with snake_case names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineStatus(str, Enum):
    PENDING = "Pending"
    DONE = "Done"


class BatchMode(str, Enum):
    # First load after a clear: every in-stock key is new.
    BASE_ALL = "BASE_PENDING_ALL"
    # Regular update: only keys the previous snapshot did not have.
    UPDATE_NEW_ONLY = "UPDATE_PENDING_NEW_ONLY"


# --- Stock ---


class StockItem(Document):
    sku: str
    size: str = ""
    color: str = ""
    category: str = ""
    qty: int = Field(default=0, ge=0)

    @property
    def key(self) -> str:
        return make_key(self.sku, self.size, self.color)


class StockLedger(Document):
    updated_at: datetime | None = None
    source_file_name: str | None = None
    items: dict[str, StockItem] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.items


# --- Replan Runs ---


class ReplanLine(Document):
    line_id: str
    category: str = ""
    sku: str
    size: str = ""
    color: str = ""
    stock_qty: int
    sales_qty: int
    balance: int
    pull_qty: int = Field(ge=0)
    status: LineStatus = LineStatus.PENDING
    executed_at: datetime | None = None

    @property
    def is_done(self) -> bool:
        return self.status == LineStatus.DONE


class ReplanRun(Document):
    run_id: str
    created_at: datetime
    category_filter: str = "All"
    sales_file_name: str | None = None
    lines: list[ReplanLine] = Field(default_factory=list)


class RunHistory(Document):
    """All runs, most recent first."""

    runs: list[ReplanRun] = Field(default_factory=list)


# --- New Collection ---


class NewCollectionLine(Document):
    line_id: str
    category: str = ""
    sku: str
    size: str = ""
    color: str = ""
    qty: int = 1
    status: LineStatus = LineStatus.PENDING
    executed_at: datetime | None = None

    @property
    def is_done(self) -> bool:
        return self.status == LineStatus.DONE


class NewCollectionBatch(Document):
    created_at: datetime | None = None
    mode: BatchMode | None = None
    items: list[NewCollectionLine] = Field(default_factory=list)


# --- Limits ---


class LimitRule(Document):
    min: int
    max: int

    @field_validator("min", "max", mode="before")
    @classmethod
    def floor_bounds(cls, value):
        return floor_bound(value)


class LimitsConfig(Document):
    default_min: int = settings.DEFAULT_MIN_PULL
    default_max: int = settings.DEFAULT_MAX_PULL
    skus: dict[str, LimitRule] = Field(default_factory=dict)

    @field_validator("default_min", "default_max", mode="before")
    @classmethod
    def floor_bounds(cls, value):
        return floor_bound(value)


# --- Operation Results ---


class StockUpdateSummary(Document):
    updated_at: datetime
    total_lines: int
    base_mode: bool
    new_collection_count: int


class RunSummary(Document):
    run_id: str
    created_at: datetime
    category_filter: str
    sales_file_name: str | None = None
    lines_count: int
    lines: list[ReplanLine] = Field(default_factory=list)

    @classmethod
    def from_run(cls, run: ReplanRun, include_lines: bool = True) -> "RunSummary":
        return cls(
            run_id=run.run_id,
            created_at=run.created_at,
            category_filter=run.category_filter,
            sales_file_name=run.sales_file_name,
            lines_count=len(run.lines),
            lines=run.lines if include_lines else [],
        )


class LineExecution(Document):
    ok: bool = True
    line: Union[ReplanLine, NewCollectionLine]
    new_stock_qty: int | None = None
    already_executed: bool = False
    message: str | None = None


class ExecutionFailure(Document):
    line_id: str
    reason: str


class BulkExecution(Document):
    ok: bool = True
    executed: int = 0
    failed: int = 0
    failures: list[ExecutionFailure] = Field(default_factory=list)
    lines: list[Union[ReplanLine, NewCollectionLine]] = Field(default_factory=list)


class SearchResult(Document):
    updated_at: datetime | None = None
    count: int
    items: list[StockItem] = Field(default_factory=list)


# --- Dashboard ---


class CategoryTotal(Document):
    category: str
    qty: int


class SkuTotal(Document):
    category: str
    sku: str
    qty: int


class StaleItem(Document):
    category: str
    sku: str
    size: str
    color: str
    stock_qty: int
    last_executed_at: datetime | None = None


class DashboardReport(Document):
    window_days: int
    stale_days: int
    category: str = "All"
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    top_skus: list[SkuTotal] = Field(default_factory=list)
    no_replan: list[StaleItem] = Field(default_factory=list)


# --- Reports ---


class ReportItem(Document):
    """One row of the flat list handed to report renderers (PDF, CSV)."""

    category: str = ""
    sku: str
    size: str = ""
    color: str = ""
    qty: int = 0
